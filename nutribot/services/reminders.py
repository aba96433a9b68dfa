"""
Reminder jobs. Each ``run_*`` method performs one scheduler tick over the
active users and returns how many messages it sent.

Duplicate prevention relies on persisted data only (today's meal logs, the
reminders already in the conversation log, the window-warning record), never
on in-memory state, so a restarted process or an overlapping tick cannot
double-send.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from nutribot.models.user import User
from nutribot.services.i18n import t
from nutribot.services.meals import MAIN_MEALS
from nutribot.services.progress import format_daily_report
from nutribot.services.storage import DailyGoals
from nutribot.services.timeutils import (
    day_bounds_utc,
    ensure_aware,
    get_zone,
    is_silent_hours,
    local_now,
    normalize_hhmm,
    to_naive_utc,
)
from nutribot.services.transport import send_logged
from nutribot.services.window import MessagingWindow

logger = logging.getLogger(__name__)

WATER_REMINDER_HOURS = frozenset({8, 10, 12, 14, 16, 18, 20, 22})
DAILY_SUMMARY_HOUR = 22


class ReminderService:
    def __init__(self, storage, transport):
        self.storage = storage
        self.transport = transport
        self.window = MessagingWindow(storage)

    def _send(self, user: User, body: str, metadata: dict, now: datetime) -> None:
        send_logged(
            self.transport, self.storage, user.user_id, body,
            message_type="reminder", metadata=metadata, created_at=to_naive_utc(now),
        )

    def _for_each_user(self, job: str, func: Callable[[User, datetime], int], now: Optional[datetime]) -> int:
        now = ensure_aware(now)
        sent = 0
        for user in self.storage.list_active_users():
            if not user.onboarding_completed:
                continue
            try:
                sent += func(user, now)
            except Exception:
                logger.exception("%s failed for user=%s", job, user.user_id)
        if sent:
            logger.info("%s: sent %d message(s)", job, sent)
        return sent

    def _silenced(self, user: User, local: datetime) -> bool:
        if is_silent_hours(local.hour, local.minute, user.silent_hours_start, user.silent_hours_end):
            logger.debug("Silent hours for user=%s at %s", user.user_id, local.strftime("%H:%M"))
            return True
        return False

    def _already_sent_today(self, user: User, reminder_type: str, local: datetime) -> bool:
        start, end = day_bounds_utc(local.date(), get_zone(user.timezone, user.user_id))
        if self.storage.was_reminder_sent(user.user_id, reminder_type, start, end):
            logger.debug("%s reminder already sent today to user=%s", reminder_type, user.user_id)
            return True
        return False

    # --- meals -------------------------------------------------------------

    def run_meal_reminders(self, now: Optional[datetime] = None) -> int:
        """``now`` should be the tick's scheduled time; matching is minute-exact."""
        return self._for_each_user("Meal reminders", self._meal_reminders_for, now)

    def _meal_reminders_for(self, user: User, now: datetime) -> int:
        local = local_now(user.timezone, now, user.user_id)
        if self._silenced(user, local):
            return 0

        current = local.strftime("%H:%M")
        logged = None
        sent = 0
        for category in MAIN_MEALS:
            if not user.reminder_enabled(category.value):
                continue
            if normalize_hhmm(user.meal_time(category.value)) != current:
                continue
            if logged is None:
                logged = self.storage.get_logged_meal_categories(user.user_id, local.date(), user.timezone)
            if category in logged:
                logger.debug("%s already logged today by user=%s", category.value, user.user_id)
                continue
            if self._already_sent_today(user, category.value, local):
                continue
            self._send(user, t(f"reminder.{category.value}"), {"reminder_type": category.value, "time": current}, now)
            logger.info("Sent %s reminder to user=%s", category.value, user.user_id)
            sent += 1
        return sent

    # --- water -------------------------------------------------------------

    def run_water_reminders(self, now: Optional[datetime] = None) -> int:
        return self._for_each_user("Water reminders", self._water_reminder_for, now)

    def _water_reminder_for(self, user: User, now: datetime) -> int:
        if not user.water_reminder:
            return 0
        local = local_now(user.timezone, now, user.user_id)
        if self._silenced(user, local) or local.hour not in WATER_REMINDER_HOURS:
            return 0
        hour_start = to_naive_utc(local.replace(minute=0, second=0, microsecond=0))
        if self.storage.was_reminder_sent(user.user_id, "water", hour_start, hour_start + timedelta(hours=1)):
            logger.debug("Water reminder already sent this hour to user=%s", user.user_id)
            return 0
        self._send(user, t("reminder.water"), {"reminder_type": "water", "hour": local.hour}, now)
        logger.info("Sent water reminder to user=%s", user.user_id)
        return 1

    # --- daily summary -----------------------------------------------------

    def run_daily_summaries(self, now: Optional[datetime] = None) -> int:
        return self._for_each_user("Daily summaries", self._daily_summary_for, now)

    def _daily_summary_for(self, user: User, now: datetime) -> int:
        local = local_now(user.timezone, now, user.user_id)
        if local.hour != DAILY_SUMMARY_HOUR:
            return 0
        if self._already_sent_today(user, "daily_summary", local):
            return 0
        totals = self.storage.get_daily_totals(user.user_id, local.date(), user.timezone)
        report = format_daily_report(totals, DailyGoals.for_user(user))
        self._send(user, t("reminder.summary", report=report), {
            "reminder_type": "daily_summary",
            "calories": totals.total_calories,
            "water_ml": totals.total_water_ml,
            "meals_count": totals.meals_count,
        }, now)
        logger.info("Sent daily summary to user=%s", user.user_id)
        return 1

    # --- messaging window --------------------------------------------------

    def run_window_warnings(self, now: Optional[datetime] = None) -> int:
        return self._for_each_user("Window warnings", self._window_warning_for, now)

    def _window_warning_for(self, user: User, now: datetime) -> int:
        if not self.window.needs_warning(user.user_id, now):
            return 0
        if self.window.was_recently_warned(user.user_id, now):
            logger.debug("Window warning suppressed for user=%s", user.user_id)
            return 0
        hours = self.window.hours_since_last_inbound(user.user_id, now)
        self._send(user, t("reminder.window"), {"reminder_type": "window_warning", "hours": hours}, now)
        self.window.mark_warned(user.user_id, now)
        logger.info("Sent window warning to user=%s (%sh since last message)", user.user_id, hours)
        return 1
