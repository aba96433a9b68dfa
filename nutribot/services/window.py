from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from nutribot.services.timeutils import to_naive_utc

WARN_AFTER_HOURS = 20
WINDOW_HOURS = 24
REWARN_SUPPRESSION = timedelta(hours=4)


class MessagingWindow:
    """Tracks how long ago a user last wrote, to warn before the messaging window closes."""

    def __init__(self, storage):
        self.storage = storage

    def hours_since_last_inbound(self, user_id: str, now: Optional[datetime] = None) -> Optional[int]:
        last = self.storage.get_last_inbound_at(user_id)
        if last is None:
            return None
        elapsed = to_naive_utc(now) - last
        return int(elapsed.total_seconds() // 3600)

    def needs_warning(self, user_id: str, now: Optional[datetime] = None) -> bool:
        hours = self.hours_since_last_inbound(user_id, now)
        if hours is None:
            return False
        return WARN_AFTER_HOURS <= hours < WINDOW_HOURS

    def was_recently_warned(self, user_id: str, now: Optional[datetime] = None) -> bool:
        warned_at = self.storage.get_window_warning(user_id)
        if warned_at is None:
            return False
        return to_naive_utc(now) - warned_at < REWARN_SUPPRESSION

    def mark_warned(self, user_id: str, now: Optional[datetime] = None) -> None:
        self.storage.set_window_warning(user_id, to_naive_utc(now))

    def clear(self, user_id: str) -> None:
        self.storage.clear_window_warning(user_id)
