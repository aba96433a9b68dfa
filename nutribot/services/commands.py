"""
Intent routing for users who finished onboarding.

A message is classified in a fixed order: media, quick water presets, free
text water logs, then the alias table keyed by the first word. Every handler
answers with a message; invalid input gets a corrective reply, never an
exception.
"""
from __future__ import annotations

import html
import logging
import re
from datetime import datetime
from typing import Callable, Dict, List, Optional

from nutribot.models.meal_log import MealCategory
from nutribot.models.user import User
from nutribot.services.ai import AIRateLimitError, AIServiceError
from nutribot.services.i18n import t
from nutribot.services.meals import MealTimes, classify_meal, parse_meal_category
from nutribot.services.progress import format_daily_report
from nutribot.services.storage import DailyGoals
from nutribot.services.timeutils import (
    local_now,
    normalize_hhmm,
    resolve_timezone,
    to_naive_utc,
    utc_to_local,
)
from nutribot.services.transport import send_logged

logger = logging.getLogger(__name__)

DAILY_IMAGE_LIMIT = 20
HISTORY_SIZE = 5

GLASS_ML = 250
DEFAULT_WATER_ML = 200
MAX_WATER_ML = 5000

WATER_PRESETS = {"1": 200, "2": 250, "3": 500}
WATER_BUTTONS = [
    ("water_200", "💧 200 ml"),
    ("water_250", "💧 250 ml"),
    ("water_500", "💧 500 ml"),
]

ACTION_ALIASES = {
    "report": ("rapor", "report", "özet", "ozet", "summary"),
    "help": ("yardim", "yardım", "help", "?", "komutlar", "commands"),
    "history": ("gecmis", "geçmiş", "history", "tarihçe", "tarihce"),
    "advice": ("tavsiye", "öneri", "oneri", "advice", "tip", "tips"),
    "settings": ("ayarlar", "ayar", "settings", "setting"),
    "water_buttons": ("su", "buton", "butonlar", "buttons", "button"),
    "meal_time": ("saat", "time"),
    "timezone": ("timezone", "tz", "zamandilimi"),
    "water_interval": ("suaraligi", "suaraliği", "waterinterval"),
    "water_goal": ("suhedefi", "suhedfi", "watergoal"),
    "calorie_goal": ("kalorihedefi", "kalorihedfi", "caloriegoal"),
    "silent_hours": ("sessiz", "silent", "silentsaatler"),
    "favorites": ("favori", "favoriler", "favorite", "favorites", "fav"),
    "meal_log": ("ogun", "öğün", "yemek", "meal", "food"),
}

ALIASES = {alias: action for action, aliases in ACTION_ALIASES.items() for alias in aliases}

_VOLUME_WORDS = ("su", "ml", "bardak")
_CONSUMED_WORDS = ("içtim", "içim")
_GLASSES_RE = re.compile(r"(\d+)\s*bardak")
_LITRES_RE = re.compile(r"(\d+(?:[.,]\d+)?)\s*(?:litre|lt)\b")
_INT_RE = re.compile(r"\d+")
_FAVORITE_NAME_RE = re.compile(r"^\w+$")


def strip_command_marker(text: str) -> str:
    text = text.strip()
    if text[:1] in ("/", "!"):
        text = text[1:]
    return text


def is_water_intent(text: str) -> bool:
    lowered = text.lower()
    has_volume = any(word in lowered for word in _VOLUME_WORDS)
    has_consumed = any(word in lowered for word in _CONSUMED_WORDS)
    return (has_volume and has_consumed) or ("ml" in lowered and len(lowered) < 20)


def parse_water_amount(text: str) -> int:
    """Millilitres mentioned in ``text``; 200 mL when nothing usable is found."""
    lowered = text.lower()

    glasses = _GLASSES_RE.search(lowered)
    if glasses:
        amount = int(glasses.group(1)) * GLASS_ML
        if 0 < amount <= MAX_WATER_ML:
            return amount
    elif "bardak" in lowered:
        return GLASS_ML

    litres = _LITRES_RE.search(lowered)
    if litres:
        amount = int(float(litres.group(1).replace(",", ".")) * 1000)
        if 0 < amount <= MAX_WATER_ML:
            return amount

    for match in _INT_RE.findall(lowered):
        amount = int(match)
        if 0 < amount <= MAX_WATER_ML:
            return amount
    return DEFAULT_WATER_ML


def is_reserved_word(word: str) -> bool:
    """Words the router claims before favourite names are looked up."""
    return word in WATER_PRESETS or word in ALIASES or is_water_intent(word)


def _parse_int(value: str) -> Optional[int]:
    try:
        return int(value)
    except ValueError:
        return None


class CommandRouter:
    def __init__(self, storage, transport, ai):
        self.storage = storage
        self.transport = transport
        self.ai = ai
        self._handlers: Dict[str, Callable[[User, List[str], Optional[datetime]], None]] = {
            "report": self.show_report,
            "help": self.show_help,
            "history": self.show_history,
            "advice": self.show_advice,
            "settings": self.show_settings,
            "water_buttons": self.show_water_buttons,
            "meal_time": self.set_meal_time,
            "timezone": self.set_timezone,
            "water_interval": self.set_water_interval,
            "water_goal": self.set_water_goal,
            "calorie_goal": self.set_calorie_goal,
            "silent_hours": self.set_silent_hours,
            "favorites": self.manage_favorites,
            "meal_log": self.log_text_meal,
        }

    def _send(self, user_id: str, body: str, **kwargs) -> None:
        send_logged(self.transport, self.storage, user_id, body, **kwargs)

    def route(
        self,
        user: User,
        text: str,
        has_media: bool = False,
        media_path: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> str:
        """Handle one message and return the name of the action taken."""
        text = (text or "").strip()

        if has_media and media_path:
            self.log_meal_image(user, media_path, now)
            return "meal_image"

        if text in WATER_PRESETS:
            self.log_water(user, WATER_PRESETS[text], now)
            return "water_log"

        if is_water_intent(text):
            self.log_water(user, parse_water_amount(text), now)
            return "water_log"

        words = strip_command_marker(text).split()
        if not words:
            self.show_help(user, [], now)
            return "help"

        keyword, args = words[0].lower(), words[1:]
        action = ALIASES.get(keyword)
        if action is not None:
            logger.debug("Routing %r from user=%s to %s", keyword, user.user_id, action)
            self._handlers[action](user, args, now)
            return action

        favorite = self.storage.get_favorite_meal(user.user_id, keyword)
        if favorite is not None:
            self.log_favorite(user, favorite, now)
            return "favorite_quick"
        if keyword.startswith("fav"):
            self._send(user.user_id, t("fav.not_found", name=html.escape(keyword)))
            return "favorite_missing"

        self.show_help(user, args, now)
        return "help"

    # --- logging -----------------------------------------------------------

    def _classify(self, user: User, now: Optional[datetime]) -> MealCategory:
        local = local_now(user.timezone, now, user.user_id)
        logged = self.storage.get_logged_meal_categories(user.user_id, local.date(), user.timezone)
        return classify_meal(MealTimes.for_user(user), logged, local.time())

    def _record_meal(self, user: User, calories: float, description: str,
                     now: Optional[datetime], image_path: Optional[str] = None) -> MealCategory:
        category = self._classify(user, now)
        self.storage.add_meal(
            user.user_id, category, calories, description,
            image_path=image_path, created_at=to_naive_utc(now),
        )
        logger.info("Logged %s (%.0f kcal) for user=%s", category.value, calories, user.user_id)
        return category

    def _meal_summary(self, user: User, category: MealCategory, calories: float,
                      description: str, now: Optional[datetime]) -> str:
        today = local_now(user.timezone, now, user.user_id).date()
        totals = self.storage.get_daily_totals(user.user_id, today, user.timezone)
        return t(
            "meal.saved",
            meal=t(f"meal.{category.value}"),
            description=html.escape(description),
            calories=calories,
            total=totals.total_calories,
            count=totals.meals_count,
        )

    def log_meal_image(self, user: User, image_path: str, now: Optional[datetime] = None) -> None:
        today = local_now(user.timezone, now, user.user_id).date()
        count = self.storage.get_daily_image_count(user.user_id, today, user.timezone)
        if count >= DAILY_IMAGE_LIMIT:
            logger.warning("User %s reached daily image limit: %d/%d", user.user_id, count, DAILY_IMAGE_LIMIT)
            self._send(user.user_id, t("meal.image_limit", limit=DAILY_IMAGE_LIMIT))
            return

        try:
            analysis = self.ai.analyze_meal_image(image_path)
        except AIServiceError as e:
            logger.error("Image analysis failed for user=%s: %s", user.user_id, e)
            self._send(user.user_id, t("meal.image_failed"), message_type="error")
            return

        category = self._record_meal(user, analysis.calories, analysis.description, now, image_path=image_path)
        body = self._meal_summary(user, category, analysis.calories, analysis.description, now)
        body += t("meal.images_today", count=count + 1, limit=DAILY_IMAGE_LIMIT)
        self._send(user.user_id, body)

    def log_text_meal(self, user: User, args: List[str], now: Optional[datetime] = None) -> None:
        if not args:
            self._send(user.user_id, t("meal.usage"))
            return
        description = " ".join(args)
        try:
            analysis = self.ai.analyze_meal_text(description)
        except AIServiceError as e:
            logger.error("Text meal analysis failed for user=%s: %s", user.user_id, e)
            self._send(user.user_id, t("meal.text_failed"), message_type="error")
            return

        category = self._record_meal(user, analysis.calories, analysis.description, now)
        self._send(user.user_id, self._meal_summary(user, category, analysis.calories, analysis.description, now))

    def log_favorite(self, user: User, favorite, now: Optional[datetime] = None) -> None:
        category = self._record_meal(user, favorite.calories, favorite.description, now)
        self._send(user.user_id, t(
            "fav.logged",
            meal=t(f"meal.{category.value}"),
            description=html.escape(favorite.description),
            calories=favorite.calories,
        ))

    def log_water(self, user: User, amount_ml: int, now: Optional[datetime] = None) -> None:
        self.storage.add_water_log(user.user_id, amount_ml, created_at=to_naive_utc(now))
        logger.info("Logged %d ml water for user=%s", amount_ml, user.user_id)

        today = local_now(user.timezone, now, user.user_id).date()
        totals = self.storage.get_daily_totals(user.user_id, today, user.timezone)
        goal = user.daily_water_goal or 2000
        self._send(user.user_id, t(
            "water.saved",
            amount=amount_ml,
            total=totals.total_water_ml,
            goal=goal,
            remaining=max(goal - totals.total_water_ml, 0),
        ))

    # --- read-only commands ------------------------------------------------

    def show_help(self, user: User, args: List[str], now: Optional[datetime] = None) -> None:
        self._send(user.user_id, t("help"))

    def show_report(self, user: User, args: List[str], now: Optional[datetime] = None) -> None:
        today = local_now(user.timezone, now, user.user_id).date()
        totals = self.storage.get_daily_totals(user.user_id, today, user.timezone)
        self._send(user.user_id, format_daily_report(totals, DailyGoals.for_user(user)))

    def show_history(self, user: User, args: List[str], now: Optional[datetime] = None) -> None:
        meals = self.storage.get_recent_meals(user.user_id, HISTORY_SIZE)
        if not meals:
            self._send(user.user_id, t("history.empty"))
            return
        body = t("history.title", count=HISTORY_SIZE)
        for index, meal in enumerate(meals, start=1):
            when = utc_to_local(meal.created_at, user.timezone, user.user_id)
            body += t(
                "history.item",
                index=index,
                meal=t(f"meal.{meal.category.value}"),
                calories=meal.calories,
                description=html.escape(meal.description),
                when=when.strftime("%d.%m %H:%M"),
            )
        self._send(user.user_id, body.rstrip())

    def show_advice(self, user: User, args: List[str], now: Optional[datetime] = None) -> None:
        today = local_now(user.timezone, now, user.user_id).date()
        totals = self.storage.get_daily_totals(user.user_id, today, user.timezone)
        try:
            advice = self.ai.get_advice(totals, DailyGoals.for_user(user))
        except AIRateLimitError:
            self._send(user.user_id, t("advice.rate_limited"), message_type="error")
            return
        except AIServiceError as e:
            logger.error("Failed to get nutrition advice for user=%s: %s", user.user_id, e)
            self._send(user.user_id, t("advice.failed"), message_type="error")
            return
        self._send(user.user_id, html.escape(advice))

    def show_settings(self, user: User, args: List[str], now: Optional[datetime] = None) -> None:
        not_set = t("settings.not_set")

        def mark(enabled: bool) -> str:
            return "✅" if enabled else "❌"

        water_goal = user.daily_water_goal or 2000
        self._send(user.user_id, t(
            "settings.summary",
            breakfast=user.breakfast_time or not_set,
            breakfast_on=mark(user.breakfast_reminder),
            lunch=user.lunch_time or not_set,
            lunch_on=mark(user.lunch_reminder),
            dinner=user.dinner_time or not_set,
            dinner_on=mark(user.dinner_reminder),
            calorie_goal=user.daily_calorie_goal or 2000,
            water_goal=water_goal,
            water_litres=water_goal / 1000,
            water_on=mark(user.water_reminder),
            water_interval=user.water_reminder_interval or 120,
            silent_start=user.silent_hours_start or "23:00",
            silent_end=user.silent_hours_end or "07:00",
            timezone=html.escape(user.timezone or ""),
        ))

    def show_water_buttons(self, user: User, args: List[str], now: Optional[datetime] = None) -> None:
        logger.info("Sending water buttons to user=%s", user.user_id)
        self._send(user.user_id, t("water.buttons"), options=WATER_BUTTONS)

    # --- settings ----------------------------------------------------------

    def set_meal_time(self, user: User, args: List[str], now: Optional[datetime] = None) -> None:
        if len(args) < 2:
            self._send(user.user_id, t("time.usage"))
            return
        hhmm = normalize_hhmm(args[1])
        if hhmm is None:
            self._send(user.user_id, t("time.invalid"))
            return
        category = parse_meal_category(args[0])
        if category is None:
            self._send(user.user_id, t("time.invalid_meal"))
            return
        self.storage.update_meal_time(user.user_id, category, hhmm)
        display = t(f"meal.{category.value}")
        self._send(user.user_id, t("time.updated", meal=display, time=hhmm))

    def set_timezone(self, user: User, args: List[str], now: Optional[datetime] = None) -> None:
        if not args:
            self._send(user.user_id, t("tz.usage"))
            return
        tz_name = resolve_timezone(args[0])
        if tz_name is None:
            self._send(user.user_id, t("tz.invalid", tz=html.escape(args[0])))
            return
        self.storage.update_timezone(user.user_id, tz_name)
        logger.info("Timezone for user=%s set to %s", user.user_id, tz_name)
        self._send(user.user_id, t("tz.updated", tz=tz_name))

    def set_water_interval(self, user: User, args: List[str], now: Optional[datetime] = None) -> None:
        if not args:
            self._send(user.user_id, t("interval.usage"))
            return
        minutes = _parse_int(args[0])
        if minutes is None:
            self._send(user.user_id, t("interval.not_number", value=html.escape(args[0])))
            return
        if not 1 <= minutes <= 480:
            self._send(user.user_id, t("interval.out_of_range", value=minutes))
            return
        self.storage.update_water_reminder_interval(user.user_id, minutes)
        self._send(user.user_id, t("interval.updated", minutes=minutes, hours=minutes / 60))

    def set_water_goal(self, user: User, args: List[str], now: Optional[datetime] = None) -> None:
        if not args:
            self._send(user.user_id, t("water_goal.usage"))
            return
        goal = _parse_int(args[0])
        if goal is None:
            self._send(user.user_id, t("water_goal.not_number", value=html.escape(args[0])))
            return
        if not 500 <= goal <= 10000:
            self._send(user.user_id, t("water_goal.out_of_range", value=goal))
            return
        self.storage.update_water_goal(user.user_id, goal)
        self._send(user.user_id, t("water_goal.updated", goal=goal, litres=goal / 1000))

    def set_calorie_goal(self, user: User, args: List[str], now: Optional[datetime] = None) -> None:
        if not args:
            self._send(user.user_id, t("calorie_goal.current", goal=user.daily_calorie_goal or 2000))
            return
        goal = _parse_int(args[0])
        if goal is None:
            self._send(user.user_id, t("calorie_goal.not_number", value=html.escape(args[0])))
            return
        if not 500 <= goal <= 5000:
            self._send(user.user_id, t("calorie_goal.out_of_range"))
            return
        self.storage.update_calorie_goal(user.user_id, goal)
        self._send(user.user_id, t("calorie_goal.updated", goal=goal))

    def set_silent_hours(self, user: User, args: List[str], now: Optional[datetime] = None) -> None:
        if len(args) < 2:
            self._send(user.user_id, t(
                "silent.current",
                start=user.silent_hours_start or "23:00",
                end=user.silent_hours_end or "07:00",
            ))
            return
        start, end = normalize_hhmm(args[0]), normalize_hhmm(args[1])
        if start is None or end is None:
            self._send(user.user_id, t("silent.invalid"))
            return
        self.storage.update_silent_hours(user.user_id, start, end)
        self._send(user.user_id, t("silent.updated", start=start, end=end))

    # --- favourites --------------------------------------------------------

    def manage_favorites(self, user: User, args: List[str], now: Optional[datetime] = None) -> None:
        if not args:
            self._list_favorites(user)
            return

        subcommand = args[0].lower()
        if subcommand in ("ekle", "add"):
            self._add_favorite(user, args[1:])
        elif subcommand in ("sil", "delete", "remove"):
            self._delete_favorite(user, args[1:])
        elif subcommand in ("liste", "list"):
            self._list_favorites(user)
        else:
            self._send(user.user_id, t("fav.bad_subcommand"))

    def _list_favorites(self, user: User) -> None:
        favorites = self.storage.get_favorite_meals(user.user_id)
        if not favorites:
            self._send(user.user_id, t("fav.empty"))
            return
        body = t("fav.list_title")
        for fav in favorites:
            body += t(
                "fav.list_item",
                name=html.escape(fav.name),
                calories=fav.calories,
                description=html.escape(fav.description),
            )
        body += t("fav.list_footer")
        self._send(user.user_id, body)

    def _add_favorite(self, user: User, args: List[str]) -> None:
        if len(args) < 2:
            self._send(user.user_id, t("fav.add_usage"))
            return
        name = args[0].lower()
        if not _FAVORITE_NAME_RE.match(name):
            self._send(user.user_id, t("fav.invalid_name"))
            return
        if is_reserved_word(name):
            self._send(user.user_id, t("fav.reserved_name", name=html.escape(name)))
            return
        description = " ".join(args[1:])

        try:
            analysis = self.ai.analyze_meal_text(description)
            calories, description = analysis.calories, analysis.description
        except AIServiceError as e:
            logger.warning("Failed to analyze favorite meal calories for user=%s: %s", user.user_id, e)
            calories = 0.0

        self.storage.add_favorite_meal(user.user_id, name, description, calories)
        self._send(user.user_id, t(
            "fav.added",
            name=html.escape(name),
            calories=calories,
            description=html.escape(description),
        ))

    def _delete_favorite(self, user: User, args: List[str]) -> None:
        if not args:
            self._send(user.user_id, t("fav.delete_usage"))
            return
        name = args[0].lower()
        if self.storage.delete_favorite_meal(user.user_id, name):
            self._send(user.user_id, t("fav.deleted", name=html.escape(name)))
        else:
            self._send(user.user_id, t("fav.delete_missing", name=html.escape(name)))
