"""
Meal classification: decides whether a new entry is breakfast, lunch, dinner or a snack.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import time, timedelta
from typing import Iterable, Optional

from nutribot.models.meal_log import MealCategory
from nutribot.services.timeutils import is_within_time_range, parse_time_hhmm

logger = logging.getLogger(__name__)

MEAL_TOLERANCE = timedelta(hours=2)

DEFAULT_MEAL_TIMES = {
    MealCategory.BREAKFAST: time(9, 0),
    MealCategory.LUNCH: time(13, 0),
    MealCategory.DINNER: time(19, 0),
}

MAIN_MEALS = (MealCategory.BREAKFAST, MealCategory.LUNCH, MealCategory.DINNER)


def _to_time(value: Optional[str], default: time) -> time:
    parsed = parse_time_hhmm(value) if value else None
    return time(*parsed) if parsed else default


@dataclass(frozen=True)
class MealTimes:
    breakfast: time = DEFAULT_MEAL_TIMES[MealCategory.BREAKFAST]
    lunch: time = DEFAULT_MEAL_TIMES[MealCategory.LUNCH]
    dinner: time = DEFAULT_MEAL_TIMES[MealCategory.DINNER]

    @classmethod
    def from_strings(cls, breakfast: Optional[str], lunch: Optional[str], dinner: Optional[str]) -> "MealTimes":
        """Build from stored ``HH:MM`` values; unset or malformed ones use the defaults."""
        return cls(
            breakfast=_to_time(breakfast, DEFAULT_MEAL_TIMES[MealCategory.BREAKFAST]),
            lunch=_to_time(lunch, DEFAULT_MEAL_TIMES[MealCategory.LUNCH]),
            dinner=_to_time(dinner, DEFAULT_MEAL_TIMES[MealCategory.DINNER]),
        )

    @classmethod
    def for_user(cls, user) -> "MealTimes":
        return cls.from_strings(user.breakfast_time, user.lunch_time, user.dinner_time)


def classify_meal(
    meal_times: MealTimes,
    logged: Iterable[MealCategory],
    current: time,
    tolerance: timedelta = MEAL_TOLERANCE,
) -> MealCategory:
    """Category for a meal logged at ``current``.

    Main meals are expected in order (breakfast, lunch, dinner) and only
    inside their tolerance window; anything else is a snack.
    """
    logged = set(logged)
    has_breakfast = MealCategory.BREAKFAST in logged
    has_lunch = MealCategory.LUNCH in logged
    has_dinner = MealCategory.DINNER in logged

    if not has_breakfast and is_within_time_range(current, meal_times.breakfast, tolerance):
        category = MealCategory.BREAKFAST
    elif has_breakfast and not has_lunch and is_within_time_range(current, meal_times.lunch, tolerance):
        category = MealCategory.LUNCH
    elif has_breakfast and has_lunch and not has_dinner and is_within_time_range(current, meal_times.dinner, tolerance):
        category = MealCategory.DINNER
    else:
        category = MealCategory.SNACK

    logger.debug(
        "Classified meal at %s as %s (logged today: %s)",
        current.strftime("%H:%M"), category.value, sorted(c.value for c in logged),
    )
    return category


def parse_meal_category(word: str) -> Optional[MealCategory]:
    """Map a user-typed meal name (Turkish or English) to a main meal category."""
    return _MEAL_WORDS.get((word or "").lower())


_MEAL_WORDS = {
    "kahvalti": MealCategory.BREAKFAST,
    "kahvaltı": MealCategory.BREAKFAST,
    "breakfast": MealCategory.BREAKFAST,
    "ogle": MealCategory.LUNCH,
    "öğle": MealCategory.LUNCH,
    "lunch": MealCategory.LUNCH,
    "aksam": MealCategory.DINNER,
    "akşam": MealCategory.DINNER,
    "dinner": MealCategory.DINNER,
}
