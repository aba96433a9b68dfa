"""
Persistence for users, meal/water logs, favourites, conversation logs and
messaging-window warnings.

Every method opens its own session and commits before returning, so a write
is durable by the time the caller sends the next message.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, List, Optional, Set, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from nutribot.database import SessionLocal
from nutribot.models.conversation_log import ConversationLog, WindowWarning
from nutribot.models.meal_log import FavoriteMeal, MealCategory, MealLog, WaterLog
from nutribot.models.user import OnboardingStep, User
from nutribot.services.timeutils import day_bounds_utc, get_zone, utcnow

logger = logging.getLogger(__name__)


class UserNotFoundError(LookupError):
    """A user row that must exist is missing."""


class OnboardingIncompleteError(ValueError):
    """Onboarding cannot be marked complete while a meal time is unset."""


@dataclass
class DailyTotals:
    total_calories: float = 0.0
    meals_count: int = 0
    total_water_ml: int = 0
    water_logs_count: int = 0


@dataclass
class DailyGoals:
    calories: int = 2000
    water_ml: int = 2000

    @classmethod
    def for_user(cls, user: User) -> "DailyGoals":
        return cls(calories=user.daily_calorie_goal or 2000, water_ml=user.daily_water_goal or 2000)


class Storage:
    def __init__(self, session_factory=SessionLocal):
        self._session_factory = session_factory

    # --- users -------------------------------------------------------------

    def get_user(self, user_id: str) -> Optional[User]:
        with self._session_factory() as session:
            return session.query(User).filter(User.user_id == user_id).first()

    def require_user(self, user_id: str) -> User:
        user = self.get_user(user_id)
        if user is None:
            raise UserNotFoundError(f"User not found: {user_id}")
        return user

    def create_user(self, user_id: str, timezone: Optional[str] = None) -> User:
        with self._session_factory() as session:
            user = User(user_id=user_id)
            if timezone:
                user.timezone = timezone
            session.add(user)
            session.commit()
            logger.info("New user created: %s", user_id)
            return user

    def ensure_user(self, user_id: str) -> Tuple[User, bool]:
        """Return ``(user, created)``."""
        user = self.get_user(user_id)
        if user is not None:
            return user, False
        try:
            return self.create_user(user_id), True
        except IntegrityError:
            # created concurrently by another message
            return self.require_user(user_id), False

    def list_active_users(self) -> List[User]:
        with self._session_factory() as session:
            return session.query(User).filter(User.is_active.is_(True)).all()

    def list_all_users(self) -> List[User]:
        with self._session_factory() as session:
            return session.query(User).order_by(User.created_at).all()

    def _update_user(self, user_id: str, values: Dict) -> None:
        with self._session_factory() as session:
            updated = session.query(User).filter(User.user_id == user_id).update(values)
            if not updated:
                session.rollback()
                raise UserNotFoundError(f"User not found: {user_id}")
            session.commit()

    def update_onboarding_step(self, user_id: str, step: OnboardingStep) -> None:
        self._update_user(user_id, {User.onboarding_step: step})
        logger.debug("Onboarding step for %s -> %s", user_id, step.value)

    def update_meal_time(self, user_id: str, category: MealCategory, hhmm: str) -> None:
        if category not in (MealCategory.BREAKFAST, MealCategory.LUNCH, MealCategory.DINNER):
            raise ValueError(f"No configurable time for {category.value}")
        self._update_user(user_id, {f"{category.value}_time": hhmm})

    def complete_onboarding(self, user_id: str) -> None:
        with self._session_factory() as session:
            user = session.query(User).filter(User.user_id == user_id).with_for_update().first()
            if user is None:
                raise UserNotFoundError(f"User not found: {user_id}")
            if not (user.breakfast_time and user.lunch_time and user.dinner_time):
                raise OnboardingIncompleteError(f"Meal times incomplete for {user_id}")
            user.onboarding_step = OnboardingStep.COMPLETE
            user.onboarding_completed = True
            session.commit()

    def update_timezone(self, user_id: str, tz_name: str) -> None:
        self._update_user(user_id, {User.timezone: tz_name})

    def update_calorie_goal(self, user_id: str, goal_kcal: int) -> None:
        self._update_user(user_id, {User.daily_calorie_goal: goal_kcal})

    def update_water_goal(self, user_id: str, goal_ml: int) -> None:
        self._update_user(user_id, {User.daily_water_goal: goal_ml})

    def update_water_reminder_interval(self, user_id: str, minutes: int) -> None:
        self._update_user(user_id, {User.water_reminder_interval: minutes})

    def update_silent_hours(self, user_id: str, start: str, end: str) -> None:
        self._update_user(user_id, {User.silent_hours_start: start, User.silent_hours_end: end})

    def toggle_user_active(self, user_id: str) -> bool:
        with self._session_factory() as session:
            user = session.query(User).filter(User.user_id == user_id).with_for_update().first()
            if user is None:
                raise UserNotFoundError(f"User not found: {user_id}")
            user.is_active = not user.is_active
            session.commit()
            return user.is_active

    def reset_user(self, user_id: str) -> None:
        """Delete every log of the user and restart onboarding; the user row stays."""
        logger.info("Resetting user: %s", user_id)
        with self._session_factory() as session:
            if session.query(User).filter(User.user_id == user_id).first() is None:
                raise UserNotFoundError(f"User not found: {user_id}")
            for model in (MealLog, WaterLog, ConversationLog, FavoriteMeal, WindowWarning):
                session.query(model).filter(model.user_id == user_id).delete(synchronize_session=False)
            session.query(User).filter(User.user_id == user_id).update({
                User.onboarding_completed: False,
                User.onboarding_step: OnboardingStep.NONE,
                User.breakfast_time: None,
                User.lunch_time: None,
                User.dinner_time: None,
                User.daily_calorie_goal: 2000,
                User.daily_water_goal: 2000,
                User.is_active: True,
            })
            session.commit()

    # --- meals & water -----------------------------------------------------

    def add_meal(
        self,
        user_id: str,
        category: MealCategory,
        calories: float,
        description: str,
        image_path: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> int:
        with self._session_factory() as session:
            meal = MealLog(
                user_id=user_id,
                category=category,
                calories=calories,
                description=description,
                image_path=image_path,
                created_at=created_at or utcnow(),
            )
            session.add(meal)
            session.commit()
            return meal.id

    def add_water_log(self, user_id: str, amount_ml: int, created_at: Optional[datetime] = None) -> int:
        with self._session_factory() as session:
            log = WaterLog(user_id=user_id, amount_ml=amount_ml, created_at=created_at or utcnow())
            session.add(log)
            session.commit()
            return log.id

    def get_logged_meal_categories(self, user_id: str, day: date, tz_name: Optional[str]) -> Set[MealCategory]:
        """Categories logged on the user's local calendar ``day``."""
        start, end = day_bounds_utc(day, get_zone(tz_name, user_id))
        with self._session_factory() as session:
            rows = (
                session.query(MealLog.category)
                .filter(MealLog.user_id == user_id, MealLog.created_at >= start, MealLog.created_at < end)
                .distinct()
                .all()
            )
        return {row[0] for row in rows}

    def get_daily_totals(self, user_id: str, day: date, tz_name: Optional[str]) -> DailyTotals:
        start, end = day_bounds_utc(day, get_zone(tz_name, user_id))
        with self._session_factory() as session:
            calories, meals_count = (
                session.query(func.coalesce(func.sum(MealLog.calories), 0.0), func.count(MealLog.id))
                .filter(MealLog.user_id == user_id, MealLog.created_at >= start, MealLog.created_at < end)
                .one()
            )
            water, water_count = (
                session.query(func.coalesce(func.sum(WaterLog.amount_ml), 0), func.count(WaterLog.id))
                .filter(WaterLog.user_id == user_id, WaterLog.created_at >= start, WaterLog.created_at < end)
                .one()
            )
        return DailyTotals(
            total_calories=float(calories),
            meals_count=int(meals_count),
            total_water_ml=int(water),
            water_logs_count=int(water_count),
        )

    def get_daily_image_count(self, user_id: str, day: date, tz_name: Optional[str]) -> int:
        start, end = day_bounds_utc(day, get_zone(tz_name, user_id))
        with self._session_factory() as session:
            return (
                session.query(func.count(MealLog.id))
                .filter(
                    MealLog.user_id == user_id,
                    MealLog.image_path.isnot(None),
                    MealLog.created_at >= start,
                    MealLog.created_at < end,
                )
                .scalar()
                or 0
            )

    def get_recent_meals(self, user_id: str, limit: int = 5) -> List[MealLog]:
        with self._session_factory() as session:
            return (
                session.query(MealLog)
                .filter(MealLog.user_id == user_id)
                .order_by(MealLog.created_at.desc(), MealLog.id.desc())
                .limit(limit)
                .all()
            )

    def count_meals(self, user_id: str) -> int:
        with self._session_factory() as session:
            return session.query(func.count(MealLog.id)).filter(MealLog.user_id == user_id).scalar() or 0

    # --- favourites --------------------------------------------------------

    def add_favorite_meal(self, user_id: str, name: str, description: str, calories: float) -> None:
        """Insert or overwrite the favourite called ``name``."""
        with self._session_factory() as session:
            favorite = (
                session.query(FavoriteMeal)
                .filter(FavoriteMeal.user_id == user_id, FavoriteMeal.name == name)
                .first()
            )
            if favorite is None:
                favorite = FavoriteMeal(user_id=user_id, name=name)
                session.add(favorite)
            favorite.description = description
            favorite.calories = calories
            session.commit()

    def delete_favorite_meal(self, user_id: str, name: str) -> bool:
        with self._session_factory() as session:
            deleted = (
                session.query(FavoriteMeal)
                .filter(FavoriteMeal.user_id == user_id, FavoriteMeal.name == name)
                .delete(synchronize_session=False)
            )
            session.commit()
            return deleted > 0

    def get_favorite_meals(self, user_id: str) -> List[FavoriteMeal]:
        with self._session_factory() as session:
            return (
                session.query(FavoriteMeal)
                .filter(FavoriteMeal.user_id == user_id)
                .order_by(FavoriteMeal.name)
                .all()
            )

    def get_favorite_meal(self, user_id: str, name: str) -> Optional[FavoriteMeal]:
        with self._session_factory() as session:
            return (
                session.query(FavoriteMeal)
                .filter(FavoriteMeal.user_id == user_id, FavoriteMeal.name == name)
                .first()
            )

    # --- conversation log & messaging window -------------------------------

    def log_conversation(
        self,
        user_id: str,
        direction: str,
        message_type: str,
        content: str,
        metadata: Optional[Dict] = None,
        created_at: Optional[datetime] = None,
    ) -> None:
        with self._session_factory() as session:
            session.add(ConversationLog(
                user_id=user_id,
                direction=direction,
                message_type=message_type,
                content=content,
                extra=metadata,
                created_at=created_at or utcnow(),
            ))
            session.commit()

    def get_conversation_history(self, user_id: str, limit: int = 100) -> List[ConversationLog]:
        with self._session_factory() as session:
            return (
                session.query(ConversationLog)
                .filter(ConversationLog.user_id == user_id)
                .order_by(ConversationLog.created_at.desc(), ConversationLog.id.desc())
                .limit(limit)
                .all()
            )

    def get_conversation_count(self, user_id: str) -> int:
        with self._session_factory() as session:
            return (
                session.query(func.count(ConversationLog.id))
                .filter(ConversationLog.user_id == user_id)
                .scalar()
                or 0
            )

    def was_reminder_sent(self, user_id: str, reminder_type: str, start: datetime, end: datetime) -> bool:
        """Whether a ``reminder_type`` reminder was logged for the user in naive-UTC ``[start, end)``."""
        with self._session_factory() as session:
            rows = (
                session.query(ConversationLog.extra)
                .filter(
                    ConversationLog.user_id == user_id,
                    ConversationLog.direction == "outgoing",
                    ConversationLog.message_type == "reminder",
                    ConversationLog.created_at >= start,
                    ConversationLog.created_at < end,
                )
                .all()
            )
        return any((extra or {}).get("reminder_type") == reminder_type for (extra,) in rows)

    def get_last_inbound_at(self, user_id: str) -> Optional[datetime]:
        with self._session_factory() as session:
            return (
                session.query(func.max(ConversationLog.created_at))
                .filter(ConversationLog.user_id == user_id, ConversationLog.direction == "incoming")
                .scalar()
            )

    def get_window_warning(self, user_id: str) -> Optional[datetime]:
        with self._session_factory() as session:
            warning = session.get(WindowWarning, user_id)
            return warning.last_warned_at if warning else None

    def set_window_warning(self, user_id: str, warned_at: Optional[datetime] = None) -> None:
        with self._session_factory() as session:
            warning = session.get(WindowWarning, user_id)
            if warning is None:
                warning = WindowWarning(user_id=user_id)
                session.add(warning)
            warning.last_warned_at = warned_at or utcnow()
            session.commit()

    def clear_window_warning(self, user_id: str) -> None:
        with self._session_factory() as session:
            session.query(WindowWarning).filter(WindowWarning.user_id == user_id).delete(synchronize_session=False)
            session.commit()
