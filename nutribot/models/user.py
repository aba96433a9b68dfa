# nutribot/models/user.py
import enum

from sqlalchemy import Boolean, Column, DateTime, Enum, Integer, String

from nutribot.database import Base
from nutribot.services.timeutils import utcnow


class OnboardingStep(str, enum.Enum):
    NONE = "none"
    AWAITING_BREAKFAST = "awaiting_breakfast"
    AWAITING_LUNCH = "awaiting_lunch"
    AWAITING_DINNER = "awaiting_dinner"
    COMPLETE = "complete"


class User(Base):
    __tablename__ = "users"

    user_id = Column(String(64), primary_key=True)  # phone number or chat id
    timezone = Column(String(64), nullable=False, default="Europe/Istanbul")
    created_at = Column(DateTime, nullable=False, default=utcnow)

    # onboarding
    onboarding_completed = Column(Boolean, nullable=False, default=False)
    onboarding_step = Column(
        Enum(OnboardingStep, native_enum=False, length=32, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=OnboardingStep.NONE,
    )
    breakfast_time = Column(String(5), nullable=True)  # HH:MM
    lunch_time = Column(String(5), nullable=True)      # HH:MM
    dinner_time = Column(String(5), nullable=True)     # HH:MM

    # reminders
    breakfast_reminder = Column(Boolean, nullable=False, default=True)
    lunch_reminder = Column(Boolean, nullable=False, default=True)
    dinner_reminder = Column(Boolean, nullable=False, default=True)
    water_reminder = Column(Boolean, nullable=False, default=True)
    water_reminder_interval = Column(Integer, nullable=False, default=120)  # minutes
    silent_hours_start = Column(String(5), nullable=False, default="23:00")
    silent_hours_end = Column(String(5), nullable=False, default="07:00")

    # goals
    daily_calorie_goal = Column(Integer, nullable=False, default=2000)
    daily_water_goal = Column(Integer, nullable=False, default=2000)

    is_active = Column(Boolean, nullable=False, default=True)

    def meal_time(self, category: str):
        return getattr(self, f"{category}_time", None)

    def reminder_enabled(self, category: str) -> bool:
        return bool(getattr(self, f"{category}_reminder", False))
