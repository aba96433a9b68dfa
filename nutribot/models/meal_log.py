"""
Meal and water logging models.
"""
import enum

from sqlalchemy import Column, DateTime, Enum, Float, ForeignKey, Integer, String, Text, UniqueConstraint

from nutribot.database import Base
from nutribot.services.timeutils import utcnow


class MealCategory(str, enum.Enum):
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"


class MealLog(Base):
    """Append-only log of meals a user ate."""
    __tablename__ = "meal_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), ForeignKey("users.user_id"), nullable=False, index=True)
    category = Column(
        Enum(MealCategory, native_enum=False, length=16, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    calories = Column(Float, nullable=False, default=0.0)
    description = Column(Text, nullable=False, default="")
    image_path = Column(String(255), nullable=True)  # set for photo entries
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)


class WaterLog(Base):
    """Append-only log of water intake."""
    __tablename__ = "water_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), ForeignKey("users.user_id"), nullable=False, index=True)
    amount_ml = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)


class FavoriteMeal(Base):
    """Named meal a user can log again with a single word."""
    __tablename__ = "favorite_meals"
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_favorite_user_name"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), ForeignKey("users.user_id"), nullable=False, index=True)
    name = Column(String(64), nullable=False)
    description = Column(Text, nullable=False)
    calories = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime, nullable=False, default=utcnow)
