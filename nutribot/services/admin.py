from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, List, Optional

from nutribot.models.conversation_log import ConversationLog
from nutribot.models.meal_log import MealLog
from nutribot.models.user import User
from nutribot.services.timeutils import local_now, utc_to_local

logger = logging.getLogger(__name__)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() + "Z" if value else None


def user_to_dict(user: User) -> Dict:
    return {
        "user_id": user.user_id,
        "timezone": user.timezone,
        "created_at": _iso(user.created_at),
        "onboarding_completed": user.onboarding_completed,
        "onboarding_step": user.onboarding_step.value if user.onboarding_step else None,
        "breakfast_time": user.breakfast_time,
        "lunch_time": user.lunch_time,
        "dinner_time": user.dinner_time,
        "daily_calorie_goal": user.daily_calorie_goal,
        "daily_water_goal": user.daily_water_goal,
        "water_reminder_interval": user.water_reminder_interval,
        "silent_hours_start": user.silent_hours_start,
        "silent_hours_end": user.silent_hours_end,
        "is_active": user.is_active,
    }


def meal_to_dict(meal: MealLog) -> Dict:
    return {
        "id": meal.id,
        "category": meal.category.value,
        "calories": meal.calories,
        "description": meal.description,
        "image_path": meal.image_path,
        "created_at": _iso(meal.created_at),
    }


def conversation_to_dict(entry: ConversationLog) -> Dict:
    return {
        "id": entry.id,
        "direction": entry.direction,
        "message_type": entry.message_type,
        "content": entry.content,
        "metadata": entry.extra,
        "created_at": _iso(entry.created_at),
    }


class AdminService:
    """Aggregates per-user statistics for the admin API."""

    def __init__(self, storage):
        self.storage = storage

    def get_user_stats(self, now: Optional[datetime] = None) -> List[Dict]:
        stats = []
        for user in self.storage.list_all_users():
            today = local_now(user.timezone, now, user.user_id).date()
            daily = self.storage.get_daily_totals(user.user_id, today, user.timezone)
            history = self.storage.get_conversation_history(user.user_id, limit=1)
            last_activity = history[0].created_at if history else None
            stats.append({
                "user": user_to_dict(user),
                "total_meals": self.storage.count_meals(user.user_id),
                "total_conversations": self.storage.get_conversation_count(user.user_id),
                "total_calories_today": daily.total_calories,
                "total_water_today": daily.total_water_ml,
                "meals_today": daily.meals_count,
                "last_activity": _iso(last_activity),
                "active_today": bool(
                    last_activity and utc_to_local(last_activity, user.timezone, user.user_id).date() == today
                ),
            })
        return stats

    def get_dashboard_data(self, now: Optional[datetime] = None) -> Dict:
        users = self.get_user_stats(now)
        return {
            "total_users": len(users),
            "active_users_today": sum(1 for s in users if s["active_today"]),
            "total_meals_today": sum(s["meals_today"] for s in users),
            "total_conversations": sum(s["total_conversations"] for s in users),
            "users": users,
        }

    def get_user_meals(self, user_id: str, limit: int = 50) -> List[Dict]:
        return [meal_to_dict(m) for m in self.storage.get_recent_meals(user_id, limit)]

    def get_user_conversations(self, user_id: str, limit: int = 100) -> List[Dict]:
        return [conversation_to_dict(c) for c in self.storage.get_conversation_history(user_id, limit)]

    def toggle_user_active(self, user_id: str) -> bool:
        active = self.storage.toggle_user_active(user_id)
        logger.info("Admin toggled user=%s active=%s", user_id, active)
        return active

    def reset_user(self, user_id: str) -> None:
        self.storage.reset_user(user_id)
        logger.info("Admin reset user=%s", user_id)
