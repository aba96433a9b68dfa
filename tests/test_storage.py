from __future__ import annotations

from datetime import date, datetime

import pytest

from nutribot.models.meal_log import MealCategory
from nutribot.models.user import OnboardingStep
from nutribot.services.storage import OnboardingIncompleteError, UserNotFoundError


def test_ensure_user_creates_once(storage):
    user, created = storage.ensure_user("u1")
    assert created is True
    assert user.timezone == "Europe/Istanbul"
    assert user.onboarding_step is OnboardingStep.NONE
    assert user.daily_water_goal == 2000

    _, created = storage.ensure_user("u1")
    assert created is False
    assert len(storage.list_all_users()) == 1


def test_complete_onboarding_requires_all_meal_times(storage):
    storage.create_user("u1")
    storage.update_meal_time("u1", MealCategory.BREAKFAST, "09:00")

    with pytest.raises(OnboardingIncompleteError):
        storage.complete_onboarding("u1")
    assert storage.require_user("u1").onboarding_completed is False


def test_updates_on_missing_user_raise(storage):
    with pytest.raises(UserNotFoundError):
        storage.update_water_goal("ghost", 2500)
    with pytest.raises(UserNotFoundError):
        storage.require_user("ghost")


def test_logged_categories_use_local_day(storage):
    storage.create_user("u1")
    # 22:30 UTC on the 9th is 01:30 on the 10th in Istanbul
    storage.add_meal("u1", MealCategory.SNACK, 150, "Kuruyemiş", created_at=datetime(2025, 3, 9, 22, 30))
    storage.add_meal("u1", MealCategory.DINNER, 700, "Köfte", created_at=datetime(2025, 3, 9, 17, 0))

    assert storage.get_logged_meal_categories("u1", date(2025, 3, 10), "Europe/Istanbul") == {MealCategory.SNACK}
    assert storage.get_logged_meal_categories("u1", date(2025, 3, 9), "Europe/Istanbul") == {MealCategory.DINNER}


def test_daily_totals(storage):
    storage.create_user("u1")
    when = datetime(2025, 3, 10, 10, 0)
    storage.add_meal("u1", MealCategory.BREAKFAST, 400, "Yumurta", created_at=when)
    storage.add_meal("u1", MealCategory.LUNCH, 650.5, "Pilav", image_path="a.jpg", created_at=when)
    storage.add_water_log("u1", 250, created_at=when)
    storage.add_water_log("u1", 500, created_at=when)

    totals = storage.get_daily_totals("u1", date(2025, 3, 10), "Europe/Istanbul")
    assert totals.total_calories == 1050.5
    assert totals.meals_count == 2
    assert totals.total_water_ml == 750
    assert totals.water_logs_count == 2
    assert storage.get_daily_image_count("u1", date(2025, 3, 10), "Europe/Istanbul") == 1


def test_favorite_add_overwrites(storage):
    storage.create_user("u1")
    storage.add_favorite_meal("u1", "fav1", "Pilav", 300)
    storage.add_favorite_meal("u1", "fav1", "Tavuklu pilav", 450)

    favorites = storage.get_favorite_meals("u1")
    assert [(f.name, f.description, f.calories) for f in favorites] == [("fav1", "Tavuklu pilav", 450)]
    assert storage.delete_favorite_meal("u1", "fav1") is True
    assert storage.delete_favorite_meal("u1", "fav1") is False


def test_window_warning_upsert_and_clear(storage):
    storage.create_user("u1")
    storage.set_window_warning("u1", datetime(2025, 3, 10, 8, 0))
    storage.set_window_warning("u1", datetime(2025, 3, 10, 9, 0))
    assert storage.get_window_warning("u1") == datetime(2025, 3, 10, 9, 0)

    storage.clear_window_warning("u1")
    assert storage.get_window_warning("u1") is None


def test_toggle_and_reset_user(storage, make_user):
    user = make_user("u1", daily_calorie_goal=2600)
    storage.add_water_log(user.user_id, 250)
    storage.add_favorite_meal(user.user_id, "fav1", "Pilav", 300)
    storage.log_conversation(user.user_id, "incoming", "text", "rapor")

    assert storage.toggle_user_active("u1") is False
    assert storage.list_active_users() == []

    storage.reset_user("u1")
    user = storage.require_user("u1")
    assert user.is_active is True
    assert user.onboarding_completed is False
    assert user.onboarding_step is OnboardingStep.NONE
    assert user.breakfast_time is None
    assert user.daily_calorie_goal == 2000
    assert storage.get_favorite_meals("u1") == []
    assert storage.get_conversation_count("u1") == 0
