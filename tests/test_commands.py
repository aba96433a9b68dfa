from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from nutribot.models.meal_log import MealCategory
from nutribot.services.commands import (
    ALIASES,
    WATER_BUTTONS,
    CommandRouter,
    is_water_intent,
    parse_water_amount,
    strip_command_marker,
)
from nutribot.services.dispatcher import MessageDispatcher
from nutribot.services.i18n import t


@pytest.fixture
def router(storage, transport, ai):
    return CommandRouter(storage, transport, ai)


@pytest.mark.parametrize("text,expected", [
    ("250 ml içtim", 250),
    ("500ml", 500),
    ("2 bardak su içtim", 500),
    ("bir bardak su içtim", 250),
    ("1 litre su içtim", 1000),
    ("1,5 lt su içtim", 1500),
    ("su içtim", 200),
    ("9999 ml içtim", 200),
])
def test_parse_water_amount(text, expected):
    assert parse_water_amount(text) == expected


@pytest.mark.parametrize("text,expected", [
    ("250 ml içtim", True),
    ("su içtim", True),
    ("300ml", True),
    ("su", False),
    ("suhedefi 3000", False),
    ("bugün çok güzel bir öğle yemeği yedim 200ml", False),
])
def test_water_intent(text, expected):
    assert is_water_intent(text) is expected


def test_strip_command_marker():
    assert strip_command_marker("/rapor") == "rapor"
    assert strip_command_marker("!rapor") == "rapor"
    assert strip_command_marker("  rapor ") == "rapor"


def test_alias_table_is_unambiguous():
    assert ALIASES["özet"] == "report"
    assert ALIASES["?"] == "help"
    assert ALIASES["su"] == "water_buttons"
    assert ALIASES["fav"] == "favorites"
    assert ALIASES["öğün"] == "meal_log"


def test_water_message_logs_one_entry(storage, transport, make_user, router, now):
    user = make_user()

    action = router.route(user, "250 ml içtim", now=now)

    totals = storage.get_daily_totals(user.user_id, now.date(), user.timezone)
    assert action == "water_log"
    assert totals.total_water_ml == 250
    assert totals.water_logs_count == 1
    assert "250 ml kaydedildi" in transport.last
    assert "Kalan: 1750 ml" in transport.last


@pytest.mark.parametrize("preset,amount", [("1", 200), ("2", 250), ("3", 500)])
def test_quick_water_presets(storage, make_user, router, now, preset, amount):
    user = make_user()
    router.route(user, preset, now=now)
    assert storage.get_daily_totals(user.user_id, now.date(), user.timezone).total_water_ml == amount


def test_su_shows_water_buttons(transport, make_user, router):
    user = make_user()
    assert router.route(user, "su") == "water_buttons"
    assert transport.sent[-1][2] == WATER_BUTTONS


def test_water_goal_update_and_validation(storage, transport, make_user, router):
    user = make_user()

    router.route(user, "suhedefi 3000")
    assert storage.require_user(user.user_id).daily_water_goal == 3000

    router.route(user, "suhedefi 50")
    assert storage.require_user(user.user_id).daily_water_goal == 3000
    assert "500-10000" in transport.last

    router.route(user, "suhedefi çok")
    assert "Geçersiz sayı" in transport.last


def test_calorie_goal(storage, transport, make_user, router):
    user = make_user()

    router.route(user, "/kalorihedefi")
    assert "Mevcut hedefiniz: 2000 kcal" in transport.last

    router.route(user, "kalorihedefi 2500")
    assert storage.require_user(user.user_id).daily_calorie_goal == 2500

    router.route(user, "kalorihedefi 9000")
    assert "500-5000" in transport.last
    router.route(user, "kalorihedefi abc")
    assert "Geçersiz sayı" in transport.last
    assert storage.require_user(user.user_id).daily_calorie_goal == 2500


def test_water_interval_range(storage, transport, make_user, router):
    user = make_user()
    router.route(user, "suaraligi 90")
    assert storage.require_user(user.user_id).water_reminder_interval == 90
    router.route(user, "suaraligi 600")
    assert "1-480" in transport.last
    assert storage.require_user(user.user_id).water_reminder_interval == 90


def test_meal_time_command(storage, transport, make_user, router):
    user = make_user()

    router.route(user, "saat kahvalti 7:30")
    assert storage.require_user(user.user_id).breakfast_time == "07:30"

    router.route(user, "saat brunch 10:00")
    assert "Geçersiz öğün tipi" in transport.last
    router.route(user, "saat aksam 25:00")
    assert "Geçersiz saat formatı" in transport.last
    router.route(user, "saat")
    assert "Kullanım" in transport.last


def test_timezone_command_is_case_insensitive(storage, transport, make_user, router):
    user = make_user()

    router.route(user, "timezone america/new_york")
    assert storage.require_user(user.user_id).timezone == "America/New_York"

    router.route(user, "tz Mars/Base")
    assert "Geçersiz zaman dilimi" in transport.last
    assert storage.require_user(user.user_id).timezone == "America/New_York"


def test_silent_hours_command(storage, transport, make_user, router):
    user = make_user()

    router.route(user, "sessiz")
    assert "23:00 - 07:00" in transport.last

    router.route(user, "sessiz 22:00 6:00")
    user = storage.require_user(user.user_id)
    assert (user.silent_hours_start, user.silent_hours_end) == ("22:00", "06:00")

    router.route(user, "sessiz 22 06")
    assert "Geçersiz saat formatı" in transport.last


def test_unknown_text_gets_help(transport, make_user, router):
    user = make_user()
    assert router.route(user, "nasılsın") == "help"
    assert "Beslenme Takip Botu" in transport.last


def test_report_and_settings(storage, transport, make_user, router, now):
    user = make_user()
    router.route(user, "500 ml içtim", now=now)

    router.route(user, "RAPOR", now=now)
    assert "Günlük Rapor" in transport.last
    assert "500/2000 ml (25%)" in transport.last

    router.route(user, "ayarlar")
    assert "Kahvaltı: 09:00 ✅" in transport.last
    assert "Europe/Istanbul" in transport.last


def test_text_meal_is_classified_and_logged(storage, transport, ai, make_user, router, now):
    user = make_user(breakfast="11:00")  # now is 12:00 local

    action = router.route(user, "ogun tavuk göğsü ve salata", now=now)

    assert action == "meal_log"
    assert ("text", "tavuk göğsü ve salata") in ai.calls
    logged = storage.get_logged_meal_categories(user.user_id, now.date(), user.timezone)
    assert logged == {MealCategory.BREAKFAST}
    assert "Kahvaltı Kaydedildi" in transport.last
    assert "450 kcal" in transport.last


def test_text_meal_ai_failure(storage, transport, ai, make_user, router, now):
    user = make_user()
    ai.fail()

    router.route(user, "ogun makarna", now=now)

    assert storage.count_meals(user.user_id) == 0
    assert "Analiz yapılamadı" in transport.last


def test_meal_image_respects_daily_limit(storage, transport, ai, make_user, router, now):
    user = make_user()
    for i in range(20):
        storage.add_meal(user.user_id, MealCategory.SNACK, 100, "x", image_path=f"m{i}.jpg",
                         created_at=now.replace(tzinfo=None) - timedelta(minutes=i))

    router.route(user, "", has_media=True, media_path="media/new.jpg", now=now)

    assert "Günlük resim limiti" in transport.last
    assert ai.calls == []


def test_meal_image_is_analysed(storage, transport, ai, make_user, router, now):
    user = make_user()

    assert router.route(user, "", has_media=True, media_path="media/lunch.jpg", now=now) == "meal_image"

    meals = storage.get_recent_meals(user.user_id)
    assert len(meals) == 1
    assert meals[0].image_path == "media/lunch.jpg"
    assert "Resim: 1/20" in transport.last


def test_history_lists_recent_meals(storage, transport, make_user, router, now):
    user = make_user()
    router.route(user, "gecmis")
    assert "Henüz kayıtlı öğün yok" in transport.last

    storage.add_meal(user.user_id, MealCategory.LUNCH, 600, "Mercimek çorbası", created_at=now.replace(tzinfo=None))
    router.route(user, "geçmiş")
    assert "Mercimek çorbası" in transport.last
    assert "10.03 12:00" in transport.last


def test_advice_failure_is_reported(transport, ai, make_user, router, now):
    user = make_user()
    router.route(user, "tavsiye", now=now)
    assert transport.last == ai.advice

    ai.fail()
    router.route(user, "tavsiye", now=now)
    assert "tavsiye alınamıyor" in transport.last


def test_favorites_lifecycle(storage, transport, ai, make_user, router, now):
    user = make_user()

    router.route(user, "favori")
    assert "Henüz favori yok" in transport.last

    router.route(user, "favori ekle Fav1 Tavuklu pilav")
    favorite = storage.get_favorite_meal(user.user_id, "fav1")
    assert favorite is not None and favorite.calories == 450.0

    assert router.route(user, "fav1", now=now) == "favorite_quick"
    assert storage.count_meals(user.user_id) == 1

    router.route(user, "favori sil fav1")
    assert storage.get_favorite_meal(user.user_id, "fav1") is None
    assert router.route(user, "fav1") == "favorite_missing"
    assert "bulunamadı" in transport.last


def test_favorite_add_falls_back_to_zero_calories(storage, ai, make_user, router):
    user = make_user()
    ai.fail()

    router.route(user, "favori ekle kahvem sütlü kahve")

    favorite = storage.get_favorite_meal(user.user_id, "kahvem")
    assert favorite.calories == 0.0
    assert favorite.description == "sütlü kahve"


def test_favorite_name_validation(storage, transport, make_user, router):
    user = make_user()
    router.route(user, "favori ekle fav-1 pilav")
    assert "sadece harf" in transport.last
    assert storage.get_favorite_meals(user.user_id) == []


def test_inactive_user_is_ignored(storage, transport, ai, make_user):
    user = make_user(is_active=False)
    engine = MessageDispatcher(storage, transport, ai)

    assert engine.handle_message(user.user_id, "rapor") is None
    assert transport.sent == []
    # the inbound message is still recorded
    assert storage.get_conversation_count(user.user_id) == 1


def test_storage_outage_on_first_call_gets_generic_reply(storage, transport, ai, monkeypatch):
    def unavailable(user_id):
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    monkeypatch.setattr(storage, "ensure_user", unavailable)
    engine = MessageDispatcher(storage, transport, ai)

    assert engine.handle_message("905551112233", "rapor") is None
    assert transport.bodies("905551112233") == [t("error.generic")]


@pytest.mark.parametrize("name", ["rapor", "Su", "fav", "1", "200ml"])
def test_favorite_name_cannot_shadow_a_command(storage, transport, ai, make_user, router, name):
    user = make_user()

    router.route(user, f"favori ekle {name} Tavuklu pilav")

    assert "komut" in transport.last
    assert storage.get_favorite_meals(user.user_id) == []
    assert ai.calls == []
