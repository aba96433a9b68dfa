from __future__ import annotations

from datetime import datetime, timedelta, timezone

from nutribot.services.dispatcher import MessageDispatcher
from nutribot.services.window import MessagingWindow

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def _inbound(storage, user_id, hours_ago):
    storage.log_conversation(
        user_id, "incoming", "text", "merhaba",
        created_at=(NOW - timedelta(hours=hours_ago)).replace(tzinfo=None),
    )


def test_never_engaged_user_is_not_warned(storage):
    storage.create_user("u1")
    window = MessagingWindow(storage)

    assert window.hours_since_last_inbound("u1", NOW) is None
    assert window.needs_warning("u1", NOW) is False


def test_thresholds(storage):
    storage.create_user("u1")
    window = MessagingWindow(storage)

    _inbound(storage, "u1", 20)
    assert window.hours_since_last_inbound("u1", NOW) == 20
    assert window.needs_warning("u1", NOW) is True

    assert window.needs_warning("u1", NOW - timedelta(minutes=1)) is False  # 19h59m
    assert window.needs_warning("u1", NOW + timedelta(hours=4)) is False  # 24h


def test_outgoing_messages_do_not_count(storage):
    storage.create_user("u1")
    _inbound(storage, "u1", 21)
    storage.log_conversation("u1", "outgoing", "reminder", "💧", created_at=NOW.replace(tzinfo=None))

    assert MessagingWindow(storage).hours_since_last_inbound("u1", NOW) == 21


def test_rewarn_suppressed_for_four_hours(storage):
    storage.create_user("u1")
    window = MessagingWindow(storage)
    window.mark_warned("u1", NOW)

    assert window.was_recently_warned("u1", NOW + timedelta(hours=3, minutes=59)) is True
    assert window.was_recently_warned("u1", NOW + timedelta(hours=4)) is False


def test_inbound_message_clears_warning(storage, transport, ai):
    storage.create_user("u1")
    window = MessagingWindow(storage)
    window.mark_warned("u1", NOW)

    MessageDispatcher(storage, transport, ai).handle_message("u1", "merhaba", now=NOW)

    assert storage.get_window_warning("u1") is None
    assert window.hours_since_last_inbound("u1", NOW) == 0
