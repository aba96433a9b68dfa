from __future__ import annotations

from nutribot.models.user import OnboardingStep
from nutribot.services.dispatcher import MessageDispatcher
from nutribot.services.onboarding import OnboardingFlow

USER = "905550000001"


def test_fresh_user_is_asked_for_breakfast(storage, transport, ai):
    engine = MessageDispatcher(storage, transport, ai)

    step = engine.handle_message(USER, "merhaba")

    assert step is OnboardingStep.AWAITING_BREAKFAST
    assert storage.require_user(USER).onboarding_step is OnboardingStep.AWAITING_BREAKFAST
    assert "Kahvaltı saatiniz nedir?" in transport.last


def test_valid_time_advances_and_persists(storage, transport, ai):
    engine = MessageDispatcher(storage, transport, ai)
    engine.handle_message(USER, "merhaba")

    engine.handle_message(USER, "09:00")

    user = storage.require_user(USER)
    assert user.breakfast_time == "09:00"
    assert user.onboarding_step is OnboardingStep.AWAITING_LUNCH
    assert "öğle yemeği saatinizi" in transport.last


def test_invalid_time_does_not_advance(storage, transport, ai):
    engine = MessageDispatcher(storage, transport, ai)
    engine.handle_message(USER, "merhaba")

    engine.handle_message(USER, "25:00")

    user = storage.require_user(USER)
    assert user.onboarding_step is OnboardingStep.AWAITING_BREAKFAST
    assert user.breakfast_time is None
    assert "Geçersiz saat formatı" in transport.last
    assert "Kahvaltı saatiniz nedir?" in transport.last


def test_loose_time_is_normalised(storage, transport, ai):
    engine = MessageDispatcher(storage, transport, ai)
    engine.handle_message(USER, "merhaba")

    engine.handle_message(USER, "8.30 gibi")

    assert storage.require_user(USER).breakfast_time == "08:30"


def test_full_flow_completes_onboarding(storage, transport, ai):
    engine = MessageDispatcher(storage, transport, ai)
    for text in ("merhaba", "08:00", "12:30", "19:45"):
        engine.handle_message(USER, text)

    user = storage.require_user(USER)
    assert user.onboarding_completed is True
    assert user.onboarding_step is OnboardingStep.COMPLETE
    assert (user.breakfast_time, user.lunch_time, user.dinner_time) == ("08:00", "12:30", "19:45")
    assert "Kurulum Tamamlandı" in transport.last
    assert "08:00" in transport.last and "12:30" in transport.last and "19:45" in transport.last

    # afterwards the router owns the conversation
    assert engine.handle_message(USER, "yardim") == "help"


def test_flow_resumes_from_persisted_step(storage, transport, ai):
    MessageDispatcher(storage, transport, ai).handle_message(USER, "merhaba")
    MessageDispatcher(storage, transport, ai).handle_message(USER, "09:00")

    # a new engine instance (process restart) continues with lunch
    step = MessageDispatcher(storage, transport, ai).handle_message(USER, "13:00")

    assert step is OnboardingStep.AWAITING_DINNER
    assert storage.require_user(USER).lunch_time == "13:00"


def test_inconsistent_complete_row_restarts_welcome(storage, transport):
    storage.create_user(USER)
    storage.update_onboarding_step(USER, OnboardingStep.COMPLETE)

    step = OnboardingFlow(storage, transport).handle(storage.require_user(USER), "10:00")

    assert step is OnboardingStep.AWAITING_BREAKFAST
    assert "Beslenme Takibine Başlıyoruz" in transport.last


def test_step_is_persisted_before_prompt_is_sent(storage, ai):
    seen_steps = []

    class RecordingTransport:
        def send_text(self, recipient, body):
            seen_steps.append(storage.require_user(recipient).onboarding_step)

    engine = MessageDispatcher(storage, RecordingTransport(), ai)
    engine.handle_message(USER, "merhaba")
    engine.handle_message(USER, "09:00")

    assert seen_steps == [OnboardingStep.AWAITING_BREAKFAST, OnboardingStep.AWAITING_LUNCH]
