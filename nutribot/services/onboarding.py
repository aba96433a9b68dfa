"""
Onboarding: asks for breakfast, lunch and dinner times one message at a time.

The persisted ``onboarding_step`` is the only state; every write is committed
before the next prompt goes out, so the conversation resumes correctly after
a restart.
"""
from __future__ import annotations

import logging

from nutribot.models.meal_log import MealCategory
from nutribot.models.user import OnboardingStep, User
from nutribot.services.i18n import t
from nutribot.services.timeutils import format_hhmm, parse_loose_time
from nutribot.services.transport import send_logged

logger = logging.getLogger(__name__)

# step -> (meal asked in this step, next step, prompt for this step)
_STEPS = {
    OnboardingStep.AWAITING_BREAKFAST: (MealCategory.BREAKFAST, OnboardingStep.AWAITING_LUNCH, "onboarding.ask_breakfast"),
    OnboardingStep.AWAITING_LUNCH: (MealCategory.LUNCH, OnboardingStep.AWAITING_DINNER, "onboarding.ask_lunch"),
    OnboardingStep.AWAITING_DINNER: (MealCategory.DINNER, OnboardingStep.COMPLETE, "onboarding.ask_dinner"),
}


class OnboardingFlow:
    def __init__(self, storage, transport):
        self.storage = storage
        self.transport = transport

    def _send(self, user_id: str, body: str) -> None:
        send_logged(self.transport, self.storage, user_id, body)

    def handle(self, user: User, text: str) -> OnboardingStep:
        """Process one message from a user who has not finished onboarding.

        Returns the step the user is in afterwards.
        """
        step = user.onboarding_step or OnboardingStep.NONE
        if step not in _STEPS:
            # NONE, or COMPLETE on a row whose completion flag was never set
            return self.start(user)

        category, next_step, prompt_key = _STEPS[step]
        parsed = parse_loose_time(text)
        if parsed is None:
            logger.info("Invalid %s time from user=%s: %r", category.value, user.user_id, text)
            self._send(user.user_id, t("onboarding.invalid_time") + t(prompt_key))
            return step

        hhmm = format_hhmm(*parsed)
        self.storage.update_meal_time(user.user_id, category, hhmm)

        if next_step is OnboardingStep.COMPLETE:
            self.storage.complete_onboarding(user.user_id)
            logger.info("Onboarding completed for user=%s", user.user_id)
            self._send(user.user_id, t(
                "onboarding.complete",
                breakfast=user.breakfast_time or "",
                lunch=user.lunch_time or "",
                dinner=hhmm,
            ))
            return OnboardingStep.COMPLETE

        self.storage.update_onboarding_step(user.user_id, next_step)
        next_prompt = _STEPS[next_step][2]
        self._send(user.user_id, t(f"onboarding.{category.value}_saved", time=hhmm) + t(next_prompt))
        return next_step

    def start(self, user: User) -> OnboardingStep:
        self.storage.update_onboarding_step(user.user_id, OnboardingStep.AWAITING_BREAKFAST)
        logger.info("Onboarding started for user=%s", user.user_id)
        self._send(user.user_id, t("onboarding.welcome"))
        return OnboardingStep.AWAITING_BREAKFAST
