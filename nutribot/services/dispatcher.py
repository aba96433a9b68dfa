from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from nutribot.services.ai import AIServiceError
from nutribot.services.commands import CommandRouter
from nutribot.services.i18n import t
from nutribot.services.onboarding import OnboardingFlow
from nutribot.services.timeutils import to_naive_utc
from nutribot.services.transport import TransportError
from nutribot.services.window import MessagingWindow

logger = logging.getLogger(__name__)

COLLABORATOR_ERRORS = (SQLAlchemyError, TransportError, AIServiceError)


class MessageDispatcher:
    """Entry point for every inbound message."""

    def __init__(self, storage, transport, ai):
        self.storage = storage
        self.transport = transport
        self.window = MessagingWindow(storage)
        self.onboarding = OnboardingFlow(storage, transport)
        self.router = CommandRouter(storage, transport, ai)

    def handle_message(
        self,
        user_id: str,
        text: Optional[str],
        has_media: bool = False,
        media_path: Optional[str] = None,
        now: Optional[datetime] = None,
    ):
        """Route one message; returns the onboarding step or router action, or None if ignored."""
        user_id = str(user_id)
        text = (text or "").strip()

        try:
            _, created = self.storage.ensure_user(user_id)
            if created:
                logger.info("First contact from user=%s", user_id)

            self.storage.log_conversation(
                user_id,
                "incoming",
                "image" if has_media else "text",
                text or media_path or "",
                {"media_path": media_path} if media_path else None,
                created_at=to_naive_utc(now),
            )
            self.window.clear(user_id)

            user = self.storage.require_user(user_id)
            if not user.is_active:
                logger.info("Ignoring message from inactive user=%s", user_id)
                return None

            if not user.onboarding_completed:
                logger.info("User %s in onboarding (step: %s)", user_id, user.onboarding_step)
                return self.onboarding.handle(user, text)

            return self.router.route(user, text, has_media=has_media, media_path=media_path, now=now)
        except COLLABORATOR_ERRORS:
            logger.exception("Failed to handle message from user=%s", user_id)
            self._send_error(user_id)
            return None

    def _send_error(self, user_id: str) -> None:
        try:
            self.transport.send_text(user_id, t("error.generic"))
        except TransportError as e:
            logger.error("Failed to send error notice to user=%s: %s", user_id, e)
