import asyncio
import logging
from typing import Optional

from nutribot.services.storage import OnboardingIncompleteError, UserNotFoundError

logger = logging.getLogger(__name__)


async def dispatch(engine, chat_id: int, text: str, has_media: bool = False, media_path: Optional[str] = None) -> None:
    """Run the synchronous message engine in a worker thread."""
    try:
        await asyncio.to_thread(engine.handle_message, str(chat_id), text, has_media, media_path)
    except (UserNotFoundError, OnboardingIncompleteError) as e:
        logger.error("Dropped message from chat_id=%s: %s", chat_id, e)
