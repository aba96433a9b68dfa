from __future__ import annotations

import asyncio
import concurrent.futures
import logging
from typing import Optional, Sequence, Tuple

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError
from aiogram.types import InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

logger = logging.getLogger(__name__)

MAX_CHOICES = 10


class TransportError(RuntimeError):
    """The messaging provider rejected or did not receive a message."""


def build_choices_markup(options: Sequence[Tuple[str, str]]) -> InlineKeyboardMarkup:
    """Inline keyboard for ``(id, label)`` options, one button per row."""
    if not 1 <= len(options) <= MAX_CHOICES:
        raise ValueError(f"Expected 1-{MAX_CHOICES} options, got {len(options)}")
    kb = InlineKeyboardBuilder()
    for option_id, label in options:
        kb.button(text=label, callback_data=option_id)
    kb.adjust(1)
    return kb.as_markup()


class TelegramTransport:
    """
    Synchronous facade over the aiogram ``Bot``.

    The message engine and the reminder jobs run in worker threads; each send
    is submitted to the polling event loop and awaited from the calling
    thread. Never call it from the loop thread itself.
    """

    def __init__(self, bot: Bot, loop: asyncio.AbstractEventLoop, timeout: float = 10):
        self.bot = bot
        self.loop = loop
        self.timeout = timeout

    def _run(self, coro) -> None:
        future = asyncio.run_coroutine_threadsafe(coro, self.loop)
        try:
            future.result(timeout=self.timeout)
        except TelegramAPIError as e:
            raise TransportError(f"Telegram rejected the message: {e}") from e
        except concurrent.futures.TimeoutError as e:
            future.cancel()
            raise TransportError(f"Telegram did not answer within {self.timeout}s") from e

    def send_text(self, recipient: str, body: str) -> None:
        self._run(self.bot.send_message(chat_id=recipient, text=body))
        logger.info("Sent message to user=%s", recipient)

    def send_choices(self, recipient: str, body: str, options: Sequence[Tuple[str, str]]) -> None:
        markup = build_choices_markup(options)
        self._run(self.bot.send_message(chat_id=recipient, text=body, reply_markup=markup))
        logger.info("Sent %d choices to user=%s", len(options), recipient)


def send_logged(transport, storage, recipient: str, body: str, message_type: str = "response",
                options: Optional[Sequence[Tuple[str, str]]] = None, metadata: Optional[dict] = None,
                created_at=None) -> None:
    """Send ``body`` and record it in the conversation log once delivered."""
    if options:
        transport.send_choices(recipient, body, options)
    else:
        transport.send_text(recipient, body)
    storage.log_conversation(recipient, "outgoing", message_type, body, metadata, created_at=created_at)
