import logging
import os

from aiogram import Bot, F, types

from nutribot.config import MEDIA_DIR
from nutribot.handlers.common import dispatch
from .start import router

logger = logging.getLogger(__name__)


@router.message(F.photo)
async def on_photo(message: types.Message, bot: Bot, engine) -> None:
    photo = message.photo[-1]
    os.makedirs(MEDIA_DIR, exist_ok=True)
    path = os.path.join(MEDIA_DIR, f"{message.chat.id}_{photo.file_unique_id}.jpg")
    await bot.download(photo, destination=path)
    logger.info("Saved photo from chat_id=%s to %s", message.chat.id, path)
    await dispatch(engine, message.chat.id, message.caption or "", has_media=True, media_path=path)


@router.message(F.text)
async def on_text(message: types.Message, engine) -> None:
    await dispatch(engine, message.chat.id, message.text)


@router.callback_query(F.data.startswith("water_"))
async def on_water_button(call: types.CallbackQuery, engine) -> None:
    amount = call.data.split("_", 1)[1]
    await call.answer()
    if not amount.isdigit():
        logger.warning("Unexpected water button %r from chat_id=%s", call.data, call.from_user.id)
        return
    await dispatch(engine, call.message.chat.id, f"{amount} ml içtim")
