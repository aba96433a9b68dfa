from aiogram import Router, types
from aiogram.filters import CommandStart

from nutribot.handlers.common import dispatch

router = Router()


@router.message(CommandStart())
async def cmd_start(message: types.Message, engine) -> None:
    # New users get the onboarding welcome; onboarded users get the command list
    await dispatch(engine, message.chat.id, "yardim")
