import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from nutribot import database, models  # noqa: F401  models registers the tables
from nutribot.config import LOG_LEVEL, TOKEN
from nutribot.handlers import start  # shared router; importing the package registers every handler
from nutribot.scheduler import ReminderScheduler
from nutribot.services.ai import OpenRouterClient
from nutribot.services.dispatcher import MessageDispatcher
from nutribot.services.reminders import ReminderService
from nutribot.services.storage import Storage
from nutribot.services.transport import TelegramTransport


async def main(handle_signals: bool = True):
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger("aiogram").setLevel(logging.INFO)

    if not TOKEN:
        logging.error("BOT_TOKEN is not set")
        return

    database.Base.metadata.create_all(bind=database.engine)

    storage = Storage()

    bot = Bot(
        token=TOKEN,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )
    # replies and reminders go out through the same Bot, on this loop
    transport = TelegramTransport(bot, asyncio.get_running_loop())
    dp = Dispatcher()
    dp.include_router(start.router)
    dp["engine"] = MessageDispatcher(storage, transport, OpenRouterClient())

    scheduler = ReminderScheduler(ReminderService(storage, transport))
    scheduler.start()

    logging.info("Bot started")
    try:
        await dp.start_polling(bot, handle_signals=handle_signals)
    finally:
        # a running tick may still be sending through this loop
        await asyncio.to_thread(scheduler.shutdown)
        await bot.session.close()
        logging.info("Bot stopped")


if __name__ == "__main__":
    asyncio.run(main())
