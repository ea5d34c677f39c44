from __future__ import annotations

import asyncio

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from condosplit.config import get_settings
from condosplit.db.repo import ConfigRepository, Database, set_global_repository
from condosplit.handlers import admin_router, basic_router, bills_router
from condosplit.logging import configure_logging, get_logger


async def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    bot = Bot(token=settings.bot_token, default=DefaultBotProperties(parse_mode=ParseMode.HTML))
    dp = Dispatcher()
    db = Database(settings.database_url)
    await db.connect()
    repo = ConfigRepository(db, settings.config_key)

    dp.include_router(basic_router)
    dp.include_router(admin_router)
    # last: it owns the catch-all text handler for amounts
    dp.include_router(bills_router)

    set_global_repository(repo)

    log = get_logger(__name__)
    log.info("bot.start", config_key=settings.config_key)
    try:
        await dp.start_polling(bot)
    finally:
        await db.close()
        await bot.session.close()
        log.info("bot.stop")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
