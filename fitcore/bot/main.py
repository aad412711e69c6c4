from __future__ import annotations

import asyncio

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.fsm.storage.memory import MemoryStorage

from fitcore.bot.handlers import setup_routers
from fitcore.bot.middlewares import SessionContextMiddleware
from fitcore.bot.scheduler import TokenRefreshScheduler
from fitcore.core import get_settings
from fitcore.core.logging import configure_logging
from fitcore.db import get_supabase_client
from fitcore.db.supabase import close_supabase_client
from fitcore.portal.session import AuthEvent, MemberSession, SessionManager


async def _run_bot() -> None:
    # Fails fast with RuntimeError when required configuration is missing
    settings = get_settings()
    logger = configure_logging()

    bot = Bot(
        token=settings.bot_token,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )

    sessions = SessionManager(get_supabase_client())

    def _log_auth_event(key: int, event: AuthEvent, session: MemberSession) -> None:
        logger.info("Auth event %s for %s (%s)", event.value, key, session.status.value)

    unsubscribe = sessions.subscribe(_log_auth_event)

    session_middleware = SessionContextMiddleware(sessions)
    dp = Dispatcher(storage=MemoryStorage())
    dp.message.middleware(session_middleware)
    dp.callback_query.middleware(session_middleware)
    dp.include_router(setup_routers())

    logger.info("Starting bot in %s environment", settings.environment)

    scheduler = TokenRefreshScheduler(sessions)
    await scheduler.start()

    try:
        await dp.start_polling(bot, allowed_updates=dp.resolve_used_update_types())
    finally:
        # Graceful shutdown
        await scheduler.stop()
        unsubscribe()
        await close_supabase_client()
        await bot.session.close()


def main() -> None:
    asyncio.run(_run_bot())


if __name__ == "__main__":
    main()
