from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.types import CallbackQuery, Message, TelegramObject

from fitcore.portal.session import SessionManager


class SessionContextMiddleware(BaseMiddleware):
    """
    Middleware that attaches the caller's member session to handler data.

    The session manager is built once at startup and handed in here, so
    handlers receive both ``session`` and ``sessions`` as arguments.
    Works for both Message and CallbackQuery events.
    """

    def __init__(self, sessions: SessionManager) -> None:
        self._sessions = sessions

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        from_user = None
        if isinstance(event, (Message, CallbackQuery)):
            from_user = event.from_user

        data["sessions"] = self._sessions
        if from_user:
            data["session"] = await self._sessions.resolve(from_user.id)

        return await handler(event, data)
