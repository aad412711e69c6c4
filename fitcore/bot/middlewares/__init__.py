"""
Middlewares for the Telegram bot.

Currently includes:
- SessionContextMiddleware: resolves the caller's member session.
"""

from .session_context import SessionContextMiddleware

__all__ = ["SessionContextMiddleware"]
