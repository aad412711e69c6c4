from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from fitcore.portal.session import SessionManager

logger = logging.getLogger(__name__)


REFRESH_INTERVAL_SECONDS = 60
REFRESH_WINDOW_SECONDS = 120


class TokenRefreshScheduler:
    """
    APScheduler manager for member access tokens.
    Refreshes tokens shortly before they expire, so signed-in members stay
    signed in between messages.
    """

    def __init__(self, sessions: SessionManager) -> None:
        self.sessions = sessions
        self.scheduler: AsyncIOScheduler | None = None

    async def start(self) -> None:
        """
        Initialize and start the scheduler.
        """
        self.scheduler = AsyncIOScheduler()

        self.scheduler.add_job(
            self._refresh_tokens,
            IntervalTrigger(seconds=REFRESH_INTERVAL_SECONDS),
            id="token_refresh",
            name="Member Token Refresh",
        )

        self.scheduler.start()
        logger.info("Token refresh scheduler started")

    async def stop(self) -> None:
        """
        Stop the scheduler gracefully.
        """
        if self.scheduler:
            self.scheduler.shutdown()
            logger.info("Token refresh scheduler stopped")

    async def _refresh_tokens(self) -> None:
        refreshed = await self.sessions.refresh_expiring(REFRESH_WINDOW_SECONDS)
        if refreshed:
            logger.debug("Refreshed %d member session(s)", refreshed)
