"""Session sweeper — removes expired session rows in the background.

Nothing else deletes sessions that simply run out: verify-session only
cleans up the rows it happens to read. The sweeper runs
SessionService.delete_expired() on an interval so the table can't grow
without bound.

Runs as a long-lived task in the FastAPI lifespan. `tollgate
sweep-sessions` runs a single pass for cron-style deployments.

Usage:
    sweeper = SessionSweeper(interval_seconds=3600)
    asyncio.create_task(sweeper.run_loop())
"""

import asyncio
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tollgate.services.session_service import SessionService

logger = structlog.get_logger()


class SessionSweeper:
    """Periodic expired-session cleanup."""

    def __init__(
        self,
        interval_seconds: float = 3600.0,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    ):
        self.interval_seconds = interval_seconds
        self._session_factory = session_factory
        self._running = False

    def _factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            from tollgate.db.engine import async_session_factory

            self._session_factory = async_session_factory
        return self._session_factory

    async def sweep_once(self) -> int:
        """Delete expired rows in a fresh DB session. Returns the count."""
        async with self._factory()() as db:
            deleted = await SessionService(db).delete_expired()
        logger.info("sessions.swept", deleted=deleted)
        return deleted

    async def run_loop(self) -> None:
        """Sweep, sleep, repeat until stop() is called."""
        self._running = True
        logger.info("session_sweeper.started", interval_seconds=self.interval_seconds)

        while self._running:
            try:
                await self.sweep_once()
            except Exception:
                logger.exception("session_sweeper.error")
            await asyncio.sleep(self.interval_seconds)

    def stop(self) -> None:
        """Signal the sweeper to stop."""
        self._running = False
        logger.info("session_sweeper.stopping")
