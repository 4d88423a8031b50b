"""Token sweeper — deletes expired tokens in the background.

Learn: Expired tokens already fail validation, so sweeping is housekeeping,
not security. It runs as a background task in the FastAPI lifespan on
LIFTLOG_TOKEN_SWEEP_INTERVAL_SECONDS (0 disables it; then run
`liftlog revoke-expired` from cron instead). Each sweep gets its own DB
session and takes no locks, so it can overlap freely with validation.
"""

import asyncio
from typing import Callable, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from liftlog.auth.tokens import TokenService
from liftlog.db.engine import async_session_factory

logger = structlog.get_logger()


class TokenSweeper:
    """Background loop around TokenService.revoke_expired().

    Usage:
        sweeper = TokenSweeper(interval=3600)
        asyncio.create_task(sweeper.run_loop())
    """

    def __init__(
        self,
        interval: float,
        session_factory: Optional[Callable[[], AsyncSession]] = None,
    ):
        self.interval = interval
        self.session_factory = session_factory or async_session_factory
        self._running = False

    async def sweep_once(self) -> int:
        async with self.session_factory() as db:
            count = await TokenService(db).revoke_expired()
        logger.info("token_sweeper.swept", removed=count)
        return count

    async def run_loop(self) -> None:
        """Sweep, sleep, repeat until stop() is called."""
        self._running = True
        logger.info("token_sweeper.started", interval=self.interval)

        while self._running:
            try:
                await self.sweep_once()
            except Exception:
                logger.exception("token_sweeper.error")
            await asyncio.sleep(self.interval)

    def stop(self) -> None:
        """Signal the loop to stop after the current sleep."""
        self._running = False
        logger.info("token_sweeper.stopping")
