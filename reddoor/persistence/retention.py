"""Periodic garbage collection of expired Cruise messages."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog

from reddoor.messaging.engine import MessagingEngine

logger = structlog.get_logger(__name__)


class RetentionSweeper:
    """
    Purges expired Cruise messages on an interval.

    Read paths already hide expired messages; the sweep removes them
    from threads nobody reads again.
    """

    def __init__(self, engine: MessagingEngine, interval_seconds: float = 3600):
        self.engine = engine
        self.interval_seconds = interval_seconds
        self._running = False
        self._task: Optional[asyncio.Task] = None

        self.total_sweeps = 0
        self.total_purged = 0
        self.last_sweep_at: Optional[datetime] = None

    async def sweep(self) -> Dict[str, Any]:
        """
        Run one sweep. The purge takes engine locks shared with request
        handlers, so it runs in a worker thread.

        Returns:
            Dictionary with sweep results
        """
        purged = await asyncio.to_thread(self.engine.purge_expired)
        self.total_sweeps += 1
        self.total_purged += purged
        self.last_sweep_at = datetime.now(timezone.utc)

        logger.info("retention.sweep", purged=purged, total_purged=self.total_purged)
        return {
            "action": "purge_expired_messages",
            "purged": purged,
            "swept_at": self.last_sweep_at.isoformat(),
        }

    async def start(self) -> None:
        if self._running:
            logger.warning("retention.already_running")
            return
        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info("retention.started", interval_seconds=self.interval_seconds)

    async def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("retention.stopped", total_sweeps=self.total_sweeps)

    async def _loop(self) -> None:
        while self._running:
            try:
                await asyncio.sleep(self.interval_seconds)
                await self.sweep()
            except asyncio.CancelledError:
                break
            except Exception as exc:
                logger.exception("retention.sweep_error", error=str(exc))
