"""Background writer that persists engine snapshots off the request path."""

from __future__ import annotations

import asyncio
import threading
from typing import Any, Optional

import structlog

from reddoor.matching.models import MatchingStateSnapshot
from reddoor.messaging.models import ChatStateSnapshot
from reddoor.persistence.stores import SnapshotStore

logger = structlog.get_logger(__name__)

CHAT = "chat"
MATCHING = "matching"


class SnapshotWriter:
    """
    Coalescing snapshot writer.

    Engines call ``submit_*`` synchronously from any thread right after a
    mutation commits. Only the latest snapshot per section is kept; the
    worker task wakes up, takes whatever is pending and writes it. A failed
    write is logged and counted, and the worker keeps running.

    A disabled section accepts no submissions. Startup disables a section
    whose stored state could not be read, so an empty engine never writes
    over history it failed to load.
    """

    def __init__(self, store: SnapshotStore):
        self.store = store
        self._pending: dict[str, Any] = {}
        self._pending_lock = threading.Lock()
        self._disabled: set[str] = set()
        self._wakeup: Optional[asyncio.Event] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._task: Optional[asyncio.Task] = None
        self._running = False

        self.writes = 0
        self.failures = 0
        self.last_error: Optional[str] = None

    @property
    def running(self) -> bool:
        return self._running

    def submit_chat(self, snapshot: ChatStateSnapshot) -> None:
        self._submit(CHAT, snapshot)

    def submit_matching(self, snapshot: MatchingStateSnapshot) -> None:
        self._submit(MATCHING, snapshot)

    def disable(self, section: str) -> None:
        """Drop pending and future snapshots for one section."""
        with self._pending_lock:
            self._disabled.add(section)
            self._pending.pop(section, None)
        logger.warning("snapshot_writer.section_disabled", section=section)

    def _submit(self, section: str, snapshot: Any) -> None:
        with self._pending_lock:
            if section in self._disabled:
                return
            self._pending[section] = snapshot
        if not self._running or self._loop is None or self._wakeup is None:
            return
        try:
            self._loop.call_soon_threadsafe(self._wakeup.set)
        except RuntimeError:
            logger.warning("snapshot_writer.loop_closed", section=section)

    async def start(self) -> None:
        if self._running:
            logger.warning("snapshot_writer.already_running")
            return
        self._loop = asyncio.get_running_loop()
        self._wakeup = asyncio.Event()
        self._running = True
        self._task = asyncio.create_task(self._run())
        # Anything submitted before start is written on the first pass.
        self._wakeup.set()
        logger.info("snapshot_writer.started")

    async def stop(self) -> None:
        """Stop the worker and write whatever is still pending."""
        if not self._running:
            return
        self._running = False
        # Let an in-flight flush finish; cancelling it would drop its batch.
        if self._wakeup is not None:
            self._wakeup.set()
        if self._task:
            await self._task
            self._task = None
        await self.flush()
        logger.info("snapshot_writer.stopped", writes=self.writes, failures=self.failures)

    async def _run(self) -> None:
        assert self._wakeup is not None
        while self._running:
            await self._wakeup.wait()
            self._wakeup.clear()
            await self.flush()

    async def flush(self) -> int:
        """
        Write all pending snapshots now.

        Returns:
            Number of sections written successfully
        """
        with self._pending_lock:
            batch = self._pending
            self._pending = {}

        written = 0
        for section, snapshot in batch.items():
            try:
                if section == CHAT:
                    await self.store.save_chat_state(snapshot)
                else:
                    await self.store.save_matching_state(snapshot)
            except Exception as exc:
                self.failures += 1
                self.last_error = str(exc)
                logger.error(
                    "snapshot_writer.write_failed",
                    section=section,
                    error=str(exc),
                    exc_info=True,
                )
                # Retried with the next wakeup unless a newer snapshot arrives.
                with self._pending_lock:
                    self._pending.setdefault(section, snapshot)
                continue
            self.writes += 1
            written += 1
        return written

    def get_status(self) -> dict:
        with self._pending_lock:
            pending = sorted(self._pending)
            disabled = sorted(self._disabled)
        return {
            "running": self._running,
            "writes": self.writes,
            "failures": self.failures,
            "pending": pending,
            "disabled": disabled,
            "last_error": self.last_error,
        }
