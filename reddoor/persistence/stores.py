"""Durable backends for engine snapshots.

Two backends share one async interface:

- ``JsonSnapshotStore``: a single versioned JSON file, written atomically.
- ``DatabaseSnapshotStore``: SQLAlchemy tables through a UnitOfWork.

Loads never raise on bad data: an unreadable file or a row that fails
validation hydrates as empty (or is skipped) and is logged.
"""

from __future__ import annotations

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Optional, Protocol

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from reddoor.matching.models import MatchingStateSnapshot
from reddoor.messaging.models import ChatStateSnapshot
from reddoor.persistence.snapshot import (
    SNAPSHOT_VERSION,
    dump_chat_state,
    dump_matching_state,
    parse_chat_state,
    parse_matching_state,
)

logger = structlog.get_logger(__name__)


class SnapshotStore(Protocol):
    async def load_chat_state(self) -> ChatStateSnapshot:
        ...

    async def save_chat_state(self, snapshot: ChatStateSnapshot) -> None:
        ...

    async def load_matching_state(self) -> MatchingStateSnapshot:
        ...

    async def save_matching_state(self, snapshot: MatchingStateSnapshot) -> None:
        ...


class JsonSnapshotStore:
    """
    Snapshot file shaped ``{"version": 1, "threads": [...], "readCursors":
    [...], "swipes": [...], "matches": [...]}``.

    Chat and matching sections are saved independently; each save reads
    the current file, replaces its own keys and rewrites it atomically.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = asyncio.Lock()

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as e:
            logger.error("snapshot.file.read_failed", path=str(self.path), error=str(e))
            return {}
        if not raw.strip():
            return {}
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error("snapshot.file.corrupt", path=str(self.path), error=str(e))
            return {}
        if not isinstance(parsed, dict) or parsed.get("version") != SNAPSHOT_VERSION:
            logger.warning("snapshot.file.unsupported_version", path=str(self.path))
            return {}
        return parsed

    def _write(self, payload: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{self.path.name}.", dir=str(self.path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(payload, fh)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def _merge(self, section: dict[str, Any]) -> None:
        payload = self._read()
        payload.update(section)
        payload["version"] = SNAPSHOT_VERSION
        self._write(payload)

    async def load_chat_state(self) -> ChatStateSnapshot:
        payload = await asyncio.to_thread(self._read)
        return parse_chat_state(payload)

    async def save_chat_state(self, snapshot: ChatStateSnapshot) -> None:
        async with self._lock:
            await asyncio.to_thread(self._merge, dump_chat_state(snapshot))

    async def load_matching_state(self) -> MatchingStateSnapshot:
        payload = await asyncio.to_thread(self._read)
        return parse_matching_state(payload)

    async def save_matching_state(self, snapshot: MatchingStateSnapshot) -> None:
        async with self._lock:
            await asyncio.to_thread(self._merge, dump_matching_state(snapshot))


class DatabaseSnapshotStore:
    """Snapshot store over the SQLAlchemy tables."""

    def __init__(self, session_factory: Optional[Callable[[], AsyncSession]] = None):
        self.session_factory = session_factory

    def _uow(self):
        # Deferred: importing reddoor.db creates the configured engine.
        from reddoor.db.unit_of_work import UnitOfWork

        return UnitOfWork(session_factory=self.session_factory)

    async def load_chat_state(self) -> ChatStateSnapshot:
        async with self._uow() as uow:
            return await uow.chat_state.load_state()

    async def save_chat_state(self, snapshot: ChatStateSnapshot) -> None:
        async with self._uow() as uow:
            await uow.chat_state.save_state(snapshot)

    async def load_matching_state(self) -> MatchingStateSnapshot:
        async with self._uow() as uow:
            return await uow.matching_state.load_state()

    async def save_matching_state(self, snapshot: MatchingStateSnapshot) -> None:
        async with self._uow() as uow:
            await uow.matching_state.save_state(snapshot)
