"""Block list service.

Blocks are directional edges ``blocker=>blocked`` but enforcement is
symmetric: if either side blocked the other, the pair cannot interact.
The service implements the BlockChecker port consumed by both engines.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from reddoor.core.ports import Clock, SystemClock
from reddoor.core.results import Err, ErrorCode, err, ok
from reddoor.gate.authorization import authorize, coerce_session
from reddoor.gate.models import derive_actor_key, normalize_actor_key, same_actor

logger = logging.getLogger(__name__)


class BlockRecord(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    blocker_key: str
    blocked_key: str
    created_at_ms: int


def _is_non_empty(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def edge_key(blocker_key: str, blocked_key: str) -> str:
    return f"{normalize_actor_key(blocker_key)}=>{normalize_actor_key(blocked_key)}"


class BlockService:
    """In-memory block list keyed by ActorKey."""

    def __init__(self, clock: Clock | None = None):
        self.clock = clock or SystemClock()
        self._edges: set[str] = set()
        self._by_blocker: dict[str, set[str]] = {}
        self._lock = threading.Lock()

    def _resolve(self, session: Any, target_key: Any):
        rejection = authorize(session, "block")
        if rejection is not None:
            return Err(error=rejection)
        if not _is_non_empty(target_key):
            return err(ErrorCode.UNAUTHORIZED_ACTION, "Invalid target.")
        return derive_actor_key(coerce_session(session)), normalize_actor_key(target_key)

    def block(self, session: Any, target_key: Any):
        """Block target_key for the caller. Blocking twice is a no-op."""
        resolved = self._resolve(session, target_key)
        if isinstance(resolved, Err):
            return resolved
        blocker_key, blocked_key = resolved
        if same_actor(blocker_key, blocked_key):
            return err(ErrorCode.UNAUTHORIZED_ACTION, "Invalid target.")

        with self._lock:
            self._edges.add(edge_key(blocker_key, blocked_key))
            self._by_blocker.setdefault(blocker_key, set()).add(blocked_key)

        logger.info(f"[BLOCK] {blocker_key} blocked {blocked_key}")
        return ok(
            BlockRecord(
                blocker_key=blocker_key,
                blocked_key=blocked_key,
                created_at_ms=self.clock.now_ms(),
            )
        )

    def unblock(self, session: Any, target_key: Any):
        resolved = self._resolve(session, target_key)
        if isinstance(resolved, Err):
            return resolved
        blocker_key, blocked_key = resolved

        with self._lock:
            self._edges.discard(edge_key(blocker_key, blocked_key))
            blocked = self._by_blocker.get(blocker_key)
            if blocked is not None:
                blocked.discard(blocked_key)
                if not blocked:
                    del self._by_blocker[blocker_key]
        return ok(None)

    def is_blocked(self, from_key: Any, to_key: Any) -> bool:
        if not _is_non_empty(from_key) or not _is_non_empty(to_key):
            return False
        with self._lock:
            return (
                edge_key(from_key, to_key) in self._edges
                or edge_key(to_key, from_key) in self._edges
            )

    def list_blocked(self, blocker_key: Any) -> list[str]:
        if not _is_non_empty(blocker_key):
            return []
        with self._lock:
            return sorted(self._by_blocker.get(normalize_actor_key(blocker_key), ()))
