"""Matching engine: directional swipes reconciled into mutual matches."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Callable

from reddoor.core.locks import KeyedLock
from reddoor.core.ports import BlockChecker, Clock, NeverBlocked, SystemClock
from reddoor.core.results import ErrorCode, err, ok
from reddoor.gate.authorization import authorize, coerce_session
from reddoor.gate.models import USER_PREFIX
from reddoor.matching.models import (
    MatchingStateSnapshot,
    MatchRecord,
    RecordSwipeResult,
    SwipeRecord,
)

logger = logging.getLogger(__name__)

DIRECTIONS = frozenset({"like", "pass"})


def _is_valid_user_id(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def swipe_key(from_user_id: str, to_user_id: str) -> str:
    return f"{from_user_id}=>{to_user_id}"


def pair_key(user_a: str, user_b: str) -> str:
    """Order-independent key for an unordered user pair."""
    a, b = (user_a, user_b) if user_a < user_b else (user_b, user_a)
    return f"{a}::{b}"


class MatchingEngine:
    """
    Records swipes and maintains one match per unordered user pair.

    State lives in three maps keyed by canonical strings:
    - swipes by ordered pair ("from=>to"), last write wins
    - likes by ordered pair, the subset currently holding "like"
    - matches by unordered pair ("a::b"), created once and never removed

    Reconciliation for a pair runs under that pair's lock so two users
    liking each other at the same moment still produce a single match.
    """

    def __init__(
        self,
        clock: Clock | None = None,
        block_checker: BlockChecker | None = None,
        initial_state: MatchingStateSnapshot | None = None,
        on_state_changed: Callable[[MatchingStateSnapshot], None] | None = None,
        id_factory: Callable[[], str] | None = None,
    ):
        """
        Initialize matching engine.

        Args:
            clock: Time source (epoch ms)
            block_checker: Consulted before any swipe is stored
            initial_state: Snapshot to hydrate from
            on_state_changed: Best-effort persistence hook
            id_factory: Match id generator (uuid4 by default)
        """
        self.clock = clock or SystemClock()
        self.block_checker = block_checker or NeverBlocked()
        self._on_state_changed = on_state_changed
        self._new_id = id_factory or (lambda: str(uuid.uuid4()))

        self._swipes: dict[str, SwipeRecord] = {}
        self._likes: set[str] = set()
        self._matches: dict[str, MatchRecord] = {}
        self._matches_by_user: dict[str, set[str]] = {}
        self._pair_locks = KeyedLock()

        if initial_state is not None:
            self._hydrate(initial_state)

    def _hydrate(self, state: MatchingStateSnapshot) -> None:
        for swipe in sorted(state.swipes, key=lambda s: s.created_at_ms):
            if swipe.from_user_id == swipe.to_user_id:
                continue
            key = swipe_key(swipe.from_user_id, swipe.to_user_id)
            self._swipes[key] = swipe
            if swipe.direction == "like":
                self._likes.add(key)
            else:
                self._likes.discard(key)

        for match in sorted(state.matches, key=lambda m: m.created_at_ms):
            if match.user_a == match.user_b:
                continue
            if match.user_a > match.user_b:
                match = match.model_copy(
                    update={"user_a": match.user_b, "user_b": match.user_a}
                )
            key = pair_key(match.user_a, match.user_b)
            if key in self._matches:
                continue
            self._index_match(key, match)

        logger.info(
            f"[MATCHING] Hydrated {len(self._swipes)} swipes and "
            f"{len(self._matches)} matches"
        )

    def _index_match(self, key: str, match: MatchRecord) -> None:
        self._matches[key] = match
        self._matches_by_user.setdefault(match.user_a, set()).add(key)
        self._matches_by_user.setdefault(match.user_b, set()).add(key)

    def record_swipe(self, session: Any, to_user_id: Any, direction: Any):
        """
        Record a like or pass and reconcile a mutual match.

        Args:
            session: Caller session
            to_user_id: Target user id
            direction: "like" or "pass"

        Returns:
            Ok(RecordSwipeResult) or Err(ServiceError)
        """
        rejection = authorize(session, "swipe")
        if rejection is not None:
            return err(rejection.code, rejection.message, rejection.context)

        caller = coerce_session(session)
        from_user_id = caller.user_id.strip()

        if not _is_valid_user_id(to_user_id) or to_user_id.strip() == from_user_id:
            return err(ErrorCode.UNAUTHORIZED_ACTION, "Invalid swipe target.")
        target = to_user_id.strip()

        if direction not in DIRECTIONS:
            return err(ErrorCode.UNAUTHORIZED_ACTION, "Invalid swipe direction.")

        if self.block_checker.is_blocked(
            f"{USER_PREFIX}{from_user_id}", f"{USER_PREFIX}{target}"
        ):
            logger.info(f"[SWIPE] Blocked swipe {from_user_id} -> {target}")
            return err(ErrorCode.USER_BLOCKED, "You cannot interact with this user.")

        key = pair_key(from_user_id, target)
        with self._pair_locks.hold(key):
            now = self.clock.now_ms()
            swipe = SwipeRecord(
                from_user_id=from_user_id,
                to_user_id=target,
                direction=direction,
                created_at_ms=now,
            )
            forward = swipe_key(from_user_id, target)
            self._swipes[forward] = swipe

            if direction == "pass":
                self._likes.discard(forward)
                result = RecordSwipeResult(swipe=swipe, match_created=False)
            else:
                self._likes.add(forward)
                result = self._reconcile(swipe, key, now)

        self._notify_state_changed()
        return ok(result)

    def _reconcile(self, swipe: SwipeRecord, key: str, now: int) -> RecordSwipeResult:
        reverse = swipe_key(swipe.to_user_id, swipe.from_user_id)
        if reverse not in self._likes:
            return RecordSwipeResult(swipe=swipe, match_created=False)

        existing = self._matches.get(key)
        if existing is not None:
            return RecordSwipeResult(swipe=swipe, match_created=False, match=existing)

        user_a, user_b = sorted((swipe.from_user_id, swipe.to_user_id))
        match = MatchRecord(
            match_id=self._new_id(),
            user_a=user_a,
            user_b=user_b,
            created_at_ms=now,
        )
        self._index_match(key, match)
        logger.info(f"[MATCH] ✓ Match created {user_a} <-> {user_b} ({match.match_id})")
        return RecordSwipeResult(swipe=swipe, match_created=True, match=match)

    def list_matches(self, user_id: Any):
        """Return all matches involving the user, newest first."""
        if not _is_valid_user_id(user_id):
            return err(ErrorCode.UNAUTHORIZED_ACTION, "Invalid user.")

        keys = tuple(self._matches_by_user.get(user_id.strip(), ()))
        matches = [self._matches[k] for k in keys if k in self._matches]
        matches.sort(key=lambda m: m.created_at_ms, reverse=True)
        return ok(matches)

    def get_swipe(self, from_user_id: Any, to_user_id: Any) -> SwipeRecord | None:
        if not _is_valid_user_id(from_user_id) or not _is_valid_user_id(to_user_id):
            return None
        return self._swipes.get(swipe_key(from_user_id.strip(), to_user_id.strip()))

    def is_matched(self, user_a: Any, user_b: Any) -> bool:
        if not _is_valid_user_id(user_a) or not _is_valid_user_id(user_b):
            return False
        return pair_key(user_a.strip(), user_b.strip()) in self._matches

    def snapshot_state(self) -> MatchingStateSnapshot:
        return MatchingStateSnapshot(
            swipes=list(self._swipes.copy().values()),
            matches=list(self._matches.copy().values()),
        )

    def _notify_state_changed(self) -> None:
        if self._on_state_changed is None:
            return
        try:
            self._on_state_changed(self.snapshot_state())
        except Exception as e:
            # Persistence is best-effort; the swipe already committed in memory.
            logger.warning(f"[PERSIST] Matching state hook failed: {e}", exc_info=True)
