"""Tolerant parsing of persisted engine state.

Every thread, message, cursor, swipe and match row is validated on its
own. Malformed rows are dropped and counted; they never abort hydration
of their valid siblings.
"""

from __future__ import annotations

import math
from typing import Any, Mapping

import structlog
from pydantic import ValidationError

from reddoor.matching.models import MatchingStateSnapshot, MatchRecord, SwipeRecord
from reddoor.messaging.models import (
    ChatMessage,
    ChatStateSnapshot,
    ReadCursor,
    ThreadState,
)

logger = structlog.get_logger(__name__)

SNAPSHOT_VERSION = 1


def _rows(payload: Mapping[str, Any], *names: str) -> list[Any]:
    for name in names:
        value = payload.get(name)
        if isinstance(value, list):
            return value
    return []


def _parse_message(raw: Any) -> ChatMessage | None:
    if not isinstance(raw, dict):
        return None
    try:
        return ChatMessage.model_validate(raw)
    except ValidationError:
        return None


def parse_chat_state(payload: Any) -> ChatStateSnapshot:
    """
    Build a ChatStateSnapshot from untrusted JSON-like data.

    Args:
        payload: Mapping with "threads" and "readCursors"

    Returns:
        Snapshot holding only the rows that validated
    """
    if isinstance(payload, ChatStateSnapshot):
        return payload
    if not isinstance(payload, Mapping):
        return ChatStateSnapshot()

    threads: list[ThreadState] = []
    dropped = 0
    for row in _rows(payload, "threads"):
        if not isinstance(row, dict):
            dropped += 1
            continue
        thread_id = row.get("threadId", row.get("thread_id"))
        raw_messages = row.get("messages")
        if not isinstance(thread_id, str) or not thread_id.strip():
            dropped += 1
            continue
        if not isinstance(raw_messages, list):
            dropped += 1
            continue

        messages = []
        for raw in raw_messages:
            message = _parse_message(raw)
            if message is None or message.chat_id != thread_id:
                dropped += 1
                continue
            messages.append(message)
        if not messages:
            continue
        messages.sort(key=lambda m: m.created_at_ms)
        threads.append(ThreadState(thread_id=thread_id, messages=messages))

    cursors: list[ReadCursor] = []
    for row in _rows(payload, "readCursors", "read_cursors"):
        if not isinstance(row, dict):
            dropped += 1
            continue
        read_at = row.get("readAtMs", row.get("read_at_ms"))
        if isinstance(read_at, bool) or not isinstance(read_at, (int, float)):
            dropped += 1
            continue
        if not math.isfinite(read_at):
            dropped += 1
            continue
        try:
            cursors.append(
                ReadCursor(
                    thread_user_key=row.get("threadUserKey", row.get("thread_user_key")),
                    read_at_ms=int(read_at),
                )
            )
        except ValidationError:
            dropped += 1

    if dropped:
        logger.warning("snapshot.chat.rows_dropped", dropped=dropped)
    return ChatStateSnapshot(threads=threads, read_cursors=cursors)


def parse_matching_state(payload: Any) -> MatchingStateSnapshot:
    """Build a MatchingStateSnapshot from untrusted JSON-like data."""
    if isinstance(payload, MatchingStateSnapshot):
        return payload
    if not isinstance(payload, Mapping):
        return MatchingStateSnapshot()

    swipes: list[SwipeRecord] = []
    matches: list[MatchRecord] = []
    dropped = 0
    for raw in _rows(payload, "swipes"):
        try:
            swipes.append(SwipeRecord.model_validate(raw))
        except ValidationError:
            dropped += 1
    for raw in _rows(payload, "matches"):
        try:
            matches.append(MatchRecord.model_validate(raw))
        except ValidationError:
            dropped += 1

    if dropped:
        logger.warning("snapshot.matching.rows_dropped", dropped=dropped)
    return MatchingStateSnapshot(swipes=swipes, matches=matches)


def dump_chat_state(snapshot: ChatStateSnapshot) -> dict[str, Any]:
    return snapshot.model_dump(mode="json", by_alias=True, exclude_none=True)


def dump_matching_state(snapshot: MatchingStateSnapshot) -> dict[str, Any]:
    return snapshot.model_dump(mode="json", by_alias=True)
