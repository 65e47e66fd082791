"""Canonical thread addressing.

Pairwise threads are keyed ``<kind>::<a>::<b>`` with the two ActorKeys in
sorted order so both participants resolve the same id. Cruise spot threads
are keyed ``cruise::spot:<x>`` and shared by every sender.
"""

from __future__ import annotations

from typing import Any

from reddoor.gate.models import CHAT_KINDS, is_spot_key, normalize_actor_key
from reddoor.messaging.models import ChatThread

THREAD_SEPARATOR = "::"


def _is_non_empty(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def thread_key(chat_kind: str, key_a: str, key_b: str) -> str:
    a = normalize_actor_key(key_a)
    b = normalize_actor_key(key_b)
    if chat_kind == "cruise":
        if is_spot_key(a):
            return f"{chat_kind}{THREAD_SEPARATOR}{a}"
        if is_spot_key(b):
            return f"{chat_kind}{THREAD_SEPARATOR}{b}"
    x, y = (a, b) if a < b else (b, a)
    return f"{chat_kind}{THREAD_SEPARATOR}{x}{THREAD_SEPARATOR}{y}"


def is_spot_thread(thread_id: str) -> bool:
    return thread_id.startswith(f"cruise{THREAD_SEPARATOR}spot:")


def read_cursor_key(thread_id: str, reader_key: str) -> str:
    return f"{thread_id}{THREAD_SEPARATOR}{reader_key}"


def get_thread(chat_kind: Any, key_a: Any, key_b: Any) -> ChatThread:
    """Resolve the canonical thread for two keys.

    Raises:
        ValueError: If chat_kind is unknown or either key is empty
    """
    if chat_kind not in CHAT_KINDS:
        raise ValueError("Invalid chat kind.")
    if not _is_non_empty(key_a) or not _is_non_empty(key_b):
        raise ValueError("Invalid thread keys.")

    a = normalize_actor_key(key_a)
    b = normalize_actor_key(key_b)
    x, y = (a, b) if a < b else (b, a)
    return ChatThread(
        chat_id=thread_key(chat_kind, a, b),
        chat_kind=chat_kind,
        a_key=x,
        b_key=y,
    )
