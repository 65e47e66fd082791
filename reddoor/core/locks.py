"""Per-key mutual exclusion.

Operations on the same canonical key (thread id, sender key, user pair) are
serialized while operations on different keys proceed in parallel. The
registry lock is only held long enough to look up, create or release a
key's entry.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator


class _Entry:
    __slots__ = ("lock", "holders")

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.holders = 0


class KeyedLock:
    """
    A map of re-entrant locks keyed by string.

    An entry exists only while some thread holds or waits on its key; the
    last one out removes it, so the map stays as small as the set of keys
    currently in use.
    """

    def __init__(self) -> None:
        self._registry_lock = threading.Lock()
        self._entries: dict[str, _Entry] = {}

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._entries)

    def _checkout(self, key: str) -> _Entry:
        with self._registry_lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = _Entry()
                self._entries[key] = entry
            entry.holders += 1
            return entry

    def _release(self, key: str, entry: _Entry) -> None:
        with self._registry_lock:
            entry.holders -= 1
            if entry.holders == 0:
                del self._entries[key]

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        entry = self._checkout(key)
        try:
            with entry.lock:
                yield
        finally:
            self._release(key, entry)
