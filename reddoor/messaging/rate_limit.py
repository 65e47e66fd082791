"""Sliding-window rate limiting keyed by sender."""

from __future__ import annotations

import threading
from collections import deque


class SlidingWindowRateLimiter:
    """
    Allows at most ``limit`` events per key in any trailing window.

    Each key keeps the timestamps of its accepted events. A timestamp
    leaves the window once ``now - window_ms`` reaches it, so capacity
    comes back one event at a time rather than all at once.
    """

    def __init__(self, limit: int, window_ms: int = 60_000):
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_ms < 1:
            raise ValueError("window_ms must be >= 1")
        self.limit = limit
        self.window_ms = window_ms
        self._events: dict[str, deque[int]] = {}
        self._lock = threading.Lock()

    def _evict(self, events: deque[int], now_ms: int) -> None:
        window_start = now_ms - self.window_ms
        while events and events[0] <= window_start:
            events.popleft()

    def try_acquire(self, key: str, now_ms: int) -> bool:
        """Record an event for key if there is room. Returns False when full."""
        with self._lock:
            events = self._events.setdefault(key, deque())
            self._evict(events, now_ms)
            if len(events) >= self.limit:
                return False
            events.append(now_ms)
            return True

    def prune(self, now_ms: int) -> int:
        """Drop keys whose windows are empty. Returns the number dropped."""
        with self._lock:
            stale = []
            for key, events in self._events.items():
                self._evict(events, now_ms)
                if not events:
                    stale.append(key)
            for key in stale:
                del self._events[key]
            return len(stale)
