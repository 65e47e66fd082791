"""Ports (interfaces) consumed by the engines.

Collaborators are injected at construction so the engines stay
deterministic under test and never reach for global singletons.
"""

from __future__ import annotations

import time
from typing import Callable, Protocol


class Clock(Protocol):
    def now_ms(self) -> int:
        ...


class BlockChecker(Protocol):
    """Answers whether two actors may interact."""

    def is_blocked(self, from_key: str, to_key: str) -> bool:
        ...


class MatchChecker(Protocol):
    """Answers whether two registered users hold a mutual match."""

    def is_matched(self, user_a: str, user_b: str) -> bool:
        ...


# Returns True when the text must be rejected.
ContentPolicy = Callable[[str], bool]


class SystemClock:
    """Wall clock in epoch milliseconds."""

    def now_ms(self) -> int:
        return int(time.time() * 1000)


class NeverBlocked:
    def is_blocked(self, from_key: str, to_key: str) -> bool:
        return False


class NeverMatched:
    def is_matched(self, user_a: str, user_b: str) -> bool:
        return False
