"""Matching engine module exports."""

from reddoor.matching.engine import MatchingEngine, pair_key, swipe_key
from reddoor.matching.models import (
    MatchingStateSnapshot,
    MatchRecord,
    RecordSwipeResult,
    SwipeDirection,
    SwipeRecord,
)

__all__ = [
    # Engine
    "MatchingEngine",
    "pair_key",
    "swipe_key",
    # Models
    "MatchingStateSnapshot",
    "MatchRecord",
    "RecordSwipeResult",
    "SwipeDirection",
    "SwipeRecord",
]
