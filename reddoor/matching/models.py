"""Data models for swipes and matches."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

SwipeDirection = Literal["like", "pass"]

_record_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class SwipeRecord(BaseModel):
    """Latest directional swipe for an ordered user pair."""

    model_config = _record_config

    from_user_id: str = Field(..., min_length=1)
    to_user_id: str = Field(..., min_length=1)
    direction: SwipeDirection
    created_at_ms: int = Field(..., ge=0)


class MatchRecord(BaseModel):
    """Mutual like between two users; user_a sorts before user_b."""

    model_config = _record_config

    match_id: str = Field(..., min_length=1)
    user_a: str = Field(..., min_length=1)
    user_b: str = Field(..., min_length=1)
    created_at_ms: int = Field(..., ge=0)


class RecordSwipeResult(BaseModel):
    """Outcome of a swipe: the stored swipe and the pair's match, if any."""

    model_config = _record_config

    swipe: SwipeRecord
    match_created: bool = False
    match: MatchRecord | None = None


class MatchingStateSnapshot(BaseModel):
    """Serializable matching state: swipes and matches."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    swipes: list[SwipeRecord] = Field(default_factory=list)
    matches: list[MatchRecord] = Field(default_factory=list)
