"""Session and actor identity models."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Mode = Literal["cruise", "date", "hybrid"]
UserType = Literal["guest", "registered", "subscriber"]
ChatKind = Literal["cruise", "date"]
Action = Literal["chat", "swipe", "favorite", "block"]

MODES: frozenset[str] = frozenset({"cruise", "date", "hybrid"})
USER_TYPES: frozenset[str] = frozenset({"guest", "registered", "subscriber"})
CHAT_KINDS: frozenset[str] = frozenset({"cruise", "date"})

MINIMUM_AGE = 18

USER_PREFIX = "user:"
SESSION_PREFIX = "session:"
GUEST_PREFIX = "guest:"
SPOT_PREFIX = "spot:"


class Session(BaseModel):
    """Caller session as issued by the external auth layer (read-only here)."""

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    session_token: str = Field(..., description="Opaque session token")
    user_type: UserType = Field(..., description="guest, registered or subscriber")
    mode: Mode = Field(..., description="Active interaction mode")
    user_id: Optional[str] = Field(
        default=None, description="Present for non-guest sessions"
    )
    age_verified: bool = Field(default=False, description="18+ verification flag")

    @property
    def is_guest(self) -> bool:
        return self.user_type == "guest"


def normalize_actor_key(key: str) -> str:
    """Trim a key and collapse guest-prefixed variants onto the session form."""
    value = key.strip()
    if value.startswith(GUEST_PREFIX):
        return SESSION_PREFIX + value[len(GUEST_PREFIX):].strip()
    return value


def derive_actor_key(session: Session) -> str:
    """Guests are keyed by their session token, everyone else by user id."""
    if not session.is_guest and session.user_id and session.user_id.strip():
        return f"{USER_PREFIX}{session.user_id.strip()}"
    return f"{SESSION_PREFIX}{session.session_token.strip()}"


def same_actor(key_a: str, key_b: str) -> bool:
    return normalize_actor_key(key_a) == normalize_actor_key(key_b)


def is_spot_key(key: str) -> bool:
    value = key.strip()
    if not value.startswith(SPOT_PREFIX):
        return False
    return len(value[len(SPOT_PREFIX):].strip()) > 0
