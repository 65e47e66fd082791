"""Authorization gate exports."""

from reddoor.gate.authorization import (
    authorize,
    can_use_chat_kind,
    coerce_session,
)
from reddoor.gate.models import (
    Session,
    derive_actor_key,
    is_spot_key,
    normalize_actor_key,
    same_actor,
)

__all__ = [
    "authorize",
    "can_use_chat_kind",
    "coerce_session",
    "Session",
    "derive_actor_key",
    "is_spot_key",
    "normalize_actor_key",
    "same_actor",
]
