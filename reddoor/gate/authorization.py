"""Authorization gate applied before any engine read or mutation.

Checks run in a fixed order and the first failure wins:

1. Session shape            -> INVALID_SESSION
2. Age verification         -> AGE_GATE_REQUIRED
3. Guest on registered-only -> ANONYMOUS_FORBIDDEN
4. Chat kind vs mode        -> UNAUTHORIZED_ACTION
5. Swipes in Cruise mode    -> MATCHING_NOT_ALLOWED
6. Registered identity      -> INVALID_SESSION (missing user id)

The gate is pure: it never touches storage and never raises.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import ValidationError

from reddoor.core.results import ErrorCode, ServiceError
from reddoor.gate.models import (
    CHAT_KINDS,
    MINIMUM_AGE,
    MODES,
    USER_TYPES,
    Session,
)

_ANONYMOUS_MESSAGES = {
    "chat": "Anonymous users cannot use Date chat.",
    "swipe": "Anonymous users cannot swipe or match.",
    "favorite": "Anonymous users cannot modify favorites.",
}


def _error(code: ErrorCode, message: str, context: dict | None = None) -> ServiceError:
    return ServiceError(code=code, message=message, context=context)


def coerce_session(raw: Any) -> Optional[Session]:
    """Return a well-formed Session or None when the shape is malformed."""
    if isinstance(raw, Session):
        candidate = raw
    elif isinstance(raw, dict):
        try:
            candidate = Session.model_validate(raw)
        except ValidationError:
            return None
    else:
        return None

    # Instances built with model_construct skip validation, so re-check.
    if not isinstance(candidate.session_token, str) or not candidate.session_token.strip():
        return None
    if candidate.user_type not in USER_TYPES or candidate.mode not in MODES:
        return None
    return candidate


def can_use_chat_kind(mode: str, chat_kind: str) -> bool:
    if chat_kind == "cruise":
        return mode in ("cruise", "hybrid")
    return mode in ("date", "hybrid")


def is_registered_only(action: str, chat_kind: Optional[str]) -> bool:
    if action == "chat":
        return chat_kind == "date"
    return action in ("swipe", "favorite")


def authorize(
    raw_session: Any, action: str, chat_kind: Optional[str] = None
) -> Optional[ServiceError]:
    """Validate a session for an action.

    Args:
        raw_session: Session instance or a mapping with session fields
        action: One of "chat", "swipe", "favorite", "block"
        chat_kind: Required for "chat"

    Returns:
        None when the action is allowed, otherwise the rejection
    """
    session = coerce_session(raw_session)
    if session is None:
        return _error(ErrorCode.INVALID_SESSION, "Invalid session.")

    if session.age_verified is not True:
        return _error(
            ErrorCode.AGE_GATE_REQUIRED,
            "You must be 18 or older to use Red Door.",
            {"minimumAge": MINIMUM_AGE},
        )

    if session.is_guest and is_registered_only(action, chat_kind):
        return _error(ErrorCode.ANONYMOUS_FORBIDDEN, _ANONYMOUS_MESSAGES[action])

    if action == "chat":
        if chat_kind not in CHAT_KINDS:
            return _error(ErrorCode.UNAUTHORIZED_ACTION, "Invalid chat kind.")
        if not can_use_chat_kind(session.mode, chat_kind):
            return _error(
                ErrorCode.UNAUTHORIZED_ACTION,
                "Chat kind is not allowed in the current mode.",
                {"mode": session.mode, "chatKind": chat_kind},
            )

    if action == "swipe" and session.mode == "cruise":
        return _error(
            ErrorCode.MATCHING_NOT_ALLOWED,
            "Matching is not allowed in Cruise Mode.",
            {"mode": session.mode},
        )

    if is_registered_only(action, chat_kind):
        if not session.user_id or not session.user_id.strip():
            return _error(ErrorCode.INVALID_SESSION, "Invalid session.")

    return None
