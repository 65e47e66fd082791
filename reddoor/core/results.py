"""Result types shared by every public engine operation.

Engines never raise for user-facing failures. They return ``Ok(value)`` or
``Err(error)`` so the HTTP layer can translate the error code without
catching exceptions. Only programmer errors (bad static arguments) raise.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Generic, Literal, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class ErrorCode(str, Enum):
    """Stable error codes surfaced to callers."""

    INVALID_SESSION = "INVALID_SESSION"
    AGE_GATE_REQUIRED = "AGE_GATE_REQUIRED"
    ANONYMOUS_FORBIDDEN = "ANONYMOUS_FORBIDDEN"
    MATCHING_NOT_ALLOWED = "MATCHING_NOT_ALLOWED"
    UNAUTHORIZED_ACTION = "UNAUTHORIZED_ACTION"
    USER_BLOCKED = "USER_BLOCKED"
    RATE_LIMITED = "RATE_LIMITED"
    CHAT_EXPIRED = "CHAT_EXPIRED"
    INVALID_INPUT = "INVALID_INPUT"


class ServiceError(BaseModel):
    """A typed rejection with a human-readable message."""

    model_config = ConfigDict(frozen=True)

    code: ErrorCode = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="User-visible reason")
    context: dict[str, Any] | None = Field(
        default=None, description="Optional structured details"
    )

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code.value, "message": self.message}
        if self.context is not None:
            payload["context"] = self.context
        return payload


class Ok(BaseModel, Generic[T]):
    """Successful result."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    ok: Literal[True] = True
    value: T


class Err(BaseModel):
    """Failed result carrying a ServiceError."""

    model_config = ConfigDict(frozen=True)

    ok: Literal[False] = False
    error: ServiceError


Result = Union[Ok[T], Err]


def ok(value: Any) -> Ok[Any]:
    return Ok(value=value)


def err(code: ErrorCode, message: str, context: dict[str, Any] | None = None) -> Err:
    return Err(error=ServiceError(code=code, message=message, context=context))
