"""Shared FastAPI plumbing: container access, session lookup, error mapping."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import Depends, Header, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from reddoor.core.results import Err, ErrorCode, ServiceError
from reddoor.gate.models import Session

STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.INVALID_SESSION: 401,
    ErrorCode.AGE_GATE_REQUIRED: 403,
    ErrorCode.ANONYMOUS_FORBIDDEN: 403,
    ErrorCode.MATCHING_NOT_ALLOWED: 403,
    ErrorCode.USER_BLOCKED: 403,
    ErrorCode.UNAUTHORIZED_ACTION: 400,
    ErrorCode.INVALID_INPUT: 400,
    ErrorCode.RATE_LIMITED: 429,
    ErrorCode.CHAT_EXPIRED: 410,
}


class ServiceErrorResponse(Exception):
    """Raised inside handlers to short-circuit with a typed error body."""

    def __init__(self, error: ServiceError):
        super().__init__(error.message)
        self.error = error


def error_response(error: ServiceError) -> JSONResponse:
    return JSONResponse(
        status_code=STATUS_BY_CODE.get(error.code, 400),
        content={"error": error.to_payload()},
    )


async def service_error_handler(request: Request, exc: ServiceErrorResponse) -> JSONResponse:
    return error_response(exc.error)


def get_container(request: Request) -> Any:
    return request.app.state.container


def current_session(
    container: Any = Depends(get_container),
    x_session_token: Optional[str] = Header(default=None),
) -> Session:
    """Resolve the x-session-token header; unknown tokens are INVALID_SESSION."""
    token = (x_session_token or "").strip()
    session = container.sessions.get(token) if token else None
    if session is None:
        raise ServiceErrorResponse(
            ServiceError(code=ErrorCode.INVALID_SESSION, message="Invalid session.")
        )
    return session


def unwrap(result: Any) -> Any:
    """Return an Ok value or raise the Err as an HTTP error."""
    if isinstance(result, Err):
        raise ServiceErrorResponse(result.error)
    return result.value


def to_json(value: Any) -> Any:
    """Serialize pydantic models with their camelCase aliases."""
    return jsonable_encoder(value, by_alias=True, exclude_none=True)
