from __future__ import annotations

import logging
import sys
import time
import uuid
from typing import Any

import structlog
from fastapi import Request


def configure_logging(env: str = "development", debug: bool = False) -> None:
    """Route structlog and stdlib loggers through one renderer.

    Engines log with ``logging.getLogger(__name__)``; persistence and HTTP
    code log structured events with structlog. Both end up on stdout with
    the same timestamp and level fields: a colored console renderer in
    development, JSON lines elsewhere.
    """
    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    renderer: Any
    if env == "development":
        renderer = structlog.dev.ConsoleRenderer(colors=True)
    else:
        renderer = structlog.processors.JSONRenderer()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                renderer,
            ],
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(logging.DEBUG if debug else logging.INFO)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


_request_logger = structlog.get_logger("reddoor.request")


async def request_id_middleware(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Tag every log line of a request with its id and log one summary event."""
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    started = time.perf_counter()
    status = 500

    with structlog.contextvars.bound_contextvars(
        request_id=request_id, path=request.url.path
    ):
        try:
            response = await call_next(request)
            status = response.status_code
        finally:
            _request_logger.info(
                "request.completed",
                method=request.method,
                status=status,
                elapsed_ms=round((time.perf_counter() - started) * 1000, 2),
            )

    response.headers["x-request-id"] = request_id
    return response
