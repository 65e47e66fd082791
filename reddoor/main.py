from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from reddoor.blocks.router import router as blocks_router
from reddoor.container import Container, load_container
from reddoor.core.config import get_settings
from reddoor.core.http import ServiceErrorResponse, service_error_handler
from reddoor.core.logging import configure_logging, request_id_middleware
from reddoor.favorites.router import router as favorites_router
from reddoor.matching.router import router as matching_router
from reddoor.messaging.router import router as chat_router

logger = logging.getLogger(__name__)


def create_app(container: Optional[Container] = None) -> FastAPI:
    """
    Build the FastAPI app.

    Args:
        container: Prebuilt services; when None the lifespan hydrates a new
            container from the configured snapshot store

    Returns:
        Configured FastAPI application
    """
    settings = get_settings()
    configure_logging(settings.ENV, debug=settings.DEBUG)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting Red Door core (env: {settings.ENV})")
        services = container or await load_container(settings)
        app.state.container = services
        await services.start()
        logger.info("Red Door core ready")

        yield

        logger.info("Shutting down Red Door core...")
        await services.stop()
        logger.info("Red Door core shutdown complete")

    app = FastAPI(title="Red Door", version="0.1.0", lifespan=lifespan)
    if container is not None:
        app.state.container = container

    app.middleware("http")(request_id_middleware)
    app.add_exception_handler(ServiceErrorResponse, service_error_handler)
    app.include_router(matching_router)
    app.include_router(chat_router)
    app.include_router(blocks_router)
    app.include_router(favorites_router)

    @app.get("/healthz")
    def healthz():
        services = getattr(app.state, "container", None)
        writer = services.writer if services is not None else None
        return {
            "status": "healthy",
            "env": settings.ENV,
            "persistence": writer.get_status() if writer is not None else None,
        }

    return app


app = create_app()
