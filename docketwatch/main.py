"""DocketWatch API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map DocketWatchError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - The ServiceContainer is built, started and closed by the lifespan; nothing at import time

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - create_app() factory: tests build an app and attach their own container
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from docketwatch.api.error_handlers import register_error_handlers
from docketwatch.api.routes import cron, health, matters, notifications, sync_settings
from docketwatch.config import get_settings
from docketwatch.container import ServiceContainer
from docketwatch.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    container = ServiceContainer.build(settings)
    container.start()
    app.state.container = container
    logger.info("DocketWatch API started")
    try:
        yield
    finally:
        logger.info("DocketWatch API shutting down")
        await container.close()


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="DocketWatch API", version="1.0.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routes: explicit registration
    app.include_router(health.router)
    app.include_router(cron.router)
    app.include_router(notifications.router)
    app.include_router(matters.router)
    app.include_router(sync_settings.router)

    register_error_handlers(app)
    return app


app = create_app()
