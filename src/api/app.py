# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI application for the notification service.

Serves the inbox and preference endpoints for signed-in users, the cron
endpoints that run the triggers, and the health probes. The broker and
optional in-process scheduler are started with the app so that a single
container can run triggers without an external cron.

Run with:
    uvicorn src.api.app:create_app --factory
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from src.api.middleware import RequestContextMiddleware
from src.api.routes import health
from src.api.v1 import router as v1_router
from src.core.config import Settings, get_settings
from src.infrastructure.background import (
    setup_dramatiq,
    shutdown_dramatiq,
    start_scheduler,
    stop_scheduler,
)
from src.infrastructure.database.connection import close_database, init_database
from src.utils.logging import setup_logging

logger = logging.getLogger(__name__)


async def _start_background(settings: Settings) -> None:
    # The API stays up without Redis; trigger endpoints still run inline.
    try:
        setup_dramatiq()
    except Exception as e:
        logger.warning("Trigger broker unavailable: %s", str(e))
        return

    if not settings.scheduler.enabled:
        logger.info("In-process scheduler disabled; relying on external cron")
        return

    try:
        await start_scheduler()
    except Exception as e:
        logger.warning("Scheduler did not start: %s", str(e))


async def _stop_background() -> None:
    try:
        await stop_scheduler()
    except Exception as e:
        logger.warning("Error stopping scheduler: %s", str(e))

    try:
        shutdown_dramatiq()
    except Exception as e:
        logger.warning("Error closing trigger broker: %s", str(e))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the database and background services for the app's lifetime."""
    settings = get_settings()
    setup_logging(settings)
    logger.info("Notification API starting in %s", settings.environment)

    await init_database(settings)
    await _start_background(settings)

    yield

    await _stop_background()
    await close_database()
    logger.info("Notification API stopped")


def create_app() -> FastAPI:
    """Build the notification API.

    Interactive docs are only exposed when DEBUG is on.
    """
    settings = get_settings()
    docs = settings.debug

    app = FastAPI(
        title="Notification API",
        description="Notification inbox, preferences and trigger endpoints",
        version="1.0.0",
        docs_url="/docs" if docs else None,
        redoc_url="/redoc" if docs else None,
        openapi_url="/openapi.json" if docs else None,
        lifespan=lifespan,
        redirect_slashes=False,
    )

    app.add_middleware(RequestContextMiddleware)
    app.include_router(health.router, tags=["Health"])
    app.include_router(v1_router)

    return app
