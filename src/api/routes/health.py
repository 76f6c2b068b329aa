# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Liveness and readiness probes.

Readiness depends on the platform database only. The trigger queue depth
is reported alongside it but never marks the service unready, since the
API keeps serving inboxes while the workers are down.
"""

import logging
import time
from datetime import datetime

from fastapi import APIRouter
from pydantic import BaseModel, Field

from src.core.config import get_settings
from src.infrastructure.background.broker import get_broker_manager
from src.infrastructure.database.connection import DatabaseError, get_database
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

router = APIRouter()

_started_at = time.monotonic()


class HealthResponse(BaseModel):
    """Liveness probe body."""

    status: str = Field(description="Always 'healthy' while the process serves requests")
    timestamp: datetime = Field(description="Current server time (UTC)")
    environment: str = Field(description="Deployment environment")
    uptime_seconds: int = Field(description="Seconds since the API module was loaded")


class ReadinessResponse(BaseModel):
    """Readiness probe body."""

    ready: bool = Field(description="True when the platform database answers")
    database: bool = Field(description="Database connectivity check")
    trigger_queue_depth: int | None = Field(
        default=None,
        description="Messages waiting for the trigger workers, when known",
    )


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness probe."""
    return HealthResponse(
        status="healthy",
        timestamp=utc_now(),
        environment=get_settings().environment,
        uptime_seconds=int(time.monotonic() - _started_at),
    )


@router.get("/ready", response_model=ReadinessResponse)
async def ready() -> ReadinessResponse:
    """Readiness probe."""
    try:
        database_ok = await get_database().check_connection()
    except DatabaseError as e:
        logger.error("Readiness check could not reach the database: %s", e.message)
        database_ok = False

    return ReadinessResponse(
        ready=database_ok,
        database=database_ok,
        trigger_queue_depth=get_broker_manager().queue_depth(),
    )
