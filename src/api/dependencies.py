# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Dependencies are used to:
- Get the process-wide database
- Build per-request notification and trigger services
- Resolve the current user set by the upstream auth layer
- Guard the trigger endpoints with the cron secret

Example:
    @router.get("")
    async def list_notifications(
        user_id: Annotated[str, Depends(require_user_id)],
        inbox: Annotated[InboxService, Depends(get_inbox_service)],
    ):
        ...
"""

import logging
import secrets
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from src.core.config import Settings, get_settings
from src.core.triggers import TriggerEngine
from src.infrastructure.database.connection import Database, DatabaseError, get_database
from src.infrastructure.notifications import InboxService, NotificationService

logger = logging.getLogger(__name__)


def get_db() -> Database:
    """Get the process-wide database.

    Raises:
        HTTPException: If the database has not been initialized.
    """
    try:
        return get_database()
    except DatabaseError as e:
        logger.error("Database unavailable: %s", e.message)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database not available",
        ) from e


def get_app_settings() -> Settings:
    """Get application settings."""
    return get_settings()


def get_notification_service(
    database: Annotated[Database, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> NotificationService:
    """Build the notification service for this request."""
    return NotificationService(database, settings)


def get_inbox_service(database: Annotated[Database, Depends(get_db)]) -> InboxService:
    """Build the inbox service for this request."""
    return InboxService(database)


def get_trigger_engine(
    database: Annotated[Database, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    service: Annotated[NotificationService, Depends(get_notification_service)],
) -> TriggerEngine:
    """Build the trigger engine for this request."""
    return TriggerEngine(database, settings, service)


# =========================================================================
# Authentication Dependencies
# =========================================================================


def require_user_id(request: Request) -> str:
    """Require an authenticated user.

    Authentication happens upstream; the auth layer stores the user ID on
    ``request.state.user_id``.

    Args:
        request: HTTP request.

    Returns:
        The current user ID.

    Raises:
        HTTPException: If no user is attached to the request.
    """
    user_id = getattr(request.state, "user_id", None)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return str(user_id)


def verify_cron_secret(
    settings: Annotated[Settings, Depends(get_app_settings)],
    x_cron_secret: Annotated[str | None, Header()] = None,
) -> None:
    """Require the shared cron secret in the X-Cron-Secret header.

    Raises:
        HTTPException: 503 when no secret is configured, 401 when the
            header is missing or wrong.
    """
    expected = settings.cron_secret.get_secret_value()
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Cron endpoints are not configured",
        )

    if not x_cron_secret or not secrets.compare_digest(x_cron_secret, expected):
        logger.warning("Rejected trigger request with invalid cron secret")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid cron secret",
        )


# Type aliases for cleaner endpoint signatures
CurrentUserId = Annotated[str, Depends(require_user_id)]
