# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

Modules:
    notifications: Inbox and preference endpoints for the current user.
    triggers: Cron endpoints that run the notification triggers.
"""

from fastapi import APIRouter

from src.api.v1 import notifications, triggers

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
router.include_router(triggers.router, prefix="/triggers", tags=["Triggers"])

__all__ = ["router"]
