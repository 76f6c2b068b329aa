# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification inbox and preference endpoints.

This module provides endpoints for the current user:
- GET / - List notifications with read-state filter and paging
- POST /{notification_id}/read - Mark one notification as read
- POST /read-all - Mark all (or one category of) notifications as read
- GET /preferences - List stored channel preferences
- PUT /preferences/{category} - Create or update one category's switches

Example:
    PUT /api/v1/notifications/preferences/MARKETING
    {
        "email_enabled": false
    }
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from src.api.dependencies import (
    CurrentUserId,
    get_inbox_service,
    get_notification_service,
)
from src.infrastructure.notifications import Category, InboxService, NotificationService
from src.models.notifications import (
    MarkAllReadRequest,
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationResponse,
    PreferenceResponse,
    PreferenceUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    user_id: CurrentUserId,
    inbox: Annotated[InboxService, Depends(get_inbox_service)],
    is_read: Annotated[bool | None, Query()] = None,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> NotificationListResponse:
    """List the current user's notifications, newest first."""
    page = await inbox.list_notifications(user_id, is_read=is_read, limit=limit, offset=offset)

    return NotificationListResponse(
        items=[NotificationResponse.model_validate(item.to_dict()) for item in page.items],
        total=page.total,
        unread_count=page.unread_count,
        limit=page.limit,
        offset=page.offset,
    )


@router.post("/read-all", response_model=MarkAllReadResponse)
async def mark_all_as_read(
    user_id: CurrentUserId,
    inbox: Annotated[InboxService, Depends(get_inbox_service)],
    request: Annotated[MarkAllReadRequest | None, Body()] = None,
) -> MarkAllReadResponse:
    """Mark every unread notification of the current user as read."""
    category = request.category if request else None
    updated = await inbox.mark_all_as_read(user_id, category)

    logger.info("Marked %d notifications read for user %s", updated, user_id)
    return MarkAllReadResponse(updated=updated)


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_as_read(
    notification_id: str,
    user_id: CurrentUserId,
    inbox: Annotated[InboxService, Depends(get_inbox_service)],
) -> NotificationResponse:
    """Mark one of the current user's notifications as read.

    Raises:
        HTTPException: 404 when the notification does not exist or belongs
            to another user.
    """
    notification = await inbox.mark_as_read(user_id, notification_id)
    if notification is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification not found",
        )

    return NotificationResponse.model_validate(notification.to_dict())


@router.get("/preferences", response_model=list[PreferenceResponse])
async def list_preferences(
    user_id: CurrentUserId,
    service: Annotated[NotificationService, Depends(get_notification_service)],
) -> list[PreferenceResponse]:
    """List the current user's stored preferences.

    Categories without a stored row allow every channel and are omitted.
    """
    preferences = await service.preferences.list_preferences(user_id)
    return [PreferenceResponse.model_validate(preference) for preference in preferences]


@router.put("/preferences/{category}", response_model=PreferenceResponse)
async def update_preference(
    category: Category,
    request: PreferenceUpdateRequest,
    user_id: CurrentUserId,
    service: Annotated[NotificationService, Depends(get_notification_service)],
) -> PreferenceResponse:
    """Create or partially update the current user's switches for a category."""
    preference = await service.preferences.upsert_preference(
        user_id,
        category,
        email=request.email_enabled,
        in_app=request.in_app_enabled,
        sms=request.sms_enabled,
    )
    return PreferenceResponse.model_validate(preference)
