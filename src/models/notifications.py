# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification API schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from src.infrastructure.notifications.types import Category


class NotificationResponse(BaseModel):
    """An in-app notification as shown in the inbox."""

    id: str
    type: str = Field(description="Event tag, e.g. COMPLIANCE_EXPIRY")
    title: str
    message: str
    category: str
    priority: str
    channels: list[str] = Field(default_factory=list)
    resource_type: str | None = None
    resource_id: str | None = None
    recipient_role: str | None = None
    institution_id: str | None = None
    action_link: str | None = None
    is_read: bool
    read_at: datetime | None = None
    created_at: datetime


class NotificationListResponse(BaseModel):
    """One page of the current user's notifications."""

    items: list[NotificationResponse]
    total: int
    unread_count: int
    limit: int
    offset: int


class MarkAllReadRequest(BaseModel):
    """Request to mark every unread notification as read."""

    category: Category | None = Field(None, description="Restrict to one category")


class MarkAllReadResponse(BaseModel):
    """Number of notifications marked as read."""

    updated: int


class PreferenceResponse(BaseModel):
    """Channel switches for one category."""

    model_config = ConfigDict(from_attributes=True)

    category: str
    email_enabled: bool
    in_app_enabled: bool
    sms_enabled: bool


class PreferenceUpdateRequest(BaseModel):
    """Partial update of a category's channel switches.

    Omitted switches keep their stored value, or the default when the
    category has no stored row yet.
    """

    email_enabled: bool | None = None
    in_app_enabled: bool | None = None
    sms_enabled: bool | None = None


class TriggerCounts(BaseModel):
    """Counts reported by one trigger run."""

    processed: int
    sent: int
    error: str | None = None


class TriggerRunResponse(BaseModel):
    """Results of a manual trigger run, keyed by trigger name."""

    trigger: str
    results: dict[str, TriggerCounts]
