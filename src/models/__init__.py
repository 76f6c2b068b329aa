# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pydantic request and response schemas for the HTTP API."""

from src.models.notifications import (
    MarkAllReadRequest,
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationResponse,
    PreferenceResponse,
    PreferenceUpdateRequest,
    TriggerCounts,
    TriggerRunResponse,
)

__all__ = [
    "NotificationResponse",
    "NotificationListResponse",
    "MarkAllReadRequest",
    "MarkAllReadResponse",
    "PreferenceResponse",
    "PreferenceUpdateRequest",
    "TriggerCounts",
    "TriggerRunResponse",
]
