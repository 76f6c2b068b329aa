# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification dispatch.

Decides, for any platform event, who is told and through which channels,
subject to user preferences and role safety rules.

Key Components:
- NotificationService: dispatcher; send() never raises
- PreferenceStore: per-category channel switches
- RecipientSafetyGate: role check run before any write
- ChannelResolver: requested channels filtered by priority and preferences
- create_notification: legacy (user, type, title, message, entity) adapter
- NotificationEvents: event helpers and institution fan-out
- InboxService: listing and read state

Usage:
    from src.infrastructure.notifications import (
        NotificationRequest,
        NotificationService,
        Category,
        Priority,
    )

    service = NotificationService(database)
    result = await service.send(
        NotificationRequest(
            user_id=user_id,
            type="DOCUMENT_FLAGGED",
            title="Document Flagged",
            message="One of your documents has been flagged.",
            category=Category.COMPLIANCE,
            priority=Priority.HIGH,
        )
    )
    if result.error:
        ...

Configuration (environment variables):
- NOTIFY_DEFAULT_CATEGORY: category when a request leaves it unset
- NOTIFY_DEFAULT_PRIORITY: priority when a request leaves it unset
- NOTIFY_DEFAULT_CHANNELS: JSON list of channels when a request leaves them unset
"""

from src.infrastructure.notifications.events import NotificationEvents
from src.infrastructure.notifications.inbox import InboxService, NotificationPage
from src.infrastructure.notifications.legacy import (
    LEGACY_CATEGORY_MAP,
    LegacyNotificationType,
    category_for_legacy_type,
    create_notification,
)
from src.infrastructure.notifications.preferences import PREFERENCE_DEFAULTS, PreferenceStore
from src.infrastructure.notifications.resolver import ChannelResolver
from src.infrastructure.notifications.safety import RecipientSafetyGate
from src.infrastructure.notifications.service import NotificationService
from src.infrastructure.notifications.types import (
    Category,
    Channel,
    DispatchConfig,
    DispatchStage,
    NotificationError,
    NotificationRequest,
    NotificationResult,
    Priority,
    QueuePriority,
)

__all__ = [
    # Service
    "NotificationService",
    "NotificationRequest",
    "NotificationResult",
    "NotificationError",
    "DispatchConfig",
    "DispatchStage",
    # Enums
    "Category",
    "Channel",
    "Priority",
    "QueuePriority",
    # Collaborators
    "PreferenceStore",
    "PREFERENCE_DEFAULTS",
    "RecipientSafetyGate",
    "ChannelResolver",
    # Legacy adapter
    "LegacyNotificationType",
    "LEGACY_CATEGORY_MAP",
    "category_for_legacy_type",
    "create_notification",
    # Events and inbox
    "NotificationEvents",
    "InboxService",
    "NotificationPage",
]
