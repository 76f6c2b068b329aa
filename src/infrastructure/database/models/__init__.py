# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy models.

Platform models mirror tables owned by the wider platform and are only
read here. Notification models are owned by this service.
"""

from src.infrastructure.database.models.base import Base, TimestampMixin, new_uuid
from src.infrastructure.database.models.notification import (
    EmailQueue,
    Notification,
    NotificationPreference,
)
from src.infrastructure.database.models.platform import (
    ComplianceRecord,
    Institution,
    ServiceLeadSubscription,
    User,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "new_uuid",
    # Platform
    "User",
    "Institution",
    "ComplianceRecord",
    "ServiceLeadSubscription",
    # Notifications
    "Notification",
    "NotificationPreference",
    "EmailQueue",
]
