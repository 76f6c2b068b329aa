# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Adapter for call sites that still use the legacy notification shape.

Older code notifies with (user, legacy type, title, message, entity). The
adapter maps the legacy type to a Category through LEGACY_CATEGORY_MAP and
forwards everything else to NotificationService.send(), leaving priority
and channels at the dispatch defaults. New call sites should build a
NotificationRequest and call the service directly.
"""

import logging
from enum import Enum
from typing import TYPE_CHECKING

from src.infrastructure.notifications.types import (
    Category,
    NotificationRequest,
    NotificationResult,
)

if TYPE_CHECKING:
    from src.infrastructure.notifications.service import NotificationService

logger = logging.getLogger(__name__)


class LegacyNotificationType(str, Enum):
    """Notification types used by legacy call sites."""

    SUBMISSION_REVIEWED = "SUBMISSION_REVIEWED"
    SUBMISSION_APPROVED = "SUBMISSION_APPROVED"
    SUBMISSION_REJECTED = "SUBMISSION_REJECTED"
    REQUEST_APPROVED = "REQUEST_APPROVED"
    REQUEST_REJECTED = "REQUEST_REJECTED"
    READINESS_REVIEWED = "READINESS_REVIEWED"
    READINESS_RECOMMENDED = "READINESS_RECOMMENDED"
    READINESS_REJECTED = "READINESS_REJECTED"
    READINESS_SUBMITTED = "READINESS_SUBMITTED"
    DOCUMENT_FLAGGED = "DOCUMENT_FLAGGED"
    SYSTEM_ALERT = "SYSTEM_ALERT"
    ISSUE_RESPONSE = "ISSUE_RESPONSE"
    INVITE_ACCEPTED = "INVITE_ACCEPTED"
    REVIEW_ASSIGNED = "REVIEW_ASSIGNED"
    BULK_INVITE_COMPLETED = "BULK_INVITE_COMPLETED"
    INSTITUTION_CREATED = "INSTITUTION_CREATED"
    NEW_LEAD = "NEW_LEAD"
    SERVICE_REQUEST = "SERVICE_REQUEST"


# Every LegacyNotificationType member must appear here; checked below at import.
LEGACY_CATEGORY_MAP: dict[LegacyNotificationType, Category] = {
    LegacyNotificationType.SUBMISSION_REVIEWED: Category.COMPLIANCE,
    LegacyNotificationType.SUBMISSION_APPROVED: Category.COMPLIANCE,
    LegacyNotificationType.SUBMISSION_REJECTED: Category.COMPLIANCE,
    LegacyNotificationType.READINESS_REVIEWED: Category.COMPLIANCE,
    LegacyNotificationType.READINESS_RECOMMENDED: Category.COMPLIANCE,
    LegacyNotificationType.READINESS_REJECTED: Category.COMPLIANCE,
    LegacyNotificationType.READINESS_SUBMITTED: Category.COMPLIANCE,
    LegacyNotificationType.INVITE_ACCEPTED: Category.COMMUNICATION,
    LegacyNotificationType.BULK_INVITE_COMPLETED: Category.COMMUNICATION,
    LegacyNotificationType.INSTITUTION_CREATED: Category.COMMUNICATION,
    LegacyNotificationType.REQUEST_APPROVED: Category.SYSTEM,
    LegacyNotificationType.REQUEST_REJECTED: Category.SYSTEM,
    LegacyNotificationType.DOCUMENT_FLAGGED: Category.SYSTEM,
    LegacyNotificationType.SYSTEM_ALERT: Category.SYSTEM,
    LegacyNotificationType.ISSUE_RESPONSE: Category.SYSTEM,
    LegacyNotificationType.REVIEW_ASSIGNED: Category.SYSTEM,
    LegacyNotificationType.NEW_LEAD: Category.SYSTEM,
    LegacyNotificationType.SERVICE_REQUEST: Category.SYSTEM,
}


def _check_category_map() -> None:
    missing = [member.value for member in LegacyNotificationType if member not in LEGACY_CATEGORY_MAP]
    if missing:
        raise RuntimeError(f"LEGACY_CATEGORY_MAP has no category for: {', '.join(missing)}")


_check_category_map()


def category_for_legacy_type(legacy_type: LegacyNotificationType | str) -> Category:
    """Look up the category of a legacy notification type.

    Args:
        legacy_type: Legacy type member or its string value.

    Returns:
        The mapped category; SYSTEM for strings outside the enum.
    """
    try:
        return LEGACY_CATEGORY_MAP[LegacyNotificationType(legacy_type)]
    except ValueError:
        logger.warning("Unknown legacy notification type %r, using SYSTEM", legacy_type)
        return Category.SYSTEM


async def create_notification(
    service: "NotificationService",
    user_id: str,
    legacy_type: LegacyNotificationType | str,
    title: str,
    message: str,
    entity_type: str | None = None,
    entity_id: str | None = None,
) -> NotificationResult:
    """Send a notification described in the legacy shape.

    Args:
        service: Notification service to dispatch through.
        user_id: Recipient user ID.
        legacy_type: Legacy notification type.
        title: Notification title.
        message: Body text.
        entity_type: Kind of entity, forwarded as resource_type.
        entity_id: Entity ID, forwarded as resource_id.

    Returns:
        The dispatch result.
    """
    notification_type = (
        legacy_type.value if isinstance(legacy_type, LegacyNotificationType) else str(legacy_type)
    )

    return await service.send(
        NotificationRequest(
            user_id=user_id,
            type=notification_type,
            title=title,
            message=message,
            category=category_for_legacy_type(legacy_type),
            resource_type=entity_type,
            resource_id=entity_id,
        )
    )
