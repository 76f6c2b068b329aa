# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""In-app notification channel.

Creates the notification record shown in the user's inbox. The resource
reference is written to both the resource_* columns and the legacy
entity_* columns that older inbox clients still read.
"""

from src.infrastructure.database.connection import Database
from src.infrastructure.notifications.channels.base import (
    BaseChannel,
    ChannelResult,
    NotificationPayload,
)
from src.infrastructure.notifications.repository import NotificationRepository
from src.infrastructure.notifications.types import Channel


class InAppChannel(BaseChannel):
    """In-app notification channel backed by the notifications table."""

    def __init__(self, database: Database) -> None:
        """Initialize the in-app channel.

        Args:
            database: Database holding the notifications table.
        """
        super().__init__()
        self._notifications = NotificationRepository(database)

    @property
    def channel_type(self) -> Channel:
        """Return the channel type."""
        return Channel.IN_APP

    async def send(self, payload: NotificationPayload) -> ChannelResult:
        """Create an in-app notification record.

        Args:
            payload: The notification payload.

        Returns:
            ChannelResult whose message_id is the notification ID.
        """
        try:
            notification = await self._notifications.create(
                user_id=payload.recipient_id,
                notification_type=payload.notification_type,
                title=payload.title,
                message=payload.message,
                category=payload.category.value,
                priority=payload.priority.value,
                channels=[channel.value for channel in payload.channels],
                resource_type=payload.resource_type,
                resource_id=payload.resource_id,
                entity_type=payload.resource_type,
                entity_id=payload.resource_id,
                recipient_role=payload.recipient_role,
                institution_id=payload.institution_id,
                action_link=payload.action_link,
            )
        except Exception as e:
            return self.create_failure_result(e)

        self.logger.info(
            "Created in-app notification %s for user %s",
            notification.id,
            payload.recipient_id,
        )
        return self.create_success_result(message_id=notification.id)
