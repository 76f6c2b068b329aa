# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Base classes for notification channels.

Each channel turns a NotificationPayload into one durable artefact: an
in-app record, an email_queue row, or (for SMS) nothing yet. Channels
never raise; failures are reported through ChannelResult so the
dispatcher can keep going with the next channel.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from src.infrastructure.notifications.types import Category, Channel, Priority


class DeliveryStatus(str, Enum):
    """Outcome of a channel step."""

    SENT = "sent"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class NotificationPayload:
    """Everything a channel needs to deliver one notification.

    Attributes:
        recipient_id: Recipient user ID.
        notification_type: Event tag.
        title: Notification title.
        message: Body text.
        category: Effective category.
        priority: Effective priority.
        channels: Channels resolved for this dispatch, stored on the
            in-app record.
        resource_type: Kind of entity the notification is about.
        resource_id: ID of that entity.
        recipient_role: Role the recipient was required to hold.
        institution_id: Institution context.
        action_link: Deep link.
    """

    recipient_id: str
    notification_type: str
    title: str
    message: str
    category: Category
    priority: Priority
    channels: list[Channel] = field(default_factory=list)
    resource_type: str | None = None
    resource_id: str | None = None
    recipient_role: str | None = None
    institution_id: str | None = None
    action_link: str | None = None


@dataclass
class ChannelResult:
    """Result of a channel send operation.

    Attributes:
        channel: Which channel was used.
        status: Delivery status.
        message_id: ID of the created row, if any.
        error_message: Error or skip reason.
        exception: Exception that caused a failure.
        metadata: Additional result metadata.
    """

    channel: Channel
    status: DeliveryStatus
    message_id: str | None = None
    error_message: str | None = None
    exception: Exception | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        """True when the channel produced its artefact."""
        return self.status is DeliveryStatus.SENT


class BaseChannel(ABC):
    """Abstract base class for notification channels.

    Attributes:
        channel_type: The channel this implementation delivers through.
    """

    def __init__(self) -> None:
        """Initialize the channel."""
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    @abstractmethod
    def channel_type(self) -> Channel:
        """Return the channel type."""
        ...

    @abstractmethod
    async def send(self, payload: NotificationPayload) -> ChannelResult:
        """Deliver a notification through this channel.

        Args:
            payload: The notification payload to send.

        Returns:
            ChannelResult with delivery status.
        """
        ...

    def create_success_result(
        self,
        message_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> ChannelResult:
        """Create a successful channel result.

        Args:
            message_id: ID of the created row.
            metadata: Additional metadata.

        Returns:
            ChannelResult with SENT status.
        """
        return ChannelResult(
            channel=self.channel_type,
            status=DeliveryStatus.SENT,
            message_id=message_id,
            metadata=metadata or {},
        )

    def create_failure_result(self, exception: Exception) -> ChannelResult:
        """Create a failed channel result.

        Args:
            exception: The error that stopped delivery.

        Returns:
            ChannelResult with FAILED status.
        """
        return ChannelResult(
            channel=self.channel_type,
            status=DeliveryStatus.FAILED,
            error_message=str(exception) or exception.__class__.__name__,
            exception=exception,
        )

    def create_skipped_result(self, reason: str) -> ChannelResult:
        """Create a skipped channel result.

        Args:
            reason: Why the send was skipped.

        Returns:
            ChannelResult with SKIPPED status.
        """
        return ChannelResult(
            channel=self.channel_type,
            status=DeliveryStatus.SKIPPED,
            error_message=reason,
        )
