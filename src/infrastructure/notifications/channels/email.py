# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Email notification channel.

Emails are never sent inline. This channel inserts a PENDING row into
email_queue; a separate transport worker drains the queue and owns every
later status. Recipients without an email address are skipped silently.
"""

from html import escape

from src.infrastructure.database.connection import Database
from src.infrastructure.notifications.channels.base import (
    BaseChannel,
    ChannelResult,
    NotificationPayload,
)
from src.infrastructure.notifications.repository import (
    EmailQueueRepository,
    PlatformRepository,
)
from src.infrastructure.notifications.types import Channel, EmailStatus


def build_html_body(message: str, action_link: str | None = None) -> str:
    """Render the HTML body of a notification email.

    Args:
        message: Body text.
        action_link: Optional deep link rendered as a "View Details" link.

    Returns:
        HTML fragment.

    Example:
        >>> build_html_body("Approved", "https://app/x")
        '<p>Approved</p><br><a href="https://app/x">View Details</a>'
    """
    html = f"<p>{escape(message, quote=False)}</p>"
    if action_link:
        html += f'<br><a href="{escape(action_link)}">View Details</a>'
    return html


class EmailChannel(BaseChannel):
    """Email channel that enqueues messages for the transport worker."""

    def __init__(self, database: Database) -> None:
        """Initialize the email channel.

        Args:
            database: Database holding users and email_queue.
        """
        super().__init__()
        self._platform = PlatformRepository(database)
        self._queue = EmailQueueRepository(database)

    @property
    def channel_type(self) -> Channel:
        """Return the channel type."""
        return Channel.EMAIL

    async def send(self, payload: NotificationPayload) -> ChannelResult:
        """Enqueue a notification email.

        Args:
            payload: The notification payload.

        Returns:
            SENT with the queue row ID, SKIPPED when the user has no
            address, FAILED on a store error.
        """
        try:
            user = await self._platform.get_user(payload.recipient_id)
            to_email = user.email if user is not None else None
            if not to_email:
                return self.create_skipped_result("No recipient email address")

            email = await self._queue.enqueue(
                user_id=payload.recipient_id,
                to_email=to_email,
                subject=payload.title,
                body_text=payload.message,
                body_html=build_html_body(payload.message, payload.action_link),
                notification_type=payload.notification_type,
                resource_id=payload.resource_id,
                status=EmailStatus.PENDING.value,
                priority=payload.priority.queue_priority.value,
            )
        except Exception as e:
            return self.create_failure_result(e)

        self.logger.info(
            "Queued %s priority email %s for user %s",
            email.priority,
            email.id,
            payload.recipient_id,
        )
        return self.create_success_result(message_id=email.id)
