# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification channels.

- InAppChannel: creates notification records in the database
- EmailChannel: enqueues email_queue rows for the transport worker
- SmsChannel: accepted but inert

Usage:
    from src.infrastructure.notifications.channels import InAppChannel, NotificationPayload

    in_app = InAppChannel(database)
    result = await in_app.send(payload)
"""

from src.infrastructure.notifications.channels.base import (
    BaseChannel,
    ChannelResult,
    DeliveryStatus,
    NotificationPayload,
)
from src.infrastructure.notifications.channels.email import EmailChannel, build_html_body
from src.infrastructure.notifications.channels.in_app import InAppChannel
from src.infrastructure.notifications.channels.sms import SmsChannel

__all__ = [
    # Base types
    "BaseChannel",
    "ChannelResult",
    "DeliveryStatus",
    "NotificationPayload",
    # Channels
    "EmailChannel",
    "InAppChannel",
    "SmsChannel",
    "build_html_body",
]
