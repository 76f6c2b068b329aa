# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SMS channel placeholder.

SMS can be requested and configured in preferences, but no gateway is
wired up yet, so every send is reported as skipped.
"""

from src.infrastructure.notifications.channels.base import (
    BaseChannel,
    ChannelResult,
    NotificationPayload,
)
from src.infrastructure.notifications.types import Channel


class SmsChannel(BaseChannel):
    """Inert SMS channel."""

    @property
    def channel_type(self) -> Channel:
        """Return the channel type."""
        return Channel.SMS

    async def send(self, payload: NotificationPayload) -> ChannelResult:
        """Skip SMS delivery."""
        self.logger.debug("SMS delivery not available; skipped for user %s", payload.recipient_id)
        return self.create_skipped_result("SMS delivery not available")
