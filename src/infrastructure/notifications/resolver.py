# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Channel resolution from requested channels, priority and preferences."""

from collections.abc import Iterable

from src.infrastructure.notifications.preferences import PreferenceStore
from src.infrastructure.notifications.types import Category, Channel, Priority


class ChannelResolver:
    """Decides which requested channels a dispatch actually uses."""

    def __init__(self, preferences: PreferenceStore) -> None:
        self._preferences = preferences

    async def resolve_channels(
        self,
        user_id: str,
        category: Category,
        priority: Priority,
        requested: Iterable[Channel],
    ) -> list[Channel]:
        """Filter requested channels through the user's preferences.

        CRITICAL priority keeps every requested channel. Otherwise a channel
        is kept only if the preference store allows it. Request order is
        preserved and repeated channels are dropped. An empty result is
        valid and means nothing is delivered.

        Args:
            user_id: Recipient user ID.
            category: Notification category.
            priority: Notification priority.
            requested: Requested channels in delivery order.

        Returns:
            Channels to deliver through.
        """
        resolved: list[Channel] = []

        for channel in requested:
            if channel in resolved:
                continue
            if priority is Priority.CRITICAL or await self._preferences.is_channel_allowed(
                user_id, category, channel
            ):
                resolved.append(channel)

        return resolved
