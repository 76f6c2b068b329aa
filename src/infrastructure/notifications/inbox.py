# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Read side of in-app notifications: listing and read state."""

from dataclasses import dataclass

from src.infrastructure.database.connection import Database
from src.infrastructure.database.models import Notification
from src.infrastructure.notifications.repository import NotificationRepository
from src.infrastructure.notifications.types import Category
from src.utils.datetime import utc_now

MAX_PAGE_SIZE = 200


@dataclass
class NotificationPage:
    """One page of a user's notifications.

    Attributes:
        items: Notifications on this page, newest first.
        total: Total matching the read-state filter.
        unread_count: Total unread, regardless of the filter.
        limit: Page size applied.
        offset: Offset applied.
    """

    items: list[Notification]
    total: int
    unread_count: int
    limit: int
    offset: int


class InboxService:
    """Lists a user's notifications and tracks read state."""

    def __init__(self, database: Database) -> None:
        self._notifications = NotificationRepository(database)

    async def list_notifications(
        self,
        user_id: str,
        is_read: bool | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> NotificationPage:
        """List a user's notifications.

        Args:
            user_id: Owner of the notifications.
            is_read: Filter by read state; None returns both.
            limit: Page size, clamped to 1..MAX_PAGE_SIZE.
            offset: Number of rows to skip.

        Returns:
            NotificationPage with counts.
        """
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        offset = max(0, offset)

        items = await self._notifications.list_for_user(user_id, is_read, limit, offset)
        total = await self._notifications.count_for_user(user_id, is_read)
        unread_count = await self._notifications.count_for_user(user_id, is_read=False)

        return NotificationPage(
            items=items,
            total=total,
            unread_count=unread_count,
            limit=limit,
            offset=offset,
        )

    async def mark_as_read(self, user_id: str, notification_id: str) -> Notification | None:
        """Mark one notification as read.

        Returns:
            The notification, or None when the user does not own it.
        """
        return await self._notifications.mark_as_read(user_id, notification_id, utc_now())

    async def mark_all_as_read(self, user_id: str, category: Category | str | None = None) -> int:
        """Mark every unread notification of a user as read.

        Args:
            user_id: Owner of the notifications.
            category: Restrict to one category.

        Returns:
            Number of notifications updated.

        Raises:
            ValueError: If the category is unknown.
        """
        category_value = Category(category).value if category is not None else None
        return await self._notifications.mark_all_as_read(user_id, utc_now(), category_value)
