# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Per-user notification preferences.

Preferences are stored per (user, category). A user without a row for a
category receives every channel; rows are created lazily the first time
the user changes a switch.
"""

import logging

from src.infrastructure.database.connection import Database
from src.infrastructure.database.models import NotificationPreference
from src.infrastructure.notifications.repository import PreferenceRepository
from src.infrastructure.notifications.types import Category, Channel

logger = logging.getLogger(__name__)

# Column values for a freshly created row when the caller leaves a switch unset
PREFERENCE_DEFAULTS: dict[str, bool] = {
    "email_enabled": True,
    "in_app_enabled": True,
    "sms_enabled": False,
}

_CHANNEL_COLUMNS: dict[Channel, str] = {
    Channel.EMAIL: "email_enabled",
    Channel.IN_APP: "in_app_enabled",
    Channel.SMS: "sms_enabled",
}


class PreferenceStore:
    """Reads and writes notification preferences.

    Lookups used during dispatch fail open: if the store cannot be read,
    the channel is treated as allowed and the failure is logged.
    """

    def __init__(self, database: Database) -> None:
        """Initialize the preference store.

        Args:
            database: Database used for preference rows.
        """
        self._repository = PreferenceRepository(database)

    async def is_channel_allowed(
        self,
        user_id: str,
        category: Category | str,
        channel: Channel | str,
    ) -> bool:
        """Check whether a user accepts a channel for a category.

        Args:
            user_id: Recipient user ID.
            category: Notification category.
            channel: Channel to check.

        Returns:
            The stored switch when a row exists, True otherwise. Unknown
            channels and lookup failures also return True.
        """
        column = _CHANNEL_COLUMNS.get(_as_channel(channel))
        if column is None:
            return True

        try:
            preference = await self._repository.get(user_id, _category_value(category))
        except Exception as e:
            logger.warning(
                "Preference lookup failed for user %s, category %s; allowing %s: %s",
                user_id,
                _category_value(category),
                column,
                str(e),
            )
            return True

        if preference is None:
            return True

        return bool(getattr(preference, column))

    async def list_preferences(self, user_id: str) -> list[NotificationPreference]:
        """List the stored preference rows of a user.

        Categories without a row are not included; they allow every channel.
        """
        return await self._repository.list_for_user(user_id)

    async def upsert_preference(
        self,
        user_id: str,
        category: Category | str,
        email: bool | None = None,
        in_app: bool | None = None,
        sms: bool | None = None,
    ) -> NotificationPreference:
        """Create or partially update a preference row.

        Only the switches passed as booleans are written. When the row is
        created, unset switches take PREFERENCE_DEFAULTS rather than False.

        Args:
            user_id: Owner of the preference.
            category: Category to configure.
            email: New email switch, or None to leave unchanged.
            in_app: New in-app switch, or None to leave unchanged.
            sms: New SMS switch, or None to leave unchanged.

        Returns:
            The stored preference row.

        Raises:
            ValueError: If the category is unknown.
            DatabaseError: If the write fails.
        """
        category_value = Category(category).value
        changes = {
            column: value
            for column, value in (
                ("email_enabled", email),
                ("in_app_enabled", in_app),
                ("sms_enabled", sms),
            )
            if value is not None
        }

        preference = await self._repository.upsert(
            user_id,
            category_value,
            create_defaults=PREFERENCE_DEFAULTS,
            changes=changes,
        )
        logger.info(
            "Updated %s preferences for user %s: %s",
            category_value,
            user_id,
            changes,
        )
        return preference


def _as_channel(channel: Channel | str) -> Channel | None:
    try:
        return Channel(channel)
    except ValueError:
        return None


def _category_value(category: Category | str) -> str:
    return category.value if isinstance(category, Category) else str(category)
