# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Recipient role check run before any dispatch side effect."""

import logging

from src.infrastructure.database.connection import Database
from src.infrastructure.notifications.repository import PlatformRepository

logger = logging.getLogger(__name__)


class RecipientSafetyGate:
    """Ensures role-targeted notifications only reach current role holders.

    A notification addressed to "the QCTO admin" must not land in the inbox
    of a user who has since been moved to another role. The check reads
    the user's role at send time, so stale role assumptions made when a
    trigger selected its candidates are caught here.
    """

    def __init__(self, database: Database) -> None:
        self._platform = PlatformRepository(database)

    async def can_deliver(self, user_id: str, expected_role: str | None = None) -> bool:
        """Check whether a user may receive a notification.

        Args:
            user_id: Recipient user ID.
            expected_role: Role the recipient must currently hold, or None
                for no constraint.

        Returns:
            True when no role is required or the user's current role
            matches exactly. False for a mismatch or a missing user.

        Raises:
            DatabaseError: If the user lookup fails.
        """
        if not expected_role:
            return True

        user = await self._platform.get_user(user_id)
        actual_role = user.role if user is not None else None

        if actual_role != expected_role:
            logger.warning(
                "Skipped notification for user %s: role mismatch (required %s, actual %s)",
                user_id,
                expected_role,
                actual_role,
            )
            return False

        return True
