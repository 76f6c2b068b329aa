# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Inactivity trigger.

Reminds users who have not been active for the configured number of days
to sign in again. The dispatch is pinned to the role the user held when
selected, so a role change between selection and dispatch is caught by the
recipient safety check.
"""

from datetime import datetime, timedelta

from src.core.triggers.base import BaseTrigger, CooldownPolicy, TriggerCandidate
from src.infrastructure.notifications import (
    Category,
    Channel,
    NotificationRequest,
    Priority,
)
from src.utils.datetime import days_before, ensure_utc

INACTIVITY_WARNING = "INACTIVITY_WARNING"


class InactivityTrigger(BaseTrigger):
    """Notifies long-idle users, oldest activity first."""

    @property
    def name(self) -> str:
        """Return the trigger name."""
        return "inactivity"

    @property
    def cooldown(self) -> CooldownPolicy:
        """One reminder per user per window."""
        return CooldownPolicy(
            event_type=INACTIVITY_WARNING,
            window=timedelta(days=self._settings.triggers.inactivity_cooldown_days),
        )

    async def select_candidates(self, now: datetime) -> list[TriggerCandidate]:
        """Select one batch of idle users."""
        triggers = self._settings.triggers
        users = await self._platform.list_inactive_users(
            days_before(now, triggers.inactivity_threshold_days),
            triggers.inactivity_batch_size,
        )
        return [
            TriggerCandidate(
                user_id=user.id,
                details={
                    "role": user.role,
                    "last_active_at": ensure_utc(user.last_active_at),
                },
            )
            for user in users
        ]

    def build_request(self, candidate: TriggerCandidate, now: datetime) -> NotificationRequest:
        """Build the sign-in reminder."""
        days_idle = (now - candidate.details["last_active_at"]).days

        return NotificationRequest(
            user_id=candidate.user_id,
            type=INACTIVITY_WARNING,
            title="We haven't seen you in a while",
            message=(
                f"You have not signed in for {days_idle} days. Sign in to keep "
                "your account and records up to date."
            ),
            category=Category.SYSTEM,
            priority=Priority.NORMAL,
            channels=[Channel.EMAIL, Channel.IN_APP],
            recipient_role=candidate.details["role"],
            action_link=f"{self._settings.app_base_url}/login",
        )
