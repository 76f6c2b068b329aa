# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Profile completeness trigger.

Nudges onboarded users whose profile completeness score is below the
threshold. The lowest scores are handled first.
"""

from datetime import datetime, timedelta

from src.core.triggers.base import BaseTrigger, CooldownPolicy, TriggerCandidate
from src.infrastructure.notifications import (
    Category,
    Channel,
    NotificationRequest,
    Priority,
)

PROFILE_INCOMPLETE = "PROFILE_INCOMPLETE"


class ProfileCompletenessTrigger(BaseTrigger):
    """Notifies users with incomplete profiles."""

    @property
    def name(self) -> str:
        """Return the trigger name."""
        return "profile_completeness"

    @property
    def cooldown(self) -> CooldownPolicy:
        """One nudge per user per window."""
        return CooldownPolicy(
            event_type=PROFILE_INCOMPLETE,
            window=timedelta(days=self._settings.triggers.profile_cooldown_days),
        )

    async def select_candidates(self, now: datetime) -> list[TriggerCandidate]:
        """Select one batch of users below the completeness threshold."""
        triggers = self._settings.triggers
        users = await self._platform.list_incomplete_profiles(
            triggers.profile_completeness_threshold,
            triggers.profile_batch_size,
        )
        return [
            TriggerCandidate(
                user_id=user.id,
                details={"completeness": user.profile_completeness},
            )
            for user in users
        ]

    def build_request(self, candidate: TriggerCandidate, now: datetime) -> NotificationRequest:
        """Build the completion nudge."""
        return NotificationRequest(
            user_id=candidate.user_id,
            type=PROFILE_INCOMPLETE,
            title="Complete your profile",
            message=(
                f"Your profile is {candidate.details['completeness']}% complete. "
                "Add the missing details so reviewers and institutions have "
                "what they need."
            ),
            category=Category.SYSTEM,
            priority=Priority.LOW,
            channels=[Channel.IN_APP, Channel.EMAIL],
            action_link=f"{self._settings.app_base_url}/account/profile",
        )
