# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Compliance expiry trigger.

Warns institution admins about active compliance records (accreditations,
registrations) that expire within the look-ahead window. Each admin is
told about each record at most once per cooldown window.
"""

from datetime import datetime, timedelta

from src.core.triggers.base import BaseTrigger, CooldownPolicy, TriggerCandidate
from src.infrastructure.database.models.platform import UserRole
from src.infrastructure.notifications import (
    Category,
    Channel,
    NotificationRequest,
    Priority,
)
from src.utils.datetime import days_after, ensure_utc, format_date

COMPLIANCE_EXPIRY = "COMPLIANCE_EXPIRY"
RESOURCE_TYPE = "COMPLIANCE_RECORD"


class ComplianceExpiryTrigger(BaseTrigger):
    """Notifies institution admins of compliance records nearing expiry."""

    @property
    def name(self) -> str:
        """Return the trigger name."""
        return "compliance_expiry"

    @property
    def cooldown(self) -> CooldownPolicy:
        """One notification per (user, record) per window."""
        return CooldownPolicy(
            event_type=COMPLIANCE_EXPIRY,
            window=timedelta(days=self._settings.triggers.compliance_cooldown_days),
            match_resource=True,
        )

    async def select_candidates(self, now: datetime) -> list[TriggerCandidate]:
        """Pair each expiring record with each active admin of its institution."""
        until = days_after(now, self._settings.triggers.compliance_expiry_window_days)
        records = await self._platform.list_expiring_compliance_records(now, until)

        candidates: list[TriggerCandidate] = []
        for record in records:
            admins = await self._platform.list_institution_users(
                record.institution_id,
                [UserRole.INSTITUTION_ADMIN],
            )
            if not admins:
                self.logger.debug("No active admins for institution %s", record.institution_id)

            for admin in admins:
                candidates.append(
                    TriggerCandidate(
                        user_id=admin.id,
                        resource_id=record.id,
                        details={
                            "institution_id": record.institution_id,
                            "institution_name": record.institution.name,
                            "record_title": record.title,
                            "expires_at": ensure_utc(record.expires_at),
                        },
                    )
                )

        return candidates

    def build_request(self, candidate: TriggerCandidate, now: datetime) -> NotificationRequest:
        """Build the expiry warning for one admin and record."""
        details = candidate.details
        expiry_date = format_date(details["expires_at"])

        return NotificationRequest(
            user_id=candidate.user_id,
            type=COMPLIANCE_EXPIRY,
            title=f"{details['record_title']} is expiring soon",
            message=(
                f"{details['record_title']} for {details['institution_name']} "
                f"expires on {expiry_date}. Renew it before then to stay compliant."
            ),
            category=Category.COMPLIANCE,
            priority=Priority.HIGH,
            channels=[Channel.EMAIL, Channel.IN_APP],
            resource_type=RESOURCE_TYPE,
            resource_id=candidate.resource_id,
            recipient_role=UserRole.INSTITUTION_ADMIN.value,
            institution_id=details["institution_id"],
        )
