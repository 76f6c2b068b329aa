# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification helpers for common platform events.

Each helper builds the title and message for one event and sends it
through the legacy adapter. The fan-out helpers (new_lead,
service_request) look up every recipient first and then dispatch to them
one at a time; a failure for one recipient never stops the rest.
"""

import logging
from typing import Literal

from src.infrastructure.database.connection import Database
from src.infrastructure.database.models.platform import UserRole
from src.infrastructure.notifications.legacy import LegacyNotificationType, create_notification
from src.infrastructure.notifications.repository import PlatformRepository
from src.infrastructure.notifications.service import NotificationService
from src.infrastructure.notifications.types import NotificationResult

logger = logging.getLogger(__name__)

SubmissionStatus = Literal["APPROVED", "REJECTED", "UNDER_REVIEW"]
ReadinessStatus = Literal["RECOMMENDED", "REJECTED", "UNDER_REVIEW", "RETURNED_FOR_CORRECTION"]

SERVICE_TYPE_LABELS: dict[str, str] = {
    "ACCREDITATION_HELP": "Accreditation help",
    "ACCOUNTING_SERVICES": "Accounting services",
    "MARKETING_WEBSITES": "Websites & marketing",
    "GENERAL_INQUIRY": "General inquiry",
}

LEAD_PREVIEW_LENGTH = 100
SERVICE_REQUEST_PREVIEW_LENGTH = 120

_SUBMISSION_EVENTS: dict[str, tuple[LegacyNotificationType, str, str]] = {
    "APPROVED": (
        LegacyNotificationType.SUBMISSION_APPROVED,
        "Submission Approved",
        "Your submission has been approved by QCTO.",
    ),
    "REJECTED": (
        LegacyNotificationType.SUBMISSION_REJECTED,
        "Submission Rejected",
        "Your submission has been rejected by QCTO.",
    ),
    "UNDER_REVIEW": (
        LegacyNotificationType.SUBMISSION_REVIEWED,
        "Submission Under Review",
        "Your submission is now under review by QCTO.",
    ),
}

_READINESS_EVENTS: dict[str, tuple[LegacyNotificationType, str, str]] = {
    "RECOMMENDED": (
        LegacyNotificationType.READINESS_RECOMMENDED,
        "Readiness Record Recommended",
        "Your readiness record has been recommended by QCTO.",
    ),
    "REJECTED": (
        LegacyNotificationType.READINESS_REJECTED,
        "Readiness Record Rejected",
        "Your readiness record has been rejected by QCTO.",
    ),
    "UNDER_REVIEW": (
        LegacyNotificationType.READINESS_REVIEWED,
        "Readiness Record Under Review",
        "Your readiness record is now under review by QCTO.",
    ),
    "RETURNED_FOR_CORRECTION": (
        LegacyNotificationType.READINESS_REVIEWED,
        "Readiness Record Returned for Correction",
        "Your readiness record has been returned for correction by QCTO. "
        "Please address the feedback and resubmit.",
    ),
}

_REVIEW_ENTITY_TYPES = {"READINESS": "READINESS", "SUBMISSION": "SUBMISSION"}


def truncate(text: str, length: int) -> str:
    """Cut text to ``length`` characters, appending an ellipsis when cut."""
    if len(text) <= length:
        return text
    return f"{text[:length]}…"


class NotificationEvents:
    """Event-specific notification helpers."""

    def __init__(self, service: NotificationService, database: Database) -> None:
        """Initialize the helpers.

        Args:
            service: Service used for every dispatch.
            database: Database used to look up fan-out recipients.
        """
        self._service = service
        self._platform = PlatformRepository(database)

    async def _notify(
        self,
        user_id: str,
        legacy_type: LegacyNotificationType,
        title: str,
        message: str,
        entity_type: str | None = None,
        entity_id: str | None = None,
    ) -> NotificationResult:
        return await create_notification(
            self._service,
            user_id,
            legacy_type,
            title,
            message,
            entity_type=entity_type,
            entity_id=entity_id,
        )

    async def submission_reviewed(
        self,
        user_id: str,
        submission_id: str,
        status: SubmissionStatus | str,
    ) -> NotificationResult:
        """Tell an institution user their submission changed status.

        Statuses outside SubmissionStatus send a generic update.
        """
        legacy_type, title, message = _SUBMISSION_EVENTS.get(
            status,
            (
                LegacyNotificationType.SUBMISSION_REVIEWED,
                "Submission Updated",
                "Your submission status has been updated.",
            ),
        )
        return await self._notify(user_id, legacy_type, title, message, "SUBMISSION", submission_id)

    async def request_approved(self, user_id: str, request_id: str) -> NotificationResult:
        """Tell a user their QCTO request was approved."""
        return await self._notify(
            user_id,
            LegacyNotificationType.REQUEST_APPROVED,
            "QCTO Request Approved",
            "Your QCTO request has been approved.",
            "QCTO_REQUEST",
            request_id,
        )

    async def request_rejected(self, user_id: str, request_id: str) -> NotificationResult:
        """Tell a user their QCTO request was rejected."""
        return await self._notify(
            user_id,
            LegacyNotificationType.REQUEST_REJECTED,
            "QCTO Request Rejected",
            "Your QCTO request has been rejected.",
            "QCTO_REQUEST",
            request_id,
        )

    async def readiness_reviewed(
        self,
        user_id: str,
        readiness_id: str,
        status: ReadinessStatus | str,
    ) -> NotificationResult:
        """Tell an institution user their readiness record changed status.

        Statuses outside ReadinessStatus send a generic update.
        """
        legacy_type, title, message = _READINESS_EVENTS.get(
            status,
            (
                LegacyNotificationType.READINESS_REVIEWED,
                "Readiness Record Updated",
                "Your readiness record status has been updated.",
            ),
        )
        return await self._notify(user_id, legacy_type, title, message, "READINESS", readiness_id)

    async def document_flagged(self, user_id: str, document_id: str) -> NotificationResult:
        """Tell a user one of their documents was flagged."""
        return await self._notify(
            user_id,
            LegacyNotificationType.DOCUMENT_FLAGGED,
            "Document Flagged",
            "One of your documents has been flagged by QCTO for review.",
            "DOCUMENT",
            document_id,
        )

    async def invite_accepted(
        self,
        user_id: str,
        institution_id: str,
        invitee_email: str | None = None,
    ) -> NotificationResult:
        """Tell the inviter that an invitation was accepted."""
        if invitee_email:
            message = f"{invitee_email} has accepted your invitation and joined."
        else:
            message = "A user has accepted your invitation and joined."
        return await self._notify(
            user_id,
            LegacyNotificationType.INVITE_ACCEPTED,
            "Invite Accepted",
            message,
            "INSTITUTION",
            institution_id,
        )

    async def readiness_submitted(
        self,
        user_id: str,
        readiness_id: str,
        qualification_title: str | None = None,
    ) -> NotificationResult:
        """Tell a reviewer that a readiness record was submitted."""
        if qualification_title:
            message = f"A new Form 5 readiness record has been submitted: {qualification_title}."
        else:
            message = "A new Form 5 readiness record has been submitted for review."
        return await self._notify(
            user_id,
            LegacyNotificationType.READINESS_SUBMITTED,
            "New Readiness Record Submitted",
            message,
            "READINESS",
            readiness_id,
        )

    async def review_assigned(self, user_id: str, review_type: str, review_id: str) -> NotificationResult:
        """Tell a reviewer they were assigned a review."""
        return await self._notify(
            user_id,
            LegacyNotificationType.REVIEW_ASSIGNED,
            "New Review Assignment",
            f"You have been assigned a {review_type.lower()} review.",
            _REVIEW_ENTITY_TYPES.get(review_type, "QCTO_REQUEST"),
            review_id,
        )

    async def bulk_invite_completed(
        self,
        user_id: str,
        success_count: int,
        fail_count: int,
        batch_id: str | None = None,
    ) -> NotificationResult:
        """Summarise a finished bulk invite for its sender."""
        message = f"{success_count} invite(s) sent"
        if fail_count > 0:
            message += f", {fail_count} failed"
        return await self._notify(
            user_id,
            LegacyNotificationType.BULK_INVITE_COMPLETED,
            "Bulk Invite Completed",
            f"{message}.",
            "BULK_INVITE" if batch_id else None,
            batch_id,
        )

    async def institution_created(
        self,
        user_id: str,
        institution_id: str,
        institution_name: str | None = None,
    ) -> NotificationResult:
        """Tell an administrator a new institution registered."""
        if institution_name:
            message = f"A new institution has been registered: {institution_name}."
        else:
            message = "A new institution has been registered."
        return await self._notify(
            user_id,
            LegacyNotificationType.INSTITUTION_CREATED,
            "New Institution Registered",
            message,
            "INSTITUTION",
            institution_id,
        )

    async def issue_response(self, user_id: str, issue_id: str, title: str, message: str) -> NotificationResult:
        """Relay a response to an issue report."""
        return await self._notify(
            user_id,
            LegacyNotificationType.ISSUE_RESPONSE,
            title,
            message,
            "ISSUE_REPORT",
            issue_id,
        )

    async def new_lead(
        self,
        lead_id: str,
        institution_id: str,
        full_name: str,
        email: str,
        message: str | None = None,
    ) -> list[NotificationResult]:
        """Notify an institution's admins and staff of a public-profile enquiry.

        Args:
            lead_id: ID of the enquiry.
            institution_id: Institution the enquiry was sent to.
            full_name: Name of the person enquiring.
            email: Their email address.
            message: Optional enquiry text, previewed in the notification.

        Returns:
            One result per notified user.
        """
        recipients = await self._platform.list_institution_users(
            institution_id,
            [UserRole.INSTITUTION_ADMIN, UserRole.INSTITUTION_STAFF],
        )

        title = "New enquiry from your public profile"
        if message:
            body = f'{full_name} ({email}) sent an enquiry: "{truncate(message, LEAD_PREVIEW_LENGTH)}"'
        else:
            body = f"{full_name} ({email}) submitted an enquiry through your public profile."

        results = []
        for user in recipients:
            results.append(
                await self._notify(
                    user.id,
                    LegacyNotificationType.NEW_LEAD,
                    title,
                    body,
                    "INSTITUTION_LEAD",
                    lead_id,
                )
            )

        logger.info(
            "New lead %s fanned out to %d users of institution %s",
            lead_id,
            len(results),
            institution_id,
        )
        return results

    async def service_request(
        self,
        request_id: str,
        service_type: str,
        full_name: str,
        email: str,
        organization: str | None = None,
        message: str | None = None,
    ) -> list[NotificationResult]:
        """Notify subscribed staff of an inbound service request.

        Users subscribed to ``service_type`` are notified. When nobody is
        subscribed, every platform administrator is notified instead.

        Args:
            request_id: ID of the service request.
            service_type: Requested service, e.g. ``ACCREDITATION_HELP``.
            full_name: Name of the requester.
            email: Their email address.
            organization: Optional organisation name.
            message: Optional request text, previewed in the notification.

        Returns:
            One result per notified user.
        """
        recipients = await self._platform.list_service_lead_subscribers(service_type)
        if not recipients:
            logger.info("No subscribers for %s requests, notifying platform admins", service_type)
            recipients = await self._platform.list_platform_admins()

        type_label = SERVICE_TYPE_LABELS.get(service_type, service_type)
        title = f"New request: {type_label}"
        sender = f"{full_name} ({email})"
        if organization:
            sender += f" from {organization}"
        if message:
            body = f'{sender}: "{truncate(message, SERVICE_REQUEST_PREVIEW_LENGTH)}"'
        else:
            body = f"{sender} requested {type_label}."

        results = []
        for user in recipients:
            results.append(
                await self._notify(
                    user.id,
                    LegacyNotificationType.SERVICE_REQUEST,
                    title,
                    body,
                    "SERVICE_REQUEST",
                    request_id,
                )
            )
        return results
