# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for NotificationService.send()."""

from unittest.mock import AsyncMock, patch

import pytest

from src.infrastructure.database.connection import DatabaseError
from src.infrastructure.database.models import EmailQueue, Notification
from src.infrastructure.database.models.platform import UserRole
from src.infrastructure.notifications import (
    Category,
    Channel,
    DispatchStage,
    NotificationRequest,
    Priority,
)


def _request(user_id: str, **overrides) -> NotificationRequest:
    fields = {
        "user_id": user_id,
        "type": "DOCUMENT_FLAGGED",
        "title": "Document Flagged",
        "message": "One of your documents has been flagged.",
    }
    fields.update(overrides)
    return NotificationRequest(**fields)


class TestSendScenarios:
    """End-to-end dispatch behaviour against the test database."""

    @pytest.mark.asyncio
    async def test_role_mismatch_is_skipped_without_writes(self, service, make_user, count_rows) -> None:
        """A recipient whose role no longer matches is skipped, not failed."""
        user = await make_user(role=UserRole.INSTITUTION_ADMIN)

        result = await service.send(_request(user.id, recipient_role="QCTO_ADMIN"))

        assert result.skipped is True
        assert result.error is None
        assert result.notification_id is None
        assert result.email_queued is False
        assert await count_rows(Notification) == 0
        assert await count_rows(EmailQueue) == 0

    @pytest.mark.asyncio
    async def test_delivers_in_app_and_email(self, service, make_user, count_rows) -> None:
        """No preferences, NORMAL priority and an address on file: both channels deliver."""
        user = await make_user(role=UserRole.INSTITUTION_ADMIN, email="admin@acme.example")

        result = await service.send(
            _request(
                user.id,
                priority=Priority.NORMAL,
                channels=[Channel.EMAIL, Channel.IN_APP],
                recipient_role="INSTITUTION_ADMIN",
            )
        )

        assert result.ok is True
        assert result.notification_id is not None
        assert result.email_queued is True
        assert result.channels == [Channel.EMAIL, Channel.IN_APP]
        assert await count_rows(Notification, user_id=user.id) == 1
        assert await count_rows(EmailQueue, user_id=user.id) == 1

    @pytest.mark.asyncio
    async def test_email_disabled_for_category(self, service, make_user, count_rows) -> None:
        """EMAIL disabled for COMPLIANCE at NORMAL priority leaves only the in-app row."""
        user = await make_user()
        await service.preferences.upsert_preference(user.id, Category.COMPLIANCE, email=False)

        result = await service.send(
            _request(user.id, category=Category.COMPLIANCE, priority=Priority.NORMAL)
        )

        assert result.notification_id is not None
        assert result.email_queued is False
        assert result.channels == [Channel.IN_APP]
        assert await count_rows(Notification) == 1
        assert await count_rows(EmailQueue) == 0

    @pytest.mark.asyncio
    async def test_critical_ignores_disabled_channels(self, service, make_user, count_rows) -> None:
        """CRITICAL delivers even to channels the user switched off."""
        user = await make_user()
        await service.preferences.upsert_preference(
            user.id, Category.SECURITY, email=False, in_app=False
        )

        result = await service.send(
            _request(user.id, category=Category.SECURITY, priority=Priority.CRITICAL)
        )

        assert result.notification_id is not None
        assert result.email_queued is True
        assert await count_rows(Notification) == 1
        assert await count_rows(EmailQueue) == 1

    @pytest.mark.asyncio
    async def test_all_channels_disabled_is_not_an_error(self, service, make_user, count_rows) -> None:
        """Preferences removing every channel give an empty, successful result."""
        user = await make_user()
        await service.preferences.upsert_preference(
            user.id, Category.MARKETING, email=False, in_app=False
        )

        result = await service.send(_request(user.id, category=Category.MARKETING))

        assert result.ok is True
        assert result.delivered is False
        assert result.channels == []
        assert await count_rows(Notification) == 0

    @pytest.mark.asyncio
    async def test_missing_email_address_skips_email_only(self, service, make_user, count_rows) -> None:
        """A user without an address still gets the in-app record."""
        user = await make_user(email=None)

        result = await service.send(_request(user.id))

        assert result.ok is True
        assert result.notification_id is not None
        assert result.email_queued is False
        assert await count_rows(EmailQueue) == 0

    @pytest.mark.asyncio
    async def test_sms_only_request_writes_nothing(self, service, make_user, count_rows) -> None:
        """SMS is accepted but inert."""
        user = await make_user()

        result = await service.send(_request(user.id, channels=[Channel.SMS], priority=Priority.CRITICAL))

        assert result.ok is True
        assert result.channels == [Channel.SMS]
        assert result.delivered is False
        assert await count_rows(Notification) == 0
        assert await count_rows(EmailQueue) == 0

    @pytest.mark.asyncio
    async def test_empty_channel_list_requests_nothing(self, service, make_user, count_rows) -> None:
        """An explicit empty list does not fall back to the defaults."""
        user = await make_user()

        result = await service.send(_request(user.id, channels=[]))

        assert result.ok is True
        assert result.channels == []
        assert await count_rows(Notification) == 0


class TestSendRecords:
    """Tests for the rows written by a dispatch."""

    @pytest.mark.asyncio
    async def test_defaults_are_applied(self, service, make_user, fetch_all) -> None:
        """Unset category, priority and channels take the configured defaults."""
        user = await make_user()

        await service.send(_request(user.id))

        [notification] = await fetch_all(Notification, user_id=user.id)
        assert notification.category == "SYSTEM"
        assert notification.priority == "NORMAL"
        assert notification.channels == ["IN_APP", "EMAIL"]
        assert notification.is_read is False

    @pytest.mark.asyncio
    async def test_resource_is_copied_to_legacy_columns(self, service, make_user, fetch_all) -> None:
        """resource_* is mirrored into entity_* for older clients."""
        user = await make_user()

        await service.send(
            _request(
                user.id,
                resource_type="DOCUMENT",
                resource_id="doc-42",
                institution_id="inst-1",
                action_link="https://app.example.com/documents/doc-42",
            )
        )

        [notification] = await fetch_all(Notification, user_id=user.id)
        assert notification.resource_type == notification.entity_type == "DOCUMENT"
        assert notification.resource_id == notification.entity_id == "doc-42"
        assert notification.institution_id == "inst-1"
        assert notification.action_link == "https://app.example.com/documents/doc-42"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("priority", "queue_priority"),
        [
            (Priority.CRITICAL, "HIGH"),
            (Priority.HIGH, "HIGH"),
            (Priority.NORMAL, "NORMAL"),
            (Priority.LOW, "NORMAL"),
        ],
    )
    async def test_email_queue_priority(
        self, service, make_user, fetch_all, priority, queue_priority
    ) -> None:
        """CRITICAL and HIGH map to HIGH queue priority, the rest to NORMAL."""
        user = await make_user()

        await service.send(_request(user.id, priority=priority))

        [email] = await fetch_all(EmailQueue, user_id=user.id)
        assert email.priority == queue_priority

    @pytest.mark.asyncio
    async def test_email_row_contents(self, service, make_user, fetch_all) -> None:
        """The queued email carries subject, text body and an HTML body with the link."""
        user = await make_user(email="admin@acme.example")

        await service.send(
            _request(user.id, action_link="https://app.example.com/documents/doc-42")
        )

        [email] = await fetch_all(EmailQueue, user_id=user.id)
        assert email.to_email == "admin@acme.example"
        assert email.subject == "Document Flagged"
        assert email.body_text == "One of your documents has been flagged."
        assert email.status == "PENDING"
        assert email.body_html == (
            "<p>One of your documents has been flagged.</p>"
            '<br><a href="https://app.example.com/documents/doc-42">View Details</a>'
        )


class TestSendErrors:
    """Tests for error reporting; send() never raises."""

    @pytest.mark.asyncio
    async def test_unknown_category_is_a_validation_error(self, service, make_user, count_rows) -> None:
        """Bad input is reported on the result before anything is written."""
        user = await make_user()

        result = await service.send(_request(user.id, category="NEWSLETTER"))

        assert result.error is not None
        assert result.error.stage is DispatchStage.VALIDATE
        assert result.error.exception_type == "ValueError"
        assert await count_rows(Notification) == 0

    @pytest.mark.asyncio
    async def test_unknown_channel_is_a_validation_error(self, service, make_user) -> None:
        """Unknown channels are rejected."""
        user = await make_user()

        result = await service.send(_request(user.id, channels=["PUSH"]))

        assert result.error is not None
        assert result.error.stage is DispatchStage.VALIDATE

    @pytest.mark.asyncio
    async def test_safety_lookup_failure(self, service, make_user, count_rows) -> None:
        """A failed role lookup is an error, not a skip."""
        user = await make_user()

        with patch.object(
            service._safety,
            "can_deliver",
            AsyncMock(side_effect=DatabaseError("connection lost")),
        ):
            result = await service.send(_request(user.id, recipient_role="INSTITUTION_ADMIN"))

        assert result.skipped is False
        assert result.error is not None
        assert result.error.stage is DispatchStage.SAFETY
        assert await count_rows(Notification) == 0

    @pytest.mark.asyncio
    async def test_in_app_failure_does_not_stop_email(self, service, make_user, count_rows) -> None:
        """The email is still queued when the in-app insert fails."""
        user = await make_user()
        in_app = service.channels[Channel.IN_APP]

        with patch.object(
            in_app._notifications,
            "create",
            AsyncMock(side_effect=DatabaseError("insert failed")),
        ):
            result = await service.send(_request(user.id))

        assert result.notification_id is None
        assert result.email_queued is True
        assert result.error is not None
        assert result.error.stage is DispatchStage.IN_APP
        assert await count_rows(EmailQueue) == 1

    @pytest.mark.asyncio
    async def test_email_failure_keeps_in_app_record(self, service, make_user, count_rows) -> None:
        """A failed enqueue does not roll back the in-app record."""
        user = await make_user()
        email = service.channels[Channel.EMAIL]

        with patch.object(
            email._queue,
            "enqueue",
            AsyncMock(side_effect=DatabaseError("queue unavailable")),
        ):
            result = await service.send(_request(user.id))

        assert result.notification_id is not None
        assert result.email_queued is False
        assert result.error is not None
        assert result.error.stage is DispatchStage.EMAIL
        assert result.ok is False
        assert await count_rows(Notification) == 1
        assert await count_rows(EmailQueue) == 0

    @pytest.mark.asyncio
    async def test_first_error_is_kept(self, service, make_user) -> None:
        """When both channels fail the in-app error is reported."""
        user = await make_user()

        with patch.object(
            service.channels[Channel.IN_APP]._notifications,
            "create",
            AsyncMock(side_effect=DatabaseError("insert failed")),
        ), patch.object(
            service.channels[Channel.EMAIL]._queue,
            "enqueue",
            AsyncMock(side_effect=DatabaseError("queue unavailable")),
        ):
            result = await service.send(_request(user.id))

        assert result.error.stage is DispatchStage.IN_APP
        assert result.delivered is False

    @pytest.mark.asyncio
    async def test_errors_are_logged(self, service, make_user, caplog) -> None:
        """Every error result is logged centrally."""
        user = await make_user()

        with caplog.at_level("ERROR"):
            await service.send(_request(user.id, priority="URGENT"))

        assert any("failed at validate" in record.getMessage() for record in caplog.records)
