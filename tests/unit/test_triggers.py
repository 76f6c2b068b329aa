# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the notification triggers and the trigger engine."""

from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest
from pydantic import SecretStr

from src.core.config import Settings
from src.core.config.settings import TriggerSettings
from src.core.triggers import (
    COMPLIANCE_EXPIRY,
    INACTIVITY_WARNING,
    PROFILE_INCOMPLETE,
    TriggerEngine,
    TriggerEngineError,
)
from src.infrastructure.database.connection import DatabaseError
from src.infrastructure.database.models import EmailQueue, Notification, User
from src.infrastructure.database.models.platform import ComplianceStatus, UserRole
from src.infrastructure.notifications import Category, Channel, NotificationService
from src.utils.datetime import utc_now


def _settings(**trigger_overrides) -> Settings:
    return Settings(
        environment="test",
        app_base_url="https://app.example.com",
        cron_secret=SecretStr("test-cron-secret"),
        triggers=TriggerSettings(**trigger_overrides),
    )


def _engine(database, **trigger_overrides) -> TriggerEngine:
    settings = _settings(**trigger_overrides)
    return TriggerEngine(database, settings, NotificationService(database, settings))


class TestComplianceExpiryTrigger:
    """Tests for the compliance expiry scan."""

    @pytest.mark.asyncio
    async def test_second_run_is_suppressed(
        self, database, make_institution, make_user, make_compliance_record
    ) -> None:
        """One expiring record and one admin: sent once, then in cooldown."""
        institution = await make_institution()
        await make_user(role=UserRole.INSTITUTION_ADMIN, institution_id=institution.id)
        await make_compliance_record(institution.id, utc_now() + timedelta(days=10))
        engine = _engine(database)

        first = await engine.process_compliance_triggers()
        second = await engine.process_compliance_triggers()

        assert first == {"processed": 1, "sent": 1}
        assert second == {"processed": 1, "sent": 0}

    @pytest.mark.asyncio
    async def test_notification_contents(
        self, database, make_institution, make_user, make_compliance_record, fetch_all
    ) -> None:
        """The warning is a HIGH compliance notification about the record."""
        institution = await make_institution(name="Acme Training Academy")
        admin = await make_user(role=UserRole.INSTITUTION_ADMIN, institution_id=institution.id)
        expires_at = utc_now() + timedelta(days=10)
        record = await make_compliance_record(institution.id, expires_at, title="Skills Programme Accreditation")

        await _engine(database).process_compliance_triggers()

        [notification] = await fetch_all(Notification, user_id=admin.id)
        assert notification.notification_type == COMPLIANCE_EXPIRY
        assert notification.title == "Skills Programme Accreditation is expiring soon"
        assert notification.message == (
            f"Skills Programme Accreditation for Acme Training Academy expires on "
            f"{expires_at.date().isoformat()}. Renew it before then to stay compliant."
        )
        assert notification.category == "COMPLIANCE"
        assert notification.priority == "HIGH"
        assert notification.resource_type == "COMPLIANCE_RECORD"
        assert notification.resource_id == record.id
        assert notification.recipient_role == "INSTITUTION_ADMIN"
        assert notification.institution_id == institution.id
        [email] = await fetch_all(EmailQueue, user_id=admin.id)
        assert email.priority == "HIGH"

    @pytest.mark.asyncio
    async def test_cooldown_is_per_record(
        self, database, make_institution, make_user, make_compliance_record
    ) -> None:
        """The same admin is told about each expiring record."""
        institution = await make_institution()
        await make_user(role=UserRole.INSTITUTION_ADMIN, institution_id=institution.id)
        await make_compliance_record(institution.id, utc_now() + timedelta(days=5), title="Accreditation")
        await make_compliance_record(institution.id, utc_now() + timedelta(days=20), title="Registration")

        result = await _engine(database).process_compliance_triggers()

        assert result == {"processed": 2, "sent": 2}

    @pytest.mark.asyncio
    async def test_email_only_cooldown_is_per_record(
        self, database, make_institution, make_user, make_compliance_record, service, fetch_all
    ) -> None:
        """A queued email only suppresses warnings about its own record."""
        institution = await make_institution()
        admin = await make_user(role=UserRole.INSTITUTION_ADMIN, institution_id=institution.id)
        await service.preferences.upsert_preference(admin.id, Category.COMPLIANCE, in_app=False)
        first_record = await make_compliance_record(institution.id, utc_now() + timedelta(days=5))
        engine = _engine(database)

        assert await engine.process_compliance_triggers() == {"processed": 1, "sent": 1}

        second_record = await make_compliance_record(institution.id, utc_now() + timedelta(days=20))

        assert await engine.process_compliance_triggers() == {"processed": 2, "sent": 1}
        emails = await fetch_all(EmailQueue, user_id=admin.id)
        assert sorted(email.resource_id for email in emails) == sorted([first_record.id, second_record.id])
        assert {email.notification_type for email in emails} == {COMPLIANCE_EXPIRY}

    @pytest.mark.asyncio
    async def test_only_active_records_inside_window(
        self, database, make_institution, make_user, make_compliance_record
    ) -> None:
        """Far-off, already expired and inactive records are not selected."""
        institution = await make_institution()
        await make_user(role=UserRole.INSTITUTION_ADMIN, institution_id=institution.id)
        await make_compliance_record(institution.id, utc_now() + timedelta(days=45))
        await make_compliance_record(institution.id, utc_now() - timedelta(days=1))
        await make_compliance_record(
            institution.id,
            utc_now() + timedelta(days=10),
            status=ComplianceStatus.REVOKED.value,
        )

        result = await _engine(database).process_compliance_triggers()

        assert result == {"processed": 0, "sent": 0}

    @pytest.mark.asyncio
    async def test_only_institution_admins_are_told(
        self, database, make_institution, make_user, make_compliance_record
    ) -> None:
        """Staff and admins of other institutions are not candidates."""
        institution = await make_institution()
        other = await make_institution(name="Other College")
        await make_user(role=UserRole.INSTITUTION_STAFF, institution_id=institution.id)
        await make_user(role=UserRole.INSTITUTION_ADMIN, institution_id=other.id)
        await make_compliance_record(institution.id, utc_now() + timedelta(days=10))

        result = await _engine(database).process_compliance_triggers()

        assert result == {"processed": 0, "sent": 0}

    @pytest.mark.asyncio
    async def test_sends_again_after_window(
        self, database, make_institution, make_user, make_compliance_record
    ) -> None:
        """Once the cooldown window has passed the warning is repeated."""
        institution = await make_institution()
        await make_user(role=UserRole.INSTITUTION_ADMIN, institution_id=institution.id)
        await make_compliance_record(institution.id, utc_now() + timedelta(days=10))
        engine = _engine(database, compliance_cooldown_days=1)

        first = await engine.process_compliance_triggers()
        later = await engine.process_compliance_triggers(utc_now() + timedelta(days=2))

        assert first["sent"] == 1
        assert later == {"processed": 1, "sent": 1}


class TestInactivityTrigger:
    """Tests for the inactivity scan."""

    @pytest.mark.asyncio
    async def test_second_run_is_suppressed(self, database, make_user, count_rows) -> None:
        """An idle user is reminded once per window."""
        await make_user(role=UserRole.STUDENT, last_active_at=utc_now() - timedelta(days=45))
        engine = _engine(database)

        first = await engine.process_inactivity_triggers()
        second = await engine.process_inactivity_triggers()

        assert first == {"processed": 1, "sent": 1}
        assert second == {"processed": 1, "sent": 0}
        assert await count_rows(Notification, notification_type=INACTIVITY_WARNING) == 1

    @pytest.mark.asyncio
    async def test_selection(self, database, make_user) -> None:
        """Recently active, never active and deleted users are skipped."""
        await make_user(last_active_at=utc_now() - timedelta(days=5))
        await make_user(last_active_at=None)
        await make_user(last_active_at=utc_now() - timedelta(days=60), deleted_at=utc_now())

        result = await _engine(database).process_inactivity_triggers()

        assert result == {"processed": 0, "sent": 0}

    @pytest.mark.asyncio
    async def test_notification_contents(self, database, make_user, fetch_all) -> None:
        """The reminder is pinned to the user's role and links to sign-in."""
        now = utc_now()
        user = await make_user(role=UserRole.QCTO_USER, last_active_at=now - timedelta(days=45))

        await _engine(database).process_inactivity_triggers(now)

        [notification] = await fetch_all(Notification, user_id=user.id)
        assert notification.message.startswith("You have not signed in for 45 days.")
        assert notification.recipient_role == "QCTO_USER"
        assert notification.action_link == "https://app.example.com/login"
        assert notification.category == "SYSTEM"
        assert notification.priority == "NORMAL"

    @pytest.mark.asyncio
    async def test_role_change_after_selection_is_skipped(self, database, make_user, count_rows) -> None:
        """A user whose role changes between selection and dispatch is not notified."""
        user = await make_user(role=UserRole.STUDENT, last_active_at=utc_now() - timedelta(days=45))
        engine = _engine(database)
        trigger = engine.triggers["inactivity"]
        select_candidates = trigger.select_candidates

        async def select_then_change_role(now):
            candidates = await select_candidates(now)
            async with database.session() as session:
                stored = await session.get(User, user.id)
                stored.role = UserRole.INSTITUTION_STAFF.value
            return candidates

        with patch.object(trigger, "select_candidates", select_then_change_role):
            result = await trigger.run()

        assert result.to_dict() == {"processed": 1, "sent": 0}
        assert await count_rows(Notification) == 0

    @pytest.mark.asyncio
    async def test_batch_size_limits_run(self, database, make_user) -> None:
        """Only one batch of the longest-idle users is processed per run."""
        for days in (40, 50, 60):
            await make_user(last_active_at=utc_now() - timedelta(days=days))

        result = await _engine(database, inactivity_batch_size=2).process_inactivity_triggers()

        assert result == {"processed": 2, "sent": 2}

    @pytest.mark.asyncio
    async def test_batch_in_cooldown_is_selected_again(self, database, make_user, count_rows) -> None:
        """Selection ignores history, so a batch in cooldown keeps its place."""
        waiting = await make_user(last_active_at=utc_now() - timedelta(days=40))
        for days in (50, 60):
            await make_user(last_active_at=utc_now() - timedelta(days=days))
        engine = _engine(database, inactivity_batch_size=2)

        assert await engine.process_inactivity_triggers() == {"processed": 2, "sent": 2}
        assert await engine.process_inactivity_triggers() == {"processed": 2, "sent": 0}
        assert await count_rows(Notification, user_id=waiting.id) == 0


class TestProfileCompletenessTrigger:
    """Tests for the profile completeness scan."""

    @pytest.mark.asyncio
    async def test_second_run_is_suppressed(self, database, make_user) -> None:
        """An incomplete profile is nudged once per window."""
        await make_user(onboarding_completed=True, profile_completeness=40)
        engine = _engine(database)

        assert await engine.process_profile_triggers() == {"processed": 1, "sent": 1}
        assert await engine.process_profile_triggers() == {"processed": 1, "sent": 0}

    @pytest.mark.asyncio
    async def test_selection(self, database, make_user) -> None:
        """Complete profiles and users still onboarding are skipped."""
        await make_user(onboarding_completed=True, profile_completeness=80)
        await make_user(onboarding_completed=False, profile_completeness=10)

        assert await _engine(database).process_profile_triggers() == {"processed": 0, "sent": 0}

    @pytest.mark.asyncio
    async def test_notification_contents(self, database, make_user, fetch_all) -> None:
        """The nudge is a LOW priority notification linking to the profile page."""
        user = await make_user(onboarding_completed=True, profile_completeness=55)

        await _engine(database).process_profile_triggers()

        [notification] = await fetch_all(Notification, user_id=user.id)
        assert notification.notification_type == PROFILE_INCOMPLETE
        assert notification.message.startswith("Your profile is 55% complete.")
        assert notification.priority == "LOW"
        assert notification.channels == ["IN_APP", "EMAIL"]
        assert notification.action_link == "https://app.example.com/account/profile"
        [email] = await fetch_all(EmailQueue, user_id=user.id)
        assert email.priority == "NORMAL"

    @pytest.mark.asyncio
    async def test_email_only_delivery_counts_as_sent(self, database, make_user, service, fetch_all) -> None:
        """A candidate counts as sent when any channel delivered."""
        user = await make_user(onboarding_completed=True, profile_completeness=40)
        await service.preferences.upsert_preference(user.id, Category.SYSTEM, in_app=False)

        result = await _engine(database).process_profile_triggers()

        assert result == {"processed": 1, "sent": 1}
        [email] = await fetch_all(EmailQueue, user_id=user.id)
        assert email.notification_type == PROFILE_INCOMPLETE

    @pytest.mark.asyncio
    async def test_email_only_second_run_is_suppressed(
        self, database, make_user, service, count_rows
    ) -> None:
        """A queued email alone puts the user in cooldown."""
        user = await make_user(onboarding_completed=True, profile_completeness=40)
        await service.preferences.upsert_preference(user.id, Category.SYSTEM, in_app=False)
        engine = _engine(database)

        assert await engine.process_profile_triggers() == {"processed": 1, "sent": 1}
        assert await engine.process_profile_triggers() == {"processed": 1, "sent": 0}
        assert await count_rows(Notification) == 0
        assert await count_rows(EmailQueue) == 1


class TestTriggerRunFailures:
    """Tests for failure handling inside a run."""

    @pytest.mark.asyncio
    async def test_cooldown_lookup_failure_skips_candidate(self, database, make_user, count_rows) -> None:
        """A failed history lookup is processed but not sent."""
        await make_user(onboarding_completed=True, profile_completeness=40)
        engine = _engine(database)
        trigger = engine.triggers["profile"]

        with patch.object(
            trigger._history,
            "find_recent_notification",
            AsyncMock(side_effect=DatabaseError("history unavailable")),
        ):
            result = await engine.process_profile_triggers()

        assert result == {"processed": 1, "sent": 0}
        assert await count_rows(Notification) == 0

    @pytest.mark.asyncio
    async def test_dispatch_error_is_not_counted(self, database, make_user) -> None:
        """A dispatch that errors counts as processed only."""
        await make_user(email=None, onboarding_completed=True, profile_completeness=40)
        engine = _engine(database)
        trigger = engine.triggers["profile"]

        with patch.object(
            trigger._service.channels[Channel.IN_APP]._notifications,
            "create",
            AsyncMock(side_effect=DatabaseError("insert failed")),
        ):
            result = await engine.process_profile_triggers()

        assert result == {"processed": 1, "sent": 0}

    @pytest.mark.asyncio
    async def test_partial_delivery_is_counted(self, database, make_user, count_rows) -> None:
        """In-app delivered while the email store failed still counts as sent."""
        await make_user(onboarding_completed=True, profile_completeness=40)
        engine = _engine(database)
        trigger = engine.triggers["profile"]

        with patch.object(
            trigger._service.channels[Channel.EMAIL]._queue,
            "enqueue",
            AsyncMock(side_effect=DatabaseError("email_queue unavailable")),
        ):
            first = await engine.process_profile_triggers()

        assert first == {"processed": 1, "sent": 1}
        assert await count_rows(Notification) == 1
        assert await count_rows(EmailQueue) == 0
        assert await engine.process_profile_triggers() == {"processed": 1, "sent": 0}

    @pytest.mark.asyncio
    async def test_selection_failure_propagates(self, database) -> None:
        """Selection errors reach the caller."""
        engine = _engine(database)

        with patch.object(
            engine.triggers["inactivity"]._platform,
            "list_inactive_users",
            AsyncMock(side_effect=DatabaseError("users unavailable")),
        ):
            with pytest.raises(DatabaseError):
                await engine.process_inactivity_triggers()


class TestTriggerEngine:
    """Tests for TriggerEngine."""

    @pytest.mark.asyncio
    async def test_unknown_trigger(self, database) -> None:
        with pytest.raises(TriggerEngineError):
            await _engine(database).run_trigger("birthdays")

    @pytest.mark.asyncio
    async def test_run_all_reports_each_trigger(self, database, make_user) -> None:
        """A failing trigger is reported with an error while the others still run."""
        await make_user(onboarding_completed=True, profile_completeness=40)
        engine = _engine(database)

        with patch.object(
            engine.triggers["compliance"]._platform,
            "list_expiring_compliance_records",
            AsyncMock(side_effect=DatabaseError("records unavailable")),
        ):
            summary = await engine.run_all_triggers()

        assert set(summary) == {"compliance", "inactivity", "profile"}
        assert summary["compliance"]["processed"] == 0
        assert summary["compliance"]["sent"] == 0
        assert "records unavailable" in summary["compliance"]["error"]
        assert summary["inactivity"] == {"processed": 0, "sent": 0}
        assert summary["profile"] == {"processed": 1, "sent": 1}
