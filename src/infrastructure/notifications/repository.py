# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Data access for notification dispatch.

Every method opens its own session through Database.session(), so each
write is its own transaction: a failed email enqueue never rolls back an
in-app record created a moment earlier for the same dispatch.

Repositories:
- PlatformRepository: read-only queries over users, institutions and
  compliance records (recipient checks, fan-out, trigger candidates).
- NotificationRepository: notification rows and history lookups.
- PreferenceRepository: per-category channel preferences.
- EmailQueueRepository: outbound email rows.
"""

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.orm import selectinload

from src.infrastructure.database.connection import Database
from src.infrastructure.database.models import (
    ComplianceRecord,
    EmailQueue,
    Notification,
    NotificationPreference,
    ServiceLeadSubscription,
    User,
)
from src.infrastructure.database.models.platform import (
    ComplianceStatus,
    UserRole,
    UserStatus,
)


class PlatformRepository:
    """Read-only queries over platform-owned tables."""

    def __init__(self, database: Database) -> None:
        self._database = database

    async def get_user(self, user_id: str) -> User | None:
        """Get a user by ID, including soft-deleted users."""
        async with self._database.session() as session:
            return await session.get(User, user_id)

    async def list_institution_users(
        self,
        institution_id: str,
        roles: Sequence[UserRole | str],
    ) -> list[User]:
        """List active, non-deleted users of an institution holding one of ``roles``."""
        role_values = [UserRole(role).value for role in roles]
        async with self._database.session() as session:
            result = await session.execute(
                select(User)
                .where(
                    User.institution_id == institution_id,
                    User.role.in_(role_values),
                    User.status == UserStatus.ACTIVE.value,
                    User.deleted_at.is_(None),
                )
                .order_by(User.created_at, User.id)
            )
            return list(result.scalars().all())

    async def list_service_lead_subscribers(self, service_type: str) -> list[User]:
        """List non-deleted users subscribed to leads of ``service_type``."""
        async with self._database.session() as session:
            result = await session.execute(
                select(User)
                .join(ServiceLeadSubscription, ServiceLeadSubscription.user_id == User.id)
                .where(
                    ServiceLeadSubscription.service_type == service_type,
                    User.deleted_at.is_(None),
                )
                .order_by(User.created_at, User.id)
            )
            return list(result.scalars().unique().all())

    async def list_platform_admins(self) -> list[User]:
        """List non-deleted platform administrators."""
        async with self._database.session() as session:
            result = await session.execute(
                select(User)
                .where(
                    User.role == UserRole.PLATFORM_ADMIN.value,
                    User.deleted_at.is_(None),
                )
                .order_by(User.created_at, User.id)
            )
            return list(result.scalars().all())

    async def list_expiring_compliance_records(
        self,
        now: datetime,
        until: datetime,
    ) -> list[ComplianceRecord]:
        """List active compliance records expiring in ``[now, until]``.

        The owning institution is eagerly loaded.
        """
        async with self._database.session() as session:
            result = await session.execute(
                select(ComplianceRecord)
                .options(selectinload(ComplianceRecord.institution))
                .where(
                    ComplianceRecord.status == ComplianceStatus.ACTIVE.value,
                    ComplianceRecord.expires_at >= now,
                    ComplianceRecord.expires_at <= until,
                )
                .order_by(ComplianceRecord.expires_at, ComplianceRecord.id)
            )
            return list(result.scalars().all())

    async def list_inactive_users(self, last_active_before: datetime, limit: int) -> list[User]:
        """List active, non-deleted users idle since before a cutoff, oldest first."""
        async with self._database.session() as session:
            result = await session.execute(
                select(User)
                .where(
                    User.status == UserStatus.ACTIVE.value,
                    User.deleted_at.is_(None),
                    User.last_active_at < last_active_before,
                )
                .order_by(User.last_active_at, User.id)
                .limit(limit)
            )
            return list(result.scalars().all())

    async def list_incomplete_profiles(self, threshold: int, limit: int) -> list[User]:
        """List onboarded active users whose profile completeness is below ``threshold``."""
        async with self._database.session() as session:
            result = await session.execute(
                select(User)
                .where(
                    User.status == UserStatus.ACTIVE.value,
                    User.deleted_at.is_(None),
                    User.onboarding_completed.is_(True),
                    User.profile_completeness < threshold,
                )
                .order_by(User.profile_completeness, User.id)
                .limit(limit)
            )
            return list(result.scalars().all())


class NotificationRepository:
    """Notification rows and history lookups."""

    def __init__(self, database: Database) -> None:
        self._database = database

    async def create(self, **fields: Any) -> Notification:
        """Insert a notification row and return it."""
        async with self._database.session() as session:
            notification = Notification(**fields)
            session.add(notification)
            await session.flush()
            return notification

    async def find_recent_notification(
        self,
        user_id: str,
        notification_type: str,
        created_after: datetime,
        resource_id: str | None = None,
    ) -> Notification | None:
        """Find a notification of a type created for a user since ``created_after``.

        Args:
            user_id: Recipient user ID.
            notification_type: Event tag to match.
            created_after: Inclusive lower bound on created_at.
            resource_id: When given, only notifications about this resource match.

        Returns:
            The most recent matching notification, or None.
        """
        query = select(Notification).where(
            Notification.user_id == user_id,
            Notification.notification_type == notification_type,
            Notification.created_at >= created_after,
        )
        if resource_id is not None:
            query = query.where(Notification.resource_id == resource_id)

        async with self._database.session() as session:
            result = await session.execute(
                query.order_by(Notification.created_at.desc()).limit(1)
            )
            return result.scalar_one_or_none()

    async def list_for_user(
        self,
        user_id: str,
        is_read: bool | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Notification]:
        """List a user's notifications, newest first."""
        query = select(Notification).where(Notification.user_id == user_id)
        if is_read is not None:
            query = query.where(Notification.is_read.is_(is_read))

        async with self._database.session() as session:
            result = await session.execute(
                query.order_by(Notification.created_at.desc(), Notification.id)
                .offset(offset)
                .limit(limit)
            )
            return list(result.scalars().all())

    async def count_for_user(self, user_id: str, is_read: bool | None = None) -> int:
        """Count a user's notifications, optionally by read state."""
        query = select(func.count(Notification.id)).where(Notification.user_id == user_id)
        if is_read is not None:
            query = query.where(Notification.is_read.is_(is_read))

        async with self._database.session() as session:
            result = await session.execute(query)
            return int(result.scalar_one())

    async def mark_as_read(self, user_id: str, notification_id: str, read_at: datetime) -> Notification | None:
        """Mark one of the user's notifications as read.

        Returns:
            The notification, or None when it does not exist or belongs
            to another user.
        """
        async with self._database.session() as session:
            notification = await session.get(Notification, notification_id)
            if notification is None or notification.user_id != user_id:
                return None
            if not notification.is_read:
                notification.is_read = True
                notification.read_at = read_at
                await session.flush()
            return notification

    async def mark_all_as_read(
        self,
        user_id: str,
        read_at: datetime,
        category: str | None = None,
    ) -> int:
        """Mark all unread notifications of a user as read.

        Returns:
            Number of rows updated.
        """
        statement = (
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True, read_at=read_at)
        )
        if category is not None:
            statement = statement.where(Notification.category == category)

        async with self._database.session() as session:
            result = await session.execute(statement)
            return result.rowcount or 0


class PreferenceRepository:
    """Per-category channel preferences."""

    def __init__(self, database: Database) -> None:
        self._database = database

    async def get(self, user_id: str, category: str) -> NotificationPreference | None:
        """Get the preference row for (user, category)."""
        async with self._database.session() as session:
            result = await session.execute(
                select(NotificationPreference).where(
                    NotificationPreference.user_id == user_id,
                    NotificationPreference.category == category,
                )
            )
            return result.scalar_one_or_none()

    async def list_for_user(self, user_id: str) -> list[NotificationPreference]:
        """List all preference rows of a user, ordered by category."""
        async with self._database.session() as session:
            result = await session.execute(
                select(NotificationPreference)
                .where(NotificationPreference.user_id == user_id)
                .order_by(NotificationPreference.category)
            )
            return list(result.scalars().all())

    async def upsert(
        self,
        user_id: str,
        category: str,
        create_defaults: dict[str, bool],
        changes: dict[str, bool],
    ) -> NotificationPreference:
        """Create or partially update the (user, category) row.

        Args:
            user_id: Owner of the preference.
            category: Preference category.
            create_defaults: Column values used for fields absent from
                ``changes`` when the row is created.
            changes: Column values to write.

        Returns:
            The stored preference row.
        """
        async with self._database.session() as session:
            result = await session.execute(
                select(NotificationPreference).where(
                    NotificationPreference.user_id == user_id,
                    NotificationPreference.category == category,
                )
            )
            preference = result.scalar_one_or_none()

            if preference is None:
                preference = NotificationPreference(
                    user_id=user_id,
                    category=category,
                    **{**create_defaults, **changes},
                )
                session.add(preference)
            else:
                for column, value in changes.items():
                    setattr(preference, column, value)

            await session.flush()
            await session.refresh(preference)
            return preference


class EmailQueueRepository:
    """Outbound email rows consumed by the transport worker."""

    def __init__(self, database: Database) -> None:
        self._database = database

    async def enqueue(self, **fields: Any) -> EmailQueue:
        """Insert an email_queue row and return it."""
        async with self._database.session() as session:
            email = EmailQueue(**fields)
            session.add(email)
            await session.flush()
            return email

    async def find_recent_email(
        self,
        user_id: str,
        notification_type: str,
        created_after: datetime,
        resource_id: str | None = None,
    ) -> EmailQueue | None:
        """Find an email queued for a user and event type since ``created_after``.

        Counterpart of NotificationRepository.find_recent_notification for
        dispatches that only reached the email channel.
        """
        query = select(EmailQueue).where(
            EmailQueue.user_id == user_id,
            EmailQueue.notification_type == notification_type,
            EmailQueue.created_at >= created_after,
        )
        if resource_id is not None:
            query = query.where(EmailQueue.resource_id == resource_id)

        async with self._database.session() as session:
            result = await session.execute(
                query.order_by(EmailQueue.created_at.desc()).limit(1)
            )
            return result.scalar_one_or_none()
