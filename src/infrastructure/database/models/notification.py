# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification models owned by the dispatch service.

``Notification.entity_type``/``entity_id`` are legacy columns still read by
older inbox clients. Every insert writes the same values to both the
``resource_*`` and the ``entity_*`` pair; new code only reads ``resource_*``.
Drop the legacy pair once no client selects it.
"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, Boolean, DateTime, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, TimestampMixin, new_uuid
from src.utils.datetime import utc_now


class Notification(Base):
    """In-app notification record.

    Category, priority and channels are fixed at creation; only the read
    state changes afterwards.
    """

    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_user_type_created", "user_id", "notification_type", "created_at"),
        Index("ix_notifications_user_read", "user_id", "is_read"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    notification_type: Mapped[str] = mapped_column(String(64), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(32), nullable=False)
    priority: Mapped[str] = mapped_column(String(16), nullable=False)
    channels: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    resource_type: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    resource_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    entity_type: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    entity_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    recipient_role: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    institution_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    action_link: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    read_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API responses."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "type": self.notification_type,
            "title": self.title,
            "message": self.message,
            "category": self.category,
            "priority": self.priority,
            "channels": list(self.channels or []),
            "resource_type": self.resource_type,
            "resource_id": self.resource_id,
            "recipient_role": self.recipient_role,
            "institution_id": self.institution_id,
            "action_link": self.action_link,
            "is_read": self.is_read,
            "read_at": self.read_at,
            "created_at": self.created_at,
        }


class NotificationPreference(Base, TimestampMixin):
    """Per-user, per-category channel switches.

    A missing row means every channel is allowed for that category.
    """

    __tablename__ = "notification_preferences"
    __table_args__ = (
        UniqueConstraint("user_id", "category", name="uq_notification_preferences_user_category"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    category: Mapped[str] = mapped_column(String(32), nullable=False)
    email_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    in_app_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    sms_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class EmailQueue(Base):
    """Outbound email waiting for the transport worker.

    Rows are inserted as PENDING; later states belong to the transport.
    notification_type and resource_id record which event queued the email,
    so trigger cooldowns also see email-only deliveries.
    """

    __tablename__ = "email_queue"
    __table_args__ = (
        Index("ix_email_queue_status_priority", "status", "priority"),
        Index("ix_email_queue_user_type_created", "user_id", "notification_type", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    user_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)
    to_email: Mapped[str] = mapped_column(String(255), nullable=False)
    subject: Mapped[str] = mapped_column(String(255), nullable=False)
    body_text: Mapped[str] = mapped_column(Text, nullable=False)
    body_html: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notification_type: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    resource_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="PENDING")
    priority: Mapped[str] = mapped_column(String(16), nullable=False, default="NORMAL")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
