# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Platform models read by the notification service.

These tables belong to the wider accreditation platform. The notification
service never writes them; the mappings only carry the columns that
recipient checks, fan-out and the background triggers need.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import Base, TimestampMixin, new_uuid


class UserRole(str, Enum):
    """Platform roles."""

    PLATFORM_ADMIN = "PLATFORM_ADMIN"
    QCTO_ADMIN = "QCTO_ADMIN"
    QCTO_USER = "QCTO_USER"
    INSTITUTION_ADMIN = "INSTITUTION_ADMIN"
    INSTITUTION_STAFF = "INSTITUTION_STAFF"
    STUDENT = "STUDENT"


class UserStatus(str, Enum):
    """Account status."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"


class ComplianceStatus(str, Enum):
    """Lifecycle of a compliance record (accreditation, registration)."""

    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    REVOKED = "REVOKED"


class Institution(Base, TimestampMixin):
    """A training provider registered on the platform."""

    __tablename__ = "institutions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    users: Mapped[list["User"]] = relationship(back_populates="institution")
    compliance_records: Mapped[list["ComplianceRecord"]] = relationship(
        back_populates="institution"
    )


class User(Base, TimestampMixin):
    """A platform account.

    ``role`` is the user's current role; the safety gate compares a
    dispatch's expected role against it at send time.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    full_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=UserStatus.ACTIVE.value, index=True
    )
    institution_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("institutions.id"), nullable=True, index=True
    )
    last_active_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )
    onboarding_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    profile_completeness: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    institution: Mapped[Optional[Institution]] = relationship(back_populates="users")


class ComplianceRecord(Base, TimestampMixin):
    """An expiring compliance artefact held by an institution."""

    __tablename__ = "compliance_records"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    institution_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("institutions.id"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ComplianceStatus.ACTIVE.value
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)

    institution: Mapped[Institution] = relationship(back_populates="compliance_records")


class ServiceLeadSubscription(Base):
    """Staff member subscribed to inbound service requests of one type."""

    __tablename__ = "service_lead_subscriptions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False, index=True
    )
    service_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
