# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification tables.

Revision ID: 001_notification_tables
Revises: None
Create Date: 2025-01-20

Creates the tables owned by the notification service:
- notifications: in-app records, with the legacy entity_* pair
- notification_preferences: per (user, category) channel switches
- email_queue: outbound emails drained by the transport worker
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001_notification_tables"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create notification tables."""
    # ==========================================================================
    # 1. notifications table
    # ==========================================================================
    op.create_table(
        "notifications",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("notification_type", sa.String(64), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("category", sa.String(32), nullable=False),
        sa.Column("priority", sa.String(16), nullable=False),
        sa.Column("channels", sa.JSON, nullable=False),
        sa.Column("resource_type", sa.String(64), nullable=True),
        sa.Column("resource_id", sa.String(64), nullable=True),
        # Legacy copy of resource_type/resource_id for older inbox clients
        sa.Column("entity_type", sa.String(64), nullable=True),
        sa.Column("entity_id", sa.String(64), nullable=True),
        sa.Column("recipient_role", sa.String(32), nullable=True),
        sa.Column("institution_id", sa.String(36), nullable=True),
        sa.Column("action_link", sa.String(1024), nullable=True),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("ix_notifications_resource_id", "notifications", ["resource_id"])
    op.create_index(
        "ix_notifications_user_type_created",
        "notifications",
        ["user_id", "notification_type", "created_at"],
    )
    op.create_index("ix_notifications_user_read", "notifications", ["user_id", "is_read"])

    # ==========================================================================
    # 2. notification_preferences table
    # ==========================================================================
    op.create_table(
        "notification_preferences",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("category", sa.String(32), nullable=False),
        sa.Column("email_enabled", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("in_app_enabled", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("sms_enabled", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.UniqueConstraint(
            "user_id", "category", name="uq_notification_preferences_user_category"
        ),
    )
    op.create_index(
        "ix_notification_preferences_user_id", "notification_preferences", ["user_id"]
    )

    # ==========================================================================
    # 3. email_queue table
    # ==========================================================================
    op.create_table(
        "email_queue",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=True),
        sa.Column("to_email", sa.String(255), nullable=False),
        sa.Column("subject", sa.String(255), nullable=False),
        sa.Column("body_text", sa.Text, nullable=False),
        sa.Column("body_html", sa.Text, nullable=True),
        sa.Column("notification_type", sa.String(64), nullable=True),
        sa.Column("resource_id", sa.String(64), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="PENDING"),
        sa.Column("priority", sa.String(16), nullable=False, server_default="NORMAL"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )
    op.create_index("ix_email_queue_user_id", "email_queue", ["user_id"])
    op.create_index("ix_email_queue_status_priority", "email_queue", ["status", "priority"])
    op.create_index(
        "ix_email_queue_user_type_created",
        "email_queue",
        ["user_id", "notification_type", "created_at"],
    )


def downgrade() -> None:
    """Drop notification tables."""
    op.drop_table("email_queue")
    op.drop_table("notification_preferences")
    op.drop_table("notifications")
