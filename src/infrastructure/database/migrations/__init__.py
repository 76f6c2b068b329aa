# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database migrations package.

Alembic migrations for the tables owned by the notification service:
notifications, notification_preferences and email_queue. Platform tables
(users, institutions, compliance records) are migrated by the platform.
"""
