# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure.

A single PostgreSQL database holds both the platform tables the service
reads (users, institutions, compliance records) and the tables it owns
(notifications, notification_preferences, email_queue).

Example:
    from src.infrastructure.database import Database, init_database

    database = await init_database(settings)
    async with database.session() as session:
        result = await session.execute(select(Notification))
"""

from src.infrastructure.database.connection import (
    Database,
    DatabaseError,
    clear_worker_database,
    close_database,
    get_database,
    get_worker_database,
    init_database,
)

__all__ = [
    "Database",
    "DatabaseError",
    "init_database",
    "close_database",
    "get_database",
    "get_worker_database",
    "clear_worker_database",
]
