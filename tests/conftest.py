# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Settings built for tests
- An in-memory SQLite database with every table created
- Factories for platform rows (institutions, users, compliance records)
"""

import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime
from typing import Any

import pytest
import pytest_asyncio
from pydantic import SecretStr

# Dramatiq must use the stub broker before any actor module is imported
os.environ.setdefault("DRAMATIQ_TEST_MODE", "true")
os.environ.setdefault("ENVIRONMENT", "test")

from src.core.config import Settings, clear_settings_cache  # noqa: E402
from src.infrastructure.database.connection import Database  # noqa: E402
from src.infrastructure.database.models import (  # noqa: E402
    ComplianceRecord,
    Institution,
    ServiceLeadSubscription,
    User,
)
from src.infrastructure.database.models.platform import UserRole  # noqa: E402
from src.infrastructure.notifications import NotificationService  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )


# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _reset_settings_cache() -> None:
    """Drop cached settings so environment patches take effect."""
    clear_settings_cache()


@pytest.fixture
def settings() -> Settings:
    """Provide settings for tests."""
    return Settings(
        environment="test",
        app_base_url="https://app.example.com",
        cron_secret=SecretStr("test-cron-secret"),
    )


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def database() -> AsyncGenerator[Database, None]:
    """Create an in-memory database with every table."""
    db = Database(TEST_DATABASE_URL)
    await db.create_all()

    yield db

    await db.dispose()


@pytest.fixture
def service(database: Database, settings: Settings) -> NotificationService:
    """Provide a notification service bound to the test database."""
    return NotificationService(database, settings)


# =============================================================================
# Row Factories
# =============================================================================


@pytest.fixture
def make_institution(database: Database) -> Callable[..., Awaitable[Institution]]:
    """Factory inserting an institution."""

    async def _make(name: str = "Acme Training Academy", **fields: Any) -> Institution:
        institution = Institution(name=name, **fields)
        async with database.session() as session:
            session.add(institution)
            await session.flush()
        return institution

    return _make


@pytest.fixture
def make_user(database: Database) -> Callable[..., Awaitable[User]]:
    """Factory inserting a user. Pass ``email=None`` for a user without an address."""

    async def _make(
        role: UserRole | str = UserRole.INSTITUTION_ADMIN,
        email: str | None = "user@example.com",
        **fields: Any,
    ) -> User:
        user = User(role=UserRole(role).value, email=email, **fields)
        async with database.session() as session:
            session.add(user)
            await session.flush()
        return user

    return _make


@pytest.fixture
def make_compliance_record(database: Database) -> Callable[..., Awaitable[ComplianceRecord]]:
    """Factory inserting a compliance record."""

    async def _make(
        institution_id: str,
        expires_at: datetime,
        title: str = "QCTO Accreditation",
        **fields: Any,
    ) -> ComplianceRecord:
        record = ComplianceRecord(
            institution_id=institution_id,
            expires_at=expires_at,
            title=title,
            **fields,
        )
        async with database.session() as session:
            session.add(record)
            await session.flush()
        return record

    return _make


@pytest.fixture
def subscribe_user(database: Database) -> Callable[[str, str], Awaitable[None]]:
    """Factory subscribing a user to service requests of one type."""

    async def _subscribe(user_id: str, service_type: str) -> None:
        async with database.session() as session:
            session.add(ServiceLeadSubscription(user_id=user_id, service_type=service_type))

    return _subscribe


# =============================================================================
# Query Helpers
# =============================================================================


@pytest.fixture
def count_rows(database: Database) -> Callable[..., Awaitable[int]]:
    """Count rows of a model matching equality filters."""
    from sqlalchemy import func, select

    async def _count(model: type, **filters: Any) -> int:
        query = select(func.count()).select_from(model)
        for column, value in filters.items():
            query = query.where(getattr(model, column) == value)

        async with database.session() as session:
            result = await session.execute(query)
            return int(result.scalar_one())

    return _count


@pytest.fixture
def fetch_all(database: Database) -> Callable[..., Awaitable[list[Any]]]:
    """Fetch rows of a model matching equality filters."""
    from sqlalchemy import select

    async def _fetch(model: type, **filters: Any) -> list[Any]:
        query = select(model)
        for column, value in filters.items():
            query = query.where(getattr(model, column) == value)

        async with database.session() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    return _fetch
