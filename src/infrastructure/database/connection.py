# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database connection management using SQLAlchemy async.

The platform database holds both the tables owned by the rest of the
platform (users, institutions, compliance records) and the notification
tables written by this service.

Uses SQLAlchemy 2.0 async API with the asyncpg driver in production and
aiosqlite in tests.

Two access paths exist:
- The API process initialises one module-level Database at startup.
- Dramatiq worker threads each get their own Database through
  get_worker_database(), since async engines are bound to the event loop
  they were created in.

Example:
    from src.infrastructure.database.connection import init_database, get_database

    await init_database(settings)

    async with get_database().session() as session:
        result = await session.execute(select(User))
"""

import threading
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

if TYPE_CHECKING:
    from src.core.config.settings import DatabaseSettings, Settings

_database: Optional["Database"] = None
_thread_local = threading.local()


class DatabaseError(Exception):
    """Base exception for database operations.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying SQLAlchemy or database error.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        """Initialize the database error.

        Args:
            message: Human-readable error description.
            original_error: The underlying exception that caused this error.
        """
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


class Database:
    """Async engine plus sessionmaker for one event loop.

    Every call to session() opens an independent transaction that is
    committed on success and rolled back on failure.

    Attributes:
        engine: The SQLAlchemy async engine.
    """

    def __init__(self, url: str, *, pool_size: int = 10, max_overflow: int = 20, echo: bool = False) -> None:
        """Create the engine and sessionmaker.

        Args:
            url: Async SQLAlchemy URL.
            pool_size: Connection pool size (ignored for SQLite).
            max_overflow: Maximum overflow connections (ignored for SQLite).
            echo: Log emitted SQL.

        Raises:
            DatabaseError: If engine creation fails.
        """
        try:
            if url.startswith("sqlite"):
                # In-memory SQLite needs a single shared connection
                self.engine: AsyncEngine = create_async_engine(
                    url,
                    echo=echo,
                    connect_args={"check_same_thread": False},
                    poolclass=StaticPool,
                )
            else:
                self.engine = create_async_engine(
                    url,
                    pool_size=pool_size,
                    max_overflow=max_overflow,
                    pool_pre_ping=True,
                    pool_recycle=1800,
                    echo=echo,
                )
        except SQLAlchemyError as e:
            raise DatabaseError("Failed to initialize database connection", e) from e

        self._sessionmaker = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings: "DatabaseSettings") -> "Database":
        """Build a Database from DatabaseSettings."""
        return cls(
            settings.url,
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
            echo=settings.echo,
        )

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Open a session in its own transaction.

        Yields:
            AsyncSession for database operations.

        Raises:
            DatabaseError: If a database operation fails.
        """
        async with self._sessionmaker() as session:
            try:
                yield session
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise DatabaseError("Database operation failed", e) from e
            except Exception:
                await session.rollback()
                raise

    async def create_all(self) -> None:
        """Create all mapped tables. Used by tests and local tooling."""
        from src.infrastructure.database.models import Base

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def check_connection(self) -> bool:
        """Check if the database is reachable.

        Returns:
            True if the database is reachable, False otherwise.
        """
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            return False

    async def dispose(self) -> None:
        """Close all pooled connections."""
        await self.engine.dispose()


async def init_database(settings: "Settings") -> Database:
    """Initialize the process-wide database.

    This should be called once at application startup.

    Args:
        settings: Application settings containing database configuration.

    Returns:
        The initialised Database.
    """
    global _database

    _database = Database.from_settings(settings.database)
    return _database


async def close_database() -> None:
    """Dispose the process-wide database at shutdown."""
    global _database

    if _database is not None:
        await _database.dispose()
        _database = None


def get_database() -> Database:
    """Get the process-wide database.

    Returns:
        The Database created by init_database().

    Raises:
        DatabaseError: If the database has not been initialized.
    """
    if _database is None:
        raise DatabaseError("Database not initialized. Call init_database() first.")
    return _database


def get_worker_database() -> Database:
    """Get the Database for the current Dramatiq worker thread.

    Each worker thread runs its own persistent event loop (see
    tasks/base.py), so each thread gets its own engine.

    Returns:
        Thread-local Database instance.
    """
    database = getattr(_thread_local, "database", None)

    if database is None:
        from src.core.config import get_settings

        database = Database.from_settings(get_settings().database)
        _thread_local.database = database

    return database


def clear_worker_database() -> None:
    """Forget the current thread's Database.

    Called by run_async() when a new event loop is created for a thread,
    so the next task builds an engine bound to the new loop.
    """
    _thread_local.database = None
