# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for application settings."""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from src.core.config.settings import (
    DatabaseSettings,
    NotificationSettings,
    RedisSettings,
    SchedulerSettings,
    Settings,
    TriggerSettings,
    clear_settings_cache,
    get_settings,
)


class TestDatabaseSettings:
    """Tests for DatabaseSettings."""

    def test_default_values(self) -> None:
        """Test default configuration values."""
        settings = DatabaseSettings()

        assert settings.url.startswith("postgresql+asyncpg://")
        assert settings.pool_size == 10
        assert settings.max_overflow == 20
        assert settings.is_sqlite is False

    def test_loads_from_environment(self) -> None:
        """Test that settings load from environment variables."""
        with patch.dict(os.environ, {"DB_URL": "sqlite+aiosqlite:///:memory:"}, clear=False):
            settings = DatabaseSettings()

        assert settings.is_sqlite is True


class TestRedisSettings:
    """Tests for RedisSettings."""

    def test_url_without_password(self) -> None:
        settings = RedisSettings(host="redis.internal", port=6380, database=2)

        assert settings.url == "redis://redis.internal:6380/2"

    def test_url_with_password(self) -> None:
        settings = RedisSettings(password="s3cret")  # type: ignore[arg-type]

        assert settings.url == "redis://:s3cret@localhost:6379/0"


class TestNotificationSettings:
    """Tests for NotificationSettings."""

    def test_default_values(self) -> None:
        settings = NotificationSettings()

        assert settings.default_category == "SYSTEM"
        assert settings.default_priority == "NORMAL"
        assert settings.default_channels == ["IN_APP", "EMAIL"]

    def test_loads_from_environment(self) -> None:
        """Values are upper-cased; channels are read as a JSON list."""
        env = {
            "NOTIFY_DEFAULT_PRIORITY": "low",
            "NOTIFY_DEFAULT_CHANNELS": '["in_app"]',
        }

        with patch.dict(os.environ, env, clear=False):
            settings = NotificationSettings()

        assert settings.default_priority == "LOW"
        assert settings.default_channels == ["IN_APP"]


class TestTriggerSettings:
    """Tests for TriggerSettings."""

    def test_default_values(self) -> None:
        settings = TriggerSettings()

        assert settings.compliance_expiry_window_days == 30
        assert settings.compliance_cooldown_days == 30
        assert settings.inactivity_threshold_days == 30
        assert settings.inactivity_cooldown_days == 30
        assert settings.inactivity_batch_size == 100
        assert settings.profile_completeness_threshold == 80
        assert settings.profile_cooldown_days == 30
        assert settings.profile_batch_size == 50

    def test_loads_from_environment(self) -> None:
        with patch.dict(os.environ, {"TRIGGER_INACTIVITY_BATCH_SIZE": "25"}, clear=False):
            settings = TriggerSettings()

        assert settings.inactivity_batch_size == 25


class TestSchedulerSettings:
    """Tests for SchedulerSettings."""

    def test_disabled_by_default(self) -> None:
        settings = SchedulerSettings()

        assert settings.enabled is False
        assert settings.compliance_cron == "0 6 * * *"


class TestSettings:
    """Tests for the main Settings class."""

    def test_strips_trailing_slash_from_base_url(self) -> None:
        settings = Settings(app_base_url="https://app.example.com/")

        assert settings.app_base_url == "https://app.example.com"

    def test_production_requires_cron_secret(self) -> None:
        """Production refuses to start without a cron secret."""
        with patch.dict(os.environ, {"CRON_SECRET": ""}, clear=False):
            with pytest.raises(ValidationError):
                Settings(environment="production")

    def test_production_with_cron_secret(self) -> None:
        settings = Settings(environment="production", cron_secret="s3cret")  # type: ignore[arg-type]

        assert settings.is_production is True
        assert settings.is_development is False

    def test_get_settings_is_cached(self) -> None:
        """get_settings returns the same instance until the cache is cleared."""
        clear_settings_cache()

        first = get_settings()
        assert get_settings() is first

        clear_settings_cache()
        assert get_settings() is not first
