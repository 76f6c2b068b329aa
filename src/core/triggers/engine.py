# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Trigger engine: runs the scheduled notification scans.

The engine owns no schedule. It is invoked by the Dramatiq actors, the
in-process scheduler, or the cron HTTP endpoints, and reports each run as
``{"processed": n, "sent": m}``.

Usage:
    engine = TriggerEngine(database)

    result = await engine.process_compliance_triggers()
    # {"processed": 3, "sent": 1}

    summary = await engine.run_all_triggers()
    # {"compliance": {...}, "inactivity": {...}, "profile": {...}}
"""

import logging
from datetime import datetime
from typing import Any

from src.core.config import Settings, get_settings
from src.core.triggers.base import BaseTrigger
from src.core.triggers.compliance import ComplianceExpiryTrigger
from src.core.triggers.inactivity import InactivityTrigger
from src.core.triggers.profile import ProfileCompletenessTrigger
from src.infrastructure.database.connection import Database
from src.infrastructure.notifications import NotificationService

logger = logging.getLogger(__name__)


class TriggerEngineError(Exception):
    """Exception raised for unknown triggers."""

    def __init__(self, message: str, original_error: Exception | None = None):
        self.message = message
        self.original_error = original_error
        super().__init__(self.message)


class TriggerEngine:
    """Runs the compliance, inactivity and profile triggers.

    Attributes:
        triggers: Trigger instances keyed by their short name.
    """

    def __init__(
        self,
        database: Database,
        settings: Settings | None = None,
        service: NotificationService | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            database: Database for every trigger and dispatch.
            settings: Application settings; the cached settings when None.
            service: Notification service; built from ``database`` when None.
        """
        settings = settings or get_settings()
        service = service or NotificationService(database, settings)

        self.triggers: dict[str, BaseTrigger] = {
            "compliance": ComplianceExpiryTrigger(service, database, settings),
            "inactivity": InactivityTrigger(service, database, settings),
            "profile": ProfileCompletenessTrigger(service, database, settings),
        }

    async def run_trigger(self, name: str, now: datetime | None = None) -> dict[str, int]:
        """Run one trigger by short name.

        Args:
            name: ``compliance``, ``inactivity`` or ``profile``.
            now: Reference time; current UTC time when None.

        Returns:
            ``{"processed": n, "sent": m}``.

        Raises:
            TriggerEngineError: If the name is unknown.
            DatabaseError: If candidate selection fails.
        """
        trigger = self.triggers.get(name)
        if trigger is None:
            raise TriggerEngineError(f"Unknown trigger: {name}")

        result = await trigger.run(now)
        return result.to_dict()

    async def process_compliance_triggers(self, now: datetime | None = None) -> dict[str, int]:
        """Warn institution admins about compliance records nearing expiry."""
        return await self.run_trigger("compliance", now)

    async def process_inactivity_triggers(self, now: datetime | None = None) -> dict[str, int]:
        """Remind long-idle users to sign in."""
        return await self.run_trigger("inactivity", now)

    async def process_profile_triggers(self, now: datetime | None = None) -> dict[str, int]:
        """Nudge users with incomplete profiles."""
        return await self.run_trigger("profile", now)

    async def run_all_triggers(self, now: datetime | None = None) -> dict[str, dict[str, Any]]:
        """Run every trigger in turn.

        A trigger whose selection fails is reported with zero counts and
        an ``error`` entry; the remaining triggers still run.

        Args:
            now: Reference time shared by all runs.

        Returns:
            Per-trigger result mapping.
        """
        summary: dict[str, dict[str, Any]] = {}

        for name in self.triggers:
            try:
                summary[name] = await self.run_trigger(name, now)
            except Exception as e:
                logger.error("Trigger %s failed: %s", name, str(e), exc_info=True)
                summary[name] = {"processed": 0, "sent": 0, "error": str(e)}

        return summary
