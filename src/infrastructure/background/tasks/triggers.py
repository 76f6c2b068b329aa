# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification trigger actors.

Each actor runs one trigger of the TriggerEngine in the worker's
thread-local event loop and returns its ``{processed, sent}`` counts.
A run that fails outright (e.g. the selection query) is logged and
reported with an ``error`` entry instead of being retried; the next
scheduled run picks up where this one left off.

Actors:
    - run_compliance_triggers_job: compliance records nearing expiry
    - run_inactivity_triggers_job: long-idle users
    - run_profile_triggers_job: incomplete profiles
"""

import logging
from typing import Any

import dramatiq

from src.infrastructure.background.broker import Priority, Queues, setup_dramatiq
from src.infrastructure.background.tasks.base import run_async
from src.utils.logging import bind_context, clear_context

setup_dramatiq()

logger = logging.getLogger(__name__)


def _run_trigger(name: str) -> dict[str, Any]:
    """Run one trigger against the worker thread's database.

    Args:
        name: Trigger short name.

    Returns:
        Trigger counts, or zero counts with an ``error`` entry.
    """
    bind_context(trigger=name)
    logger.info("Trigger job %s started", name)

    async def _execute() -> dict[str, Any]:
        from src.core.triggers import TriggerEngine
        from src.infrastructure.database.connection import get_worker_database

        engine = TriggerEngine(get_worker_database())
        return await engine.run_trigger(name)

    try:
        result = run_async(_execute())
        logger.info(
            "Trigger job %s completed: processed=%d sent=%d",
            name,
            result["processed"],
            result["sent"],
        )
        return result
    except Exception as e:
        logger.error("Trigger job %s failed: %s", name, e, exc_info=True)
        return {"processed": 0, "sent": 0, "error": str(e)}
    finally:
        clear_context()


@dramatiq.actor(
    queue_name=Queues.TRIGGERS,
    max_retries=0,
    time_limit=600000,  # 10 minutes
    priority=Priority.HIGH,
)
def run_compliance_triggers_job() -> dict[str, Any]:
    """Warn institution admins about compliance records nearing expiry."""
    return _run_trigger("compliance")


@dramatiq.actor(
    queue_name=Queues.TRIGGERS,
    max_retries=0,
    time_limit=600000,  # 10 minutes
    priority=Priority.NORMAL,
)
def run_inactivity_triggers_job() -> dict[str, Any]:
    """Remind long-idle users to sign in."""
    return _run_trigger("inactivity")


@dramatiq.actor(
    queue_name=Queues.TRIGGERS,
    max_retries=0,
    time_limit=300000,  # 5 minutes
    priority=Priority.LOW,
)
def run_profile_triggers_job() -> dict[str, Any]:
    """Nudge users with incomplete profiles."""
    return _run_trigger("profile")


def get_trigger_actors() -> list:
    """Get all trigger actors.

    Returns:
        List of trigger actor functions.
    """
    return [
        run_compliance_triggers_job,
        run_inactivity_triggers_job,
        run_profile_triggers_job,
    ]
