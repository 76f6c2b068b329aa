# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Background task actors.

- Triggers: compliance expiry, inactivity and profile completeness scans

Usage:
    from src.infrastructure.background.tasks import run_inactivity_triggers_job

    run_inactivity_triggers_job.send()

Running Workers:
    dramatiq src.infrastructure.background.tasks --processes 1 --threads 2
"""

from src.infrastructure.background.tasks.base import run_async
from src.infrastructure.background.tasks.triggers import (
    get_trigger_actors,
    run_compliance_triggers_job,
    run_inactivity_triggers_job,
    run_profile_triggers_job,
)

__all__ = [
    # Triggers
    "run_compliance_triggers_job",
    "run_inactivity_triggers_job",
    "run_profile_triggers_job",
    # Utilities
    "run_async",
    "get_all_actors",
]


def get_all_actors() -> list:
    """Get list of all defined actors.

    Returns:
        List of all Dramatiq actors.
    """
    return list(get_trigger_actors())
