# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Background execution of the notification triggers.

Triggers can be started three ways: an external cron calling the trigger
endpoints, a Dramatiq worker consuming actor messages, or the in-process
APScheduler enqueueing those messages on a crontab. Actor modules live in
``tasks`` and are imported by the worker, not by this package.

Worker:
    dramatiq src.infrastructure.background.tasks --processes 1 --threads 2

In-process schedule (SCHEDULER_ENABLED=true):
    await start_scheduler()
    ...
    await stop_scheduler()
"""

from src.infrastructure.background.broker import (
    BrokerManager,
    LogContextMiddleware,
    Priority,
    Queues,
    get_broker,
    get_broker_manager,
    setup_dramatiq,
    shutdown_dramatiq,
)
from src.infrastructure.background.scheduler import (
    DramatiqScheduler,
    ScheduledTask,
    get_scheduler,
    register_trigger_jobs,
    start_scheduler,
    stop_scheduler,
)

__all__ = [
    # Broker
    "BrokerManager",
    "LogContextMiddleware",
    "Priority",
    "Queues",
    "get_broker",
    "get_broker_manager",
    "setup_dramatiq",
    "shutdown_dramatiq",
    # Scheduler
    "DramatiqScheduler",
    "ScheduledTask",
    "get_scheduler",
    "register_trigger_jobs",
    "start_scheduler",
    "stop_scheduler",
]
