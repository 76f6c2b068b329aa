# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Scheduler for the notification trigger actors.

The trigger engine owns no schedule of its own. In deployments without an
external cron, this APScheduler wrapper enqueues the trigger actors on the
cron expressions from SchedulerSettings; the work itself runs on Dramatiq
workers.

Example:
    from src.infrastructure.background.scheduler import start_scheduler

    scheduler = await start_scheduler()
    scheduler.get_stats()
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable
from uuid import uuid4

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from src.utils.datetime import utc_now

if TYPE_CHECKING:
    from src.core.config.settings import SchedulerSettings

logger = logging.getLogger(__name__)

# A run missed by up to an hour (e.g. during a deploy) still fires once
MISFIRE_GRACE_SECONDS = 3600


@dataclass
class ScheduledTask:
    """A registered periodic actor invocation.

    Attributes:
        name: Human-readable task name.
        actor_name: Name of the actor in the tasks package.
        cron_expression: Five-field crontab expression.
        id: Job ID; the actor name when registered through add_cron_task().
        last_run: When the actor was last enqueued.
        run_count: Number of successful enqueues.
        error_count: Number of failed enqueues.
    """

    name: str
    actor_name: str
    cron_expression: str
    id: str = field(default_factory=lambda: str(uuid4()))
    last_run: datetime | None = None
    run_count: int = 0
    error_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "actor_name": self.actor_name,
            "cron_expression": self.cron_expression,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "run_count": self.run_count,
            "error_count": self.error_count,
        }


class DramatiqScheduler:
    """Enqueues Dramatiq actors on cron schedules.

    Attributes:
        _scheduler: APScheduler instance.
        _tasks: Registered tasks by ID.
        _running: Whether scheduler is running.
    """

    def __init__(self) -> None:
        """Initialize the scheduler."""
        self._scheduler: AsyncIOScheduler | None = None
        self._tasks: dict[str, ScheduledTask] = {}
        self._running = False

    @property
    def is_running(self) -> bool:
        """Check if scheduler is running."""
        return self._running

    def _get_actor(self, actor_name: str) -> Callable[..., Any] | None:
        from src.infrastructure.background import tasks

        return getattr(tasks, actor_name, None)

    def add_cron_task(self, name: str, actor_name: str, cron_expression: str) -> ScheduledTask:
        """Register an actor to be enqueued on a cron schedule.

        Args:
            name: Task name.
            actor_name: Dramatiq actor to enqueue.
            cron_expression: Cron expression (minute hour day month weekday).

        Returns:
            Created ScheduledTask.

        A pending backlog of missed runs is coalesced into a single enqueue.

        Raises:
            RuntimeError: If the scheduler is not running.
            ValueError: If the cron expression is invalid.
        """
        if self._scheduler is None:
            raise RuntimeError("Scheduler not started. Call start() first.")

        trigger = CronTrigger.from_crontab(cron_expression, timezone="UTC")
        # One job per actor: registering the same actor again replaces its schedule
        task = ScheduledTask(
            name=name,
            actor_name=actor_name,
            cron_expression=cron_expression,
            id=actor_name,
        )
        self._tasks[task.id] = task

        self._scheduler.add_job(
            self._execute_task,
            trigger=trigger,
            args=[task.id],
            id=task.id,
            name=name,
            replace_existing=True,
            coalesce=True,
            max_instances=1,
            misfire_grace_time=MISFIRE_GRACE_SECONDS,
        )

        logger.info("Added cron task: %s (%s)", name, cron_expression)
        return task

    async def _execute_task(self, task_id: str) -> None:
        """Enqueue the actor of a scheduled task.

        Args:
            task_id: ID of the task to execute.
        """
        task = self._tasks.get(task_id)
        if task is None:
            return

        try:
            actor = self._get_actor(task.actor_name)
            if actor is None:
                raise ValueError(f"Actor not found: {task.actor_name}")

            actor.send()

            task.last_run = utc_now()
            task.run_count += 1
            logger.debug("Scheduled task %s sent to queue", task.name)

        except Exception as e:
            task.error_count += 1
            logger.error("Scheduled task %s failed: %s", task.name, str(e))

    def list_tasks(self) -> list[ScheduledTask]:
        """List all scheduled tasks."""
        return list(self._tasks.values())

    async def start(self) -> None:
        """Start the scheduler."""
        if self._running:
            return

        self._scheduler = AsyncIOScheduler(timezone="UTC")
        self._scheduler.start()
        self._running = True

        logger.info("Trigger scheduler started")

    async def stop(self) -> None:
        """Stop the scheduler."""
        if not self._running:
            return

        if self._scheduler:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None

        self._running = False
        logger.info("Trigger scheduler stopped")

    def get_stats(self) -> dict[str, Any]:
        """Get scheduler statistics."""
        return {
            "is_running": self._running,
            "task_count": len(self._tasks),
            "total_runs": sum(t.run_count for t in self._tasks.values()),
            "total_errors": sum(t.error_count for t in self._tasks.values()),
            "tasks": [t.to_dict() for t in self._tasks.values()],
        }


_scheduler: DramatiqScheduler | None = None


def get_scheduler() -> DramatiqScheduler:
    """Get the singleton scheduler instance."""
    global _scheduler
    if _scheduler is None:
        _scheduler = DramatiqScheduler()
    return _scheduler


def register_trigger_jobs(scheduler: DramatiqScheduler, settings: "SchedulerSettings") -> None:
    """Register the three trigger actors on their configured schedules.

    Args:
        scheduler: A started scheduler.
        settings: Scheduler settings holding the cron expressions.
    """
    scheduler.add_cron_task(
        name="Compliance Expiry Trigger",
        actor_name="run_compliance_triggers_job",
        cron_expression=settings.compliance_cron,
    )
    scheduler.add_cron_task(
        name="Inactivity Trigger",
        actor_name="run_inactivity_triggers_job",
        cron_expression=settings.inactivity_cron,
    )
    scheduler.add_cron_task(
        name="Profile Completeness Trigger",
        actor_name="run_profile_triggers_job",
        cron_expression=settings.profile_cron,
    )


async def start_scheduler() -> DramatiqScheduler:
    """Start the scheduler and register the trigger jobs.

    Returns:
        Started scheduler instance.
    """
    from src.core.config import get_settings

    scheduler = get_scheduler()
    await scheduler.start()

    register_trigger_jobs(scheduler, get_settings().scheduler)
    logger.info("Registered %d scheduled tasks", len(scheduler.list_tasks()))

    return scheduler


async def stop_scheduler() -> None:
    """Stop the scheduler."""
    global _scheduler
    if _scheduler is not None:
        await _scheduler.stop()
        _scheduler = None
