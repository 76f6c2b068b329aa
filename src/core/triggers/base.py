# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Base trigger class and shared types for scheduled notification scans.

A trigger runs in three steps, always as separate queries:

1. select_candidates(): the trigger's own selection predicate.
2. Cooldown check per candidate against dispatch history: has an in-app
   notification or a queued email of the trigger's event type (and, when
   the policy says so, for the same resource) been created for this user
   within the window?
3. Dispatch through NotificationService for candidates outside cooldown.

Candidates are handled one at a time. A failed cooldown lookup or a failed
dispatch is logged and counted as processed-but-not-sent; it never stops
the rest of the run. Selection failures propagate to the caller.

Concurrent runs in separate processes can both pass the cooldown check for
the same candidate and send twice.

Selection is ordered and capped by the batch size without looking at
history. When a whole batch is still in cooldown, later runs select the
same batch again and users beyond it wait until those candidates leave the
selection (they become active, complete their profile, or the window ends).
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from src.core.config import Settings
from src.infrastructure.database.connection import Database
from src.infrastructure.notifications import NotificationRequest, NotificationService
from src.infrastructure.notifications.repository import (
    EmailQueueRepository,
    NotificationRepository,
    PlatformRepository,
)
from src.utils.datetime import ensure_utc, utc_now


@dataclass(frozen=True)
class CooldownPolicy:
    """How a trigger suppresses repeat notifications.

    Attributes:
        event_type: Notification type the trigger emits and looks up.
        window: Lookback window; a matching notification created inside
            it suppresses the next one.
        match_resource: Also match on the candidate's resource ID, so the
            same user can be told about different resources.
    """

    event_type: str
    window: timedelta
    match_resource: bool = False


@dataclass
class TriggerCandidate:
    """One (user, optional resource) pair a trigger may notify.

    Attributes:
        user_id: Recipient user ID.
        resource_id: Resource the notification is about.
        details: Trigger-specific values used to build the message.
    """

    user_id: str
    resource_id: str | None = None
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class TriggerRunResult:
    """Counts reported by one trigger run.

    Attributes:
        processed: Candidates examined.
        sent: Candidates a notification was delivered to.
    """

    processed: int = 0
    sent: int = 0

    def to_dict(self) -> dict[str, int]:
        """Convert to the ``{processed, sent}`` reporting shape."""
        return {"processed": self.processed, "sent": self.sent}


class BaseTrigger(ABC):
    """Abstract base class for notification triggers."""

    def __init__(
        self,
        service: NotificationService,
        database: Database,
        settings: Settings,
    ) -> None:
        """Initialize the trigger.

        Args:
            service: Service used for every dispatch.
            database: Database for selection and history queries.
            settings: Application settings.
        """
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self._service = service
        self._settings = settings
        self._platform = PlatformRepository(database)
        self._history = NotificationRepository(database)
        self._email_history = EmailQueueRepository(database)

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the trigger name."""
        ...

    @property
    @abstractmethod
    def cooldown(self) -> CooldownPolicy:
        """Return the cooldown policy of this trigger."""
        ...

    @abstractmethod
    async def select_candidates(self, now: datetime) -> list[TriggerCandidate]:
        """Select everyone this run may notify.

        Must not consult notification history.

        Args:
            now: Reference time of the run.

        Returns:
            Candidates in processing order.
        """
        ...

    @abstractmethod
    def build_request(self, candidate: TriggerCandidate, now: datetime) -> NotificationRequest:
        """Build the notification for a candidate outside cooldown."""
        ...

    async def is_in_cooldown(self, candidate: TriggerCandidate, now: datetime) -> bool:
        """Check dispatch history for a recent matching notification or email.

        Args:
            candidate: Candidate to check.
            now: Reference time of the run.

        Returns:
            True if a matching in-app notification or queued email exists
            inside the window.
        """
        policy = self.cooldown
        lookup = {
            "user_id": candidate.user_id,
            "notification_type": policy.event_type,
            "created_after": now - policy.window,
            "resource_id": candidate.resource_id if policy.match_resource else None,
        }

        if await self._history.find_recent_notification(**lookup) is not None:
            return True
        return await self._email_history.find_recent_email(**lookup) is not None

    async def run(self, now: datetime | None = None) -> TriggerRunResult:
        """Run one scan.

        Args:
            now: Reference time; current UTC time when None.

        Returns:
            TriggerRunResult with processed and sent counts.

        Raises:
            DatabaseError: If candidate selection fails.
        """
        now = ensure_utc(now) if now is not None else utc_now()
        result = TriggerRunResult()

        candidates = await self.select_candidates(now)
        self.logger.info("%s: %d candidates", self.name, len(candidates))

        for candidate in candidates:
            result.processed += 1

            try:
                if await self.is_in_cooldown(candidate, now):
                    self.logger.debug(
                        "%s: user %s in cooldown for %s",
                        self.name,
                        candidate.user_id,
                        candidate.resource_id or self.cooldown.event_type,
                    )
                    continue
            except Exception as e:
                self.logger.error(
                    "%s: cooldown lookup failed for user %s: %s",
                    self.name,
                    candidate.user_id,
                    str(e),
                )
                continue

            dispatch = await self._service.send(self.build_request(candidate, now))
            if dispatch.error is not None:
                self.logger.warning(
                    "%s: dispatch to user %s failed at %s",
                    self.name,
                    candidate.user_id,
                    dispatch.error.stage.value,
                )
            # A partial delivery still puts the candidate in cooldown
            if dispatch.delivered:
                result.sent += 1

        self.logger.info(
            "%s finished: processed=%d sent=%d",
            self.name,
            result.processed,
            result.sent,
        )
        return result
