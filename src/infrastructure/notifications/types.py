# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared types for notification dispatch.

Defines the enums stored on notification rows, the request accepted by
NotificationService.send(), the per-call DispatchConfig holding resolved
defaults, and the NotificationResult returned to callers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from src.core.config.settings import NotificationSettings


class Category(str, Enum):
    """Notification category. Preferences are keyed by category."""

    ACADEMIC = "ACADEMIC"
    COMPLIANCE = "COMPLIANCE"
    SYSTEM = "SYSTEM"
    MARKETING = "MARKETING"
    SECURITY = "SECURITY"
    COMMUNICATION = "COMMUNICATION"


class Priority(str, Enum):
    """Notification priority. CRITICAL bypasses user preferences."""

    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        """Ordinal position, LOW lowest."""
        return _PRIORITY_RANK[self]

    @property
    def queue_priority(self) -> "QueuePriority":
        """Email queue priority for this notification priority."""
        if self in (Priority.CRITICAL, Priority.HIGH):
            return QueuePriority.HIGH
        return QueuePriority.NORMAL


_PRIORITY_RANK = {
    Priority.LOW: 0,
    Priority.NORMAL: 1,
    Priority.HIGH: 2,
    Priority.CRITICAL: 3,
}


class Channel(str, Enum):
    """Delivery channels. SMS is accepted but never delivered."""

    IN_APP = "IN_APP"
    EMAIL = "EMAIL"
    SMS = "SMS"


class QueuePriority(str, Enum):
    """Priority stored on email_queue rows."""

    HIGH = "HIGH"
    NORMAL = "NORMAL"


class EmailStatus(str, Enum):
    """Email queue states written by this service."""

    PENDING = "PENDING"


class DispatchStage(str, Enum):
    """Step of a dispatch where an error occurred."""

    VALIDATE = "validate"
    SAFETY = "safety"
    RESOLVE = "resolve"
    IN_APP = "in_app"
    EMAIL = "email"
    SMS = "sms"


@dataclass
class NotificationRequest:
    """A request to notify one user.

    Attributes:
        user_id: Recipient user ID.
        type: Free-form event tag (e.g. ``COMPLIANCE_EXPIRY``). Used by the
            trigger cooldown lookups.
        title: Short title.
        message: Body text.
        category: Preference category; settings default when None.
        priority: Priority; settings default when None.
        channels: Requested channels in delivery order; settings default
            when None. An explicit empty list requests nothing.
        resource_type: Kind of entity the notification is about.
        resource_id: ID of that entity.
        recipient_role: Role the recipient must currently hold.
        institution_id: Institution context.
        action_link: Deep link shown with the notification.
    """

    user_id: str
    type: str
    title: str
    message: str
    category: Category | str | None = None
    priority: Priority | str | None = None
    channels: list[Channel | str] | None = None
    resource_type: str | None = None
    resource_id: str | None = None
    recipient_role: str | None = None
    institution_id: str | None = None
    action_link: str | None = None


@dataclass(frozen=True)
class DispatchConfig:
    """Resolved dispatch parameters for one send() call.

    Built once per call so that defaults come from a single place.

    Attributes:
        category: Effective category.
        priority: Effective priority.
        requested_channels: Requested channels, order preserved.
    """

    category: Category
    priority: Priority
    requested_channels: tuple[Channel, ...]

    @classmethod
    def resolve(
        cls,
        request: NotificationRequest,
        defaults: "NotificationSettings",
    ) -> "DispatchConfig":
        """Apply settings defaults to the unset fields of a request.

        Args:
            request: The incoming request.
            defaults: Notification settings holding the defaults.

        Returns:
            Frozen DispatchConfig.

        Raises:
            ValueError: If a category, priority or channel is unknown.
        """
        category = request.category if request.category is not None else defaults.default_category
        priority = request.priority if request.priority is not None else defaults.default_priority
        channels = request.channels if request.channels is not None else defaults.default_channels

        return cls(
            category=Category(category),
            priority=Priority(priority),
            requested_channels=tuple(Channel(channel) for channel in channels),
        )


@dataclass(frozen=True)
class NotificationError:
    """Error captured during a dispatch.

    Attributes:
        stage: Dispatch step that failed.
        message: Error description.
        exception_type: Class name of the underlying exception.
    """

    stage: DispatchStage
    message: str
    exception_type: str | None = None

    @classmethod
    def from_exception(cls, stage: DispatchStage, exc: BaseException) -> "NotificationError":
        """Capture an exception raised during a dispatch step."""
        return cls(stage=stage, message=str(exc) or exc.__class__.__name__, exception_type=exc.__class__.__name__)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging and API output."""
        return {
            "stage": self.stage.value,
            "message": self.message,
            "exception_type": self.exception_type,
        }


@dataclass
class NotificationResult:
    """Outcome of one dispatch.

    A result can carry both a notification ID and an error when one
    channel succeeded and the other failed.

    Attributes:
        notification_id: ID of the in-app record, when one was created.
        email_queued: Whether an email_queue row was inserted.
        skipped: True when the recipient failed the role check.
        error: First error encountered, if any.
        channels: Channels the dispatch resolved to.
    """

    notification_id: str | None = None
    email_queued: bool = False
    skipped: bool = False
    error: NotificationError | None = None
    channels: list[Channel] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True when the dispatch ran without error and was not skipped."""
        return self.error is None and not self.skipped

    @property
    def delivered(self) -> bool:
        """True when at least one channel produced an artefact."""
        return self.notification_id is not None or self.email_queued

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API output."""
        return {
            "notification_id": self.notification_id,
            "email_queued": self.email_queued,
            "skipped": self.skipped,
            "error": self.error.to_dict() if self.error else None,
            "channels": [channel.value for channel in self.channels],
        }
