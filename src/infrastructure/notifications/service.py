# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification service: the single entry point for dispatching.

Every notification in the platform goes through NotificationService.send(),
whether it originates from a web request, the legacy adapter, or one of
the background triggers. The flow is strictly ordered:

1. Recipient safety check (role match). A mismatch returns a skipped
   result before anything is written.
2. Channel resolution against priority and user preferences.
3. In-app record.
4. Email enqueue.
5. SMS (inert).

send() never raises. Errors are returned on NotificationResult.error and
logged here, so fire-and-forget callers still leave a trace. Steps 3 and 4
run in separate transactions; one failing does not undo the other.
"""

import logging

from src.core.config import Settings, get_settings
from src.infrastructure.database.connection import Database
from src.infrastructure.notifications.channels import (
    BaseChannel,
    DeliveryStatus,
    EmailChannel,
    InAppChannel,
    NotificationPayload,
    SmsChannel,
)
from src.infrastructure.notifications.preferences import PreferenceStore
from src.infrastructure.notifications.resolver import ChannelResolver
from src.infrastructure.notifications.safety import RecipientSafetyGate
from src.infrastructure.notifications.types import (
    Channel,
    DispatchConfig,
    DispatchStage,
    NotificationError,
    NotificationRequest,
    NotificationResult,
)

logger = logging.getLogger(__name__)

# Delivery order is fixed regardless of request order
_DELIVERY_ORDER: tuple[Channel, ...] = (Channel.IN_APP, Channel.EMAIL, Channel.SMS)

_CHANNEL_STAGES: dict[Channel, DispatchStage] = {
    Channel.IN_APP: DispatchStage.IN_APP,
    Channel.EMAIL: DispatchStage.EMAIL,
    Channel.SMS: DispatchStage.SMS,
}


class NotificationService:
    """Dispatches notifications to one user at a time.

    Attributes:
        preferences: Preference store shared with the API layer.
        channels: Channel implementations keyed by channel.
    """

    def __init__(self, database: Database, settings: Settings | None = None) -> None:
        """Initialize the notification service.

        Args:
            database: Database used by every collaborator.
            settings: Application settings; the cached settings when None.
        """
        self._settings = settings or get_settings()

        self.preferences = PreferenceStore(database)
        self._safety = RecipientSafetyGate(database)
        self._resolver = ChannelResolver(self.preferences)

        self.channels: dict[Channel, BaseChannel] = {
            Channel.IN_APP: InAppChannel(database),
            Channel.EMAIL: EmailChannel(database),
            Channel.SMS: SmsChannel(),
        }

    async def send(self, request: NotificationRequest) -> NotificationResult:
        """Dispatch one notification.

        Args:
            request: What to send and to whom.

        Returns:
            NotificationResult. ``skipped`` is set on a role mismatch;
            ``error`` is set when any step failed, possibly alongside a
            notification ID or queued email from the steps that succeeded.
        """
        result = NotificationResult()

        try:
            config = DispatchConfig.resolve(request, self._settings.notifications)
        except ValueError as e:
            return self._fail(request, result, NotificationError.from_exception(DispatchStage.VALIDATE, e))

        try:
            if not await self._safety.can_deliver(request.user_id, request.recipient_role):
                result.skipped = True
                return result
        except Exception as e:
            return self._fail(request, result, NotificationError.from_exception(DispatchStage.SAFETY, e))

        try:
            result.channels = await self._resolver.resolve_channels(
                request.user_id,
                config.category,
                config.priority,
                config.requested_channels,
            )
        except Exception as e:
            return self._fail(request, result, NotificationError.from_exception(DispatchStage.RESOLVE, e))

        if not result.channels:
            logger.debug(
                "No channels left for %s notification to user %s",
                request.type,
                request.user_id,
            )
            return result

        payload = NotificationPayload(
            recipient_id=request.user_id,
            notification_type=request.type,
            title=request.title,
            message=request.message,
            category=config.category,
            priority=config.priority,
            channels=list(result.channels),
            resource_type=request.resource_type,
            resource_id=request.resource_id,
            recipient_role=request.recipient_role,
            institution_id=request.institution_id,
            action_link=request.action_link,
        )

        for channel in _DELIVERY_ORDER:
            if channel not in result.channels:
                continue

            channel_result = await self.channels[channel].send(payload)

            if channel_result.status is DeliveryStatus.FAILED:
                error = NotificationError(
                    stage=_CHANNEL_STAGES[channel],
                    message=channel_result.error_message or "delivery failed",
                    exception_type=(
                        channel_result.exception.__class__.__name__
                        if channel_result.exception is not None
                        else None
                    ),
                )
                self._fail(request, result, error)
            elif channel_result.succeeded:
                if channel is Channel.IN_APP:
                    result.notification_id = channel_result.message_id
                elif channel is Channel.EMAIL:
                    result.email_queued = True

        return result

    def _fail(
        self,
        request: NotificationRequest,
        result: NotificationResult,
        error: NotificationError,
    ) -> NotificationResult:
        """Log an error and record it on the result.

        The first error is kept on the result; later ones are only logged.
        """
        logger.error(
            "Notification %s for user %s failed at %s: %s",
            request.type,
            request.user_id,
            error.stage.value,
            error.message,
        )
        if result.error is None:
            result.error = error
        return result
