# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Dramatiq broker for the trigger workers.

Trigger scans run as Dramatiq actors on a single queue. Redis carries the
messages in every deployed environment; with DRAMATIQ_TEST_MODE=true a
StubBroker is installed instead so actor modules import without Redis.

Each processed message gets its actor name and message ID bound into the
structlog context, so every log line a trigger run emits can be traced
back to the worker message that started it.

Example:
    from src.infrastructure.background.broker import setup_dramatiq

    broker = setup_dramatiq()
"""

import logging
import os
from typing import Any

import dramatiq
from dramatiq.brokers.redis import RedisBroker
from dramatiq.brokers.stub import StubBroker

from src.core.config import get_settings
from src.utils.logging import bind_context, clear_context

logger = logging.getLogger(__name__)


class Queues:
    """Queue names used by the notification workers."""

    TRIGGERS = "notification_triggers"


class Priority:
    """Actor priorities; Dramatiq runs lower numbers first."""

    HIGH = 1
    NORMAL = 3
    LOW = 5


class LogContextMiddleware(dramatiq.Middleware):
    """Binds the current message to the logging context of a worker thread."""

    def before_process_message(self, broker: dramatiq.Broker, message: dramatiq.Message) -> None:
        bind_context(
            actor=message.actor_name,
            message_id=message.message_id,
            queue=message.queue_name,
        )

    def after_process_message(
        self,
        broker: dramatiq.Broker,
        message: dramatiq.Message,
        *,
        result: Any = None,
        exception: BaseException | None = None,
    ) -> None:
        if exception is not None:
            logger.error("Actor %s failed: %s", message.actor_name, str(exception))
        clear_context()

    def after_skip_message(self, broker: dramatiq.Broker, message: dramatiq.Message) -> None:
        clear_context()


class BrokerManager:
    """Owns the process-wide broker.

    Attributes:
        _broker: Installed broker, None until setup().
    """

    def __init__(self) -> None:
        self._broker: dramatiq.Broker | None = None

    @property
    def broker(self) -> dramatiq.Broker:
        """Installed broker.

        Raises:
            RuntimeError: If setup() has not run.
        """
        if self._broker is None:
            raise RuntimeError("Broker not initialized. Call setup() first.")
        return self._broker

    @property
    def is_initialized(self) -> bool:
        """Whether a broker is installed."""
        return self._broker is not None

    @property
    def is_stub(self) -> bool:
        """Whether the installed broker is the in-memory StubBroker."""
        return isinstance(self._broker, StubBroker)

    def setup(self) -> dramatiq.Broker:
        """Build the broker and install it as Dramatiq's global broker.

        Repeated calls return the broker built by the first one.
        """
        if self._broker is not None:
            return self._broker

        if os.getenv("DRAMATIQ_TEST_MODE", "false").lower() == "true":
            broker: dramatiq.Broker = StubBroker()
            broker.emit_after("process_boot")
            logger.info("Using StubBroker for trigger actors")
        else:
            redis_url = get_settings().redis.url
            broker = RedisBroker(url=redis_url)
            logger.info("Trigger broker connected to %s", redis_url.split("@")[-1])

        broker.add_middleware(LogContextMiddleware())
        dramatiq.set_broker(broker)
        self._broker = broker
        return broker

    def queue_depth(self) -> int | None:
        """Count messages waiting on the trigger queue.

        Returns:
            Pending message count, or None for the stub broker or when
            Redis cannot be reached.
        """
        if not isinstance(self._broker, RedisBroker):
            return None
        try:
            return int(self._broker.client.llen(f"dramatiq:{Queues.TRIGGERS}"))
        except Exception as e:
            logger.warning("Could not read trigger queue depth: %s", str(e))
            return None

    def shutdown(self) -> None:
        """Close the broker connection."""
        if self._broker is not None:
            self._broker.close()
            self._broker = None
            logger.info("Trigger broker closed")


_broker_manager: BrokerManager | None = None


def get_broker_manager() -> BrokerManager:
    """Get the process-wide broker manager."""
    global _broker_manager
    if _broker_manager is None:
        _broker_manager = BrokerManager()
    return _broker_manager


def setup_dramatiq() -> dramatiq.Broker:
    """Install the trigger broker; safe to call more than once."""
    return get_broker_manager().setup()


def get_broker() -> dramatiq.Broker:
    """Get the installed broker.

    Raises:
        RuntimeError: If setup_dramatiq() has not run.
    """
    return get_broker_manager().broker


def shutdown_dramatiq() -> None:
    """Close the broker at application shutdown."""
    global _broker_manager
    if _broker_manager is not None:
        _broker_manager.shutdown()
        _broker_manager = None
