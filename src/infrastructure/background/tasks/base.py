# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Bridge from synchronous Dramatiq actors to the async trigger engine.

A worker thread owns one event loop for its whole life. The async engine
and asyncpg connections are tied to the loop that created them, so the
thread's worker Database (get_worker_database()) is reset whenever a new
loop has to be created.
"""

import asyncio
import logging
import threading
from typing import Any, Coroutine, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_local = threading.local()


def _thread_loop() -> asyncio.AbstractEventLoop:
    loop: asyncio.AbstractEventLoop | None = getattr(_local, "loop", None)
    if loop is not None and not loop.is_closed():
        return loop

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    _local.loop = loop

    # Deferred: connection imports settings, which the broker also needs
    from src.infrastructure.database.connection import clear_worker_database

    clear_worker_database()
    logger.debug("Worker thread %s got a new event loop", threading.current_thread().name)
    return loop


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine to completion on the current thread's loop.

    Args:
        coro: Coroutine to run, typically a TriggerEngine call.

    Returns:
        The coroutine's result.
    """
    return _thread_loop().run_until_complete(coro)
