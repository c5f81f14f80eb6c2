"""Helpers for background asyncio work."""

import asyncio
import logging
from typing import Any, Awaitable, Optional

logger = logging.getLogger(__name__)


def _log_failure(task: "asyncio.Task[Any]") -> None:
    if task.cancelled():
        logger.debug("Background task %s was cancelled", task.get_name())
        return
    exc = task.exception()
    if exc is not None:
        logger.error(
            "Background task %s failed: %s", task.get_name(), exc,
            exc_info=(type(exc), exc, exc.__traceback__),
        )


def fire_and_forget(coro: Awaitable[Any], name: Optional[str] = None) -> "asyncio.Task[Any]":
    """Schedule a coroutine without waiting for it.

    The returned task can still be awaited. A failure is logged and
    retrieved by the done callback, so it never propagates to the caller
    and never shows up as "exception was never retrieved".

    Must be called from within a running event loop.
    """
    task = asyncio.ensure_future(coro)
    if name is not None:
        task.set_name(name)
    task.add_done_callback(_log_failure)
    return task
