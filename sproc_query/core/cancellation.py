"""Cooperative cancellation at open/execute/advance suspension points."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable
from typing import Any, TypeVar

from sproc_query.core.exceptions import OperationCancelledError

T = TypeVar("T")

logger = logging.getLogger(__name__)


async def maybe_await(value: Any) -> Any:
    """Await awaitables and return non-awaitable values unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value


async def run_cancellable(
    awaitable: Awaitable[T],
    cancel: asyncio.Event | None,
    stage: str,
) -> T:
    """Await *awaitable*, aborting it if *cancel* is set first.

    Args:
        awaitable: The open/execute/advance operation.
        cancel: Optional event; setting it cancels the pending operation.
        stage: Label used in the raised error and log messages.

    Raises:
        OperationCancelledError: If *cancel* was set before the operation
            completed. Errors raised by the operation itself propagate
            unchanged.
    """
    if cancel is None:
        return await awaitable

    task = asyncio.ensure_future(awaitable)
    if cancel.is_set():
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        logger.debug("Cancelled before %s", stage)
        raise OperationCancelledError(stage)

    waiter = asyncio.ensure_future(cancel.wait())
    try:
        await asyncio.wait((task, waiter), return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()
        if not task.done():
            task.cancel()
        await asyncio.gather(task, waiter, return_exceptions=True)

    if task.cancelled():
        logger.debug("Cancelled during %s", stage)
        raise OperationCancelledError(stage)
    return task.result()
