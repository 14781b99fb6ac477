"""Hard deadline for a single awaitable.

``with_deadline`` races an operation against a timer. When the timer
wins, the operation's task is cancelled and *not* awaited: an operation
that swallows cancellation keeps running in the background, but nobody
is listening, so a late result can never reach a context that has
already been returned.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import TypeVar

from geocontext.exceptions import DeadlineExceededError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _discard_outcome(task: asyncio.Future[object]) -> None:
    """Consume the result of an abandoned task so asyncio does not warn."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug("Abandoned operation finished with %s", type(exc).__name__)
    else:
        logger.debug("Abandoned operation finished after its deadline; result dropped")


async def with_deadline(
    operation: Awaitable[T],
    seconds: float,
    *,
    label: str = "operation",
) -> T:
    """Await *operation* for at most *seconds*.

    Args:
        operation: Coroutine or future to run.
        seconds: Deadline in seconds.
        label: Name used in log lines and the error message.

    Returns:
        The operation's result if it settles first.

    Raises:
        DeadlineExceededError: If the deadline elapses first. The
            operation has been cancelled by then.
        Exception: Whatever *operation* raises if it fails first.

    Example:
        >>> weather = await with_deadline(provider.current_weather(coord), 3.0,
        ...                               label="weather")  # doctest: +SKIP
    """
    task = asyncio.ensure_future(operation)
    try:
        done, _ = await asyncio.wait({task}, timeout=seconds)
    except asyncio.CancelledError:
        task.cancel()
        raise

    if task in done:
        return task.result()

    task.cancel()
    task.add_done_callback(_discard_outcome)
    logger.debug("%s exceeded its %.1fs deadline; cancelled", label, seconds)
    raise DeadlineExceededError(
        what=f"{label} did not complete in time",
        cause=f"No result within {seconds:.1f}s",
        fix="The result is dropped; retry later if it is required",
    )
