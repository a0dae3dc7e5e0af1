"""Wall-clock deadlines for scrape operations."""

from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

from backend.scraper.errors import DeadlineExceeded

T = TypeVar("T")


def _discard_outcome(task: "asyncio.Future[object]") -> None:
    # Retrieve the late outcome so asyncio does not report it as unhandled.
    if not task.cancelled():
        task.exception()


async def with_deadline(operation: Awaitable[T], seconds: float) -> T:
    """Await *operation*, giving up after *seconds*.

    Whichever settles first wins.  When the deadline fires the operation is
    cancelled (browser work stops at its next suspension point) and
    :class:`DeadlineExceeded` is raised immediately, without waiting for the
    cancellation to finish.

    Raises:
        DeadlineExceeded: If *operation* has not settled after *seconds*.
    """
    task = asyncio.ensure_future(operation)
    try:
        done, _ = await asyncio.wait({task}, timeout=seconds)
    except asyncio.CancelledError:
        task.cancel()
        raise

    if task not in done:
        task.add_done_callback(_discard_outcome)
        task.cancel()
        raise DeadlineExceeded(seconds)
    return task.result()
