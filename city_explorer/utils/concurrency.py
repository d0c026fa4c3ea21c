"""Concurrency primitives for provider fan-out and refresh de-duplication.

Two patterns are exposed:

1. **throttled_gather** -- ``asyncio.gather`` with every awaitable wrapped in
   a semaphore acquire/release, so a composite lookup never has more than a
   bounded number of outbound provider calls in flight.

2. **SingleFlight** -- collapses concurrent calls that share a key into one
   shared task.  When two requests for the same stale location arrive
   together, only the first one reaches the provider and writes a batch; the
   second awaits the same result instead of inserting a duplicate batch.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Hashable, TypeVar

import structlog

from city_explorer.utils.logging import get_logger

_T = TypeVar("_T")

_logger: structlog.BoundLogger = get_logger(__name__)


async def throttled_gather(
    coros: list[Awaitable[_T]],
    semaphore: asyncio.Semaphore,
    return_exceptions: bool = True,
) -> list[_T | BaseException]:
    """Run awaitables concurrently, at most ``semaphore`` slots at a time.

    Parameters
    ----------
    coros:
        Awaitable objects to execute concurrently.
    semaphore:
        Semaphore bounding how many run at once.
    return_exceptions:
        If ``True``, exceptions are returned in the results list rather
        than being raised.  Mirrors ``asyncio.gather`` semantics.

    Returns
    -------
    list[_T | BaseException]
        Results in the same order as the input coroutines.
    """

    async def _wrapped(coro: Awaitable[_T]) -> _T:
        async with semaphore:
            return await coro

    tasks = [_wrapped(c) for c in coros]
    return await asyncio.gather(*tasks, return_exceptions=return_exceptions)


class SingleFlight:
    """Share one pending task among concurrent callers of the same key.

    The task is forgotten as soon as it finishes, so a later call with the
    same key starts a fresh execution.  Callers await the task through
    ``asyncio.shield``: one caller abandoning its request does not cancel
    the work the others are waiting on.
    """

    def __init__(self) -> None:
        self._pending: dict[Hashable, asyncio.Task[Any]] = {}

    async def run(self, key: Hashable, factory: Callable[[], Awaitable[_T]]) -> _T:
        """Await the shared task for *key*, starting it from *factory* if absent."""
        task = self._pending.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._pending[key] = task
            task.add_done_callback(lambda done, k=key: self._forget(k, done))
        else:
            _logger.debug("single_flight_joined", key=str(key))
        return await asyncio.shield(task)

    def _forget(self, key: Hashable, task: asyncio.Task[Any]) -> None:
        if self._pending.get(key) is task:
            del self._pending[key]
        # Mark the exception retrieved; every awaiting caller already got it.
        if not task.cancelled():
            task.exception()
