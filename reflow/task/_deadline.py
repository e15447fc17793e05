"""
Deadline — cooperative timeout via a cancellation signal.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Awaitable
from datetime import timedelta

from kungfu import Result, LazyCoroResult

logger = logging.getLogger(__name__)

type Signal = asyncio.Event
"""Set once the deadline has passed. Operations poll or await it."""


def _to_seconds(seconds: float | None = None, duration: timedelta | None = None) -> float:
    """Resolve a seconds-or-duration pair into seconds."""
    if duration is not None:
        return duration.total_seconds()
    if seconds is not None:
        return seconds
    raise ValueError("Must provide seconds or duration")


def deadline[T, E](
    factory: Callable[[Signal], Awaitable[Result[T, E]]],
    *,
    seconds: float | None = None,
    duration: timedelta | None = None,
) -> LazyCoroResult[T, E]:
    """
    Run factory(signal) and set the signal once the deadline expires.

    The operation is never aborted: it is expected to observe the
    signal and unwind on its own.

    Example:
        async def crawl(signal: T.Signal) -> Result[list[Page], Fault[Kind]]:
            pages = []
            while not signal.is_set():
                ...
            return Ok(pages)

        result = await T.deadline(crawl, seconds=5)
        result = await T.deadline(crawl, duration=timedelta(minutes=1))
    """
    limit = _to_seconds(seconds, duration)
    if limit < 0:
        raise ValueError("Deadline must not be negative")

    async def execute() -> Result[T, E]:
        signal = asyncio.Event()

        def expire() -> None:
            logger.debug("deadline of %.3fs expired, signalling operation", limit)
            signal.set()

        timer = asyncio.get_running_loop().call_later(limit, expire)
        try:
            return await factory(signal)
        finally:
            timer.cancel()

    return LazyCoroResult(execute)


__all__ = ("Signal", "deadline")
