"""
Retry execution — sequential re-invocation until success or exhaustion.
"""

from __future__ import annotations

import asyncio
import logging

from kungfu import Result, Error, LazyCoroResult

from reflow._types import Operation, Kinds, matches
from reflow.retry._policy import RetryPolicy

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# retry() — Executor
# ═══════════════════════════════════════════════════════════════════════════════


def retry[T, E, K](
    operation: Operation[T, E],
    policy: RetryPolicy,
    on: Kinds[K],
    *,
    signal: asyncio.Event | None = None,
) -> LazyCoroResult[T, E]:
    """
    Re-invoke operation while it fails with a kind in `on`.

    Per failure: record the attempt, wait the policy delay, then either
    retry or give up. Giving up returns the last error. Errors of other
    kinds return at once without consuming an attempt. Attempts never
    overlap.

    The policy is the context of one execution: it is reset when the
    returned value starts running and mutated while it runs. Awaiting
    the result again runs a new execution with full attempts. Do not
    await it concurrently; build one retry() per concurrent caller.

    Example:
        from reflow import retry as R

        result = await R.retry(
            lambda: client.fetch(order_id),
            R.immediate(3),
            on=Kind.TRANSIENT,
        )
    """

    async def execute() -> Result[T, E]:
        policy.reset()
        while True:
            result = await operation()
            match result:
                case Error(error) if matches(error, on):
                    policy.record_attempt()
                    logger.warning(
                        "attempt %d of %d failed: %s",
                        policy.attempts,
                        policy.max_attempts,
                        error,
                    )
                    await policy.delay_before_next_attempt(signal, error=error)
                    if not policy.should_retry():
                        logger.error(
                            "giving up after %d attempts: %s",
                            policy.attempts,
                            error,
                        )
                        return result
                    if signal is not None and signal.is_set():
                        logger.warning(
                            "retry interrupted by signal after %d attempts",
                            policy.attempts,
                        )
                        return result
                case _:
                    return result

    return LazyCoroResult(execute)


__all__ = ("retry",)
