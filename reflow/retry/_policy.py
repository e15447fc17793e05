"""
Retry policies — explicit per-execution retry context.
"""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass, field
from datetime import timedelta
from random import Random

from combinators.control.retry import BackoffStrategy

type Backoff = BackoffStrategy[object]
"""(attempts made so far, last error) → pause in seconds before the next attempt."""

# ═══════════════════════════════════════════════════════════════════════════════
# Backoff Strategies
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class NoBackoff:
    """Retry right away."""

    def __call__(self, attempt: int, error: object) -> float:
        return 0.0


@dataclass(frozen=True, slots=True)
class ConstantBackoff:
    """Same pause before every attempt."""

    delay: timedelta

    def __call__(self, attempt: int, error: object) -> float:
        return self.delay.total_seconds()


@dataclass(frozen=True, slots=True)
class RandomBackoff:
    """Pause sampled uniformly from [low, high)."""

    low: timedelta
    high: timedelta
    rng: Random = field(default_factory=Random, compare=False)

    def __call__(self, attempt: int, error: object) -> float:
        low = self.low.total_seconds()
        high = self.high.total_seconds()
        return low + self.rng.random() * (high - low)


# ═══════════════════════════════════════════════════════════════════════════════
# RetryPolicy — Mutable Context
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(slots=True)
class RetryPolicy:
    """
    Retry state for ONE execution sequence.

    Threaded through every attempt by the executor. Do not share an
    instance between concurrent executions; take fresh() copies instead.

    Example:
        policy = R.constant(100, max_attempts=5)
        result = await R.retry(fetch, policy, on=Kind.TRANSIENT)
        policy.attempts  # failed attempts recorded
    """

    max_attempts: int
    backoff: Backoff
    attempts: int = 0

    def should_retry(self) -> bool:
        return self.attempts < self.max_attempts

    def record_attempt(self) -> None:
        self.attempts += 1

    def next_delay(self, error: object = None) -> float:
        """Pause in seconds for the current attempt count, never negative."""
        return max(0.0, self.backoff(self.attempts, error))

    async def delay_before_next_attempt(
        self,
        signal: asyncio.Event | None = None,
        *,
        error: object = None,
    ) -> None:
        """
        Sleep for next_delay().

        Cancellable. Returns early once signal is set.
        """
        seconds = self.next_delay(error)
        if signal is None:
            await asyncio.sleep(seconds)
            return
        if signal.is_set():
            return
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(signal.wait(), timeout=seconds)

    def reset(self) -> None:
        """Forget recorded attempts: the start of a new execution."""
        self.attempts = 0

    def fresh(self) -> RetryPolicy:
        """Unused copy with the same limits and backoff."""
        return RetryPolicy(max_attempts=self.max_attempts, backoff=self.backoff)


# ═══════════════════════════════════════════════════════════════════════════════
# Constructors
# ═══════════════════════════════════════════════════════════════════════════════


def _check_attempts(max_attempts: int) -> None:
    if max_attempts < 0:
        raise ValueError("max_attempts must not be negative")


def immediate(max_attempts: int) -> RetryPolicy:
    """Retry with no pause between attempts."""
    _check_attempts(max_attempts)
    return RetryPolicy(max_attempts=max_attempts, backoff=NoBackoff())


def constant(delay_ms: float, max_attempts: int) -> RetryPolicy:
    """
    Retry after a fixed pause.

    Example:
        R.constant(250, max_attempts=3)
    """
    _check_attempts(max_attempts)
    if delay_ms < 0:
        raise ValueError("delay_ms must not be negative")
    return RetryPolicy(
        max_attempts=max_attempts,
        backoff=ConstantBackoff(timedelta(milliseconds=delay_ms)),
    )


def random(
    min_ms: float,
    max_ms: float,
    max_attempts: int,
    *,
    rng: Random | None = None,
) -> RetryPolicy:
    """
    Retry after a jittered pause in [min_ms, max_ms).

    Pass a seeded rng for reproducible delays.

    Example:
        R.random(50, 500, max_attempts=4)
    """
    _check_attempts(max_attempts)
    if min_ms < 0:
        raise ValueError("min_ms must not be negative")
    if min_ms > max_ms:
        raise ValueError("min_ms must not exceed max_ms")
    return RetryPolicy(
        max_attempts=max_attempts,
        backoff=RandomBackoff(
            low=timedelta(milliseconds=min_ms),
            high=timedelta(milliseconds=max_ms),
            rng=rng if rng is not None else Random(),
        ),
    )


__all__ = (
    "Backoff",
    "NoBackoff",
    "ConstantBackoff",
    "RandomBackoff",
    "RetryPolicy",
    "immediate",
    "constant",
    "random",
)
