"""
Retry — policy-driven re-execution of fallible async operations.

    from reflow import retry as R

    result = await R.retry(fetch, R.constant(100, max_attempts=3), on=Kind.TRANSIENT)
    result = await R.retrying(fetch).when(Kind.TRANSIENT, R.immediate(3))
"""

from __future__ import annotations

from reflow.retry._policy import (
    Backoff,
    NoBackoff,
    ConstantBackoff,
    RandomBackoff,
    RetryPolicy,
    immediate,
    constant,
    random,
)
from reflow.retry._run import retry
from reflow.retry._builder import Retrying, retrying

__all__ = (
    "Backoff",
    "NoBackoff",
    "ConstantBackoff",
    "RandomBackoff",
    "RetryPolicy",
    "immediate",
    "constant",
    "random",
    "retry",
    "Retrying",
    "retrying",
)
