"""
Store wrappers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from kungfu import Result, Pulse

from reflow._types import Kinds
from reflow.retry import RetryPolicy, retry
from reflow.pipeline._types import Store

# ═══════════════════════════════════════════════════════════════════════════════
# RetryingStore — Store Calls Through the Retry Executor
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class RetryingStore[S, E]:
    """
    Store whose reads and writes are retried on errors of `on`.

    policy is a template; each call runs on policy.fresh().
    """

    inner: Store[S, E]
    policy: RetryPolicy
    on: Kinds[Any]

    async def get_state(self) -> Result[S, E]:
        return await retry(self.inner.get_state, self.policy.fresh(), self.on)

    async def save_state(self, new_state: S, old_state: S) -> Pulse[E]:
        return await retry(
            lambda: self.inner.save_state(new_state, old_state),
            self.policy.fresh(),
            self.on,
        )


def with_retry[S, E, K](
    store: Store[S, E],
    policy: RetryPolicy,
    on: Kinds[K],
) -> RetryingStore[S, E]:
    """
    Harden a store against transient failures.

    Example:
        wallet = P.with_retry(RedisWallet(redis), R.constant(50, max_attempts=3), on=Kind.TRANSIENT)
        await P.bind(action, wallet).reduce(spend).effect(persist)
    """
    return RetryingStore(inner=store, policy=policy, on=on)


__all__ = ("RetryingStore", "with_retry")
