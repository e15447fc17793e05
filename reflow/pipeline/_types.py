"""
Pipeline types — store protocol and reduction snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass
from collections.abc import Callable
from typing import Protocol

from kungfu import Result, Pulse

from reflow._types import Outcome

# ═══════════════════════════════════════════════════════════════════════════════
# Store Protocol — Users Implement This
# ═══════════════════════════════════════════════════════════════════════════════


class Store[S, E](Protocol):
    """
    Single source of truth for one piece of state.

    Both methods return Result for explicit error handling.

    Example — Redis-backed implementation:

        class WalletStore:
            def __init__(self, redis: Redis, key: str):
                self.redis = redis
                self.key = key

            async def get_state(self) -> Result[Wallet, Fault[Kind]]:
                try:
                    raw = await self.redis.get(self.key)
                    return Ok(Wallet.parse(raw))
                except RedisError as e:
                    return Error(Fault(Kind.STORE, "read failed", e))

            async def save_state(self, new_state: Wallet, old_state: Wallet) -> Pulse[Fault[Kind]]:
                ...
    """

    async def get_state(self) -> Result[S, E]:
        """Read the current state."""
        ...

    async def save_state(self, new_state: S, old_state: S) -> Pulse[E]:
        """
        Persist new_state. old_state is what it replaces.

        Argument order is fixed: (new, old). A rollback is the same
        call with the two swapped.
        """
        ...


# ═══════════════════════════════════════════════════════════════════════════════
# Transition — Snapshot of One Reduction
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Transition[A, S]:
    """
    Point-in-time result of reducing one action.

    old is read once and never re-fetched; the same objects reach the
    reducer, the effect and any catch handler.
    """

    action: A
    old: S
    new: S


# ═══════════════════════════════════════════════════════════════════════════════
# Function Types
# ═══════════════════════════════════════════════════════════════════════════════

type Reducer[S, A] = Callable[[S, A], S]
"""Pure, synchronous: (state, action) → new state."""

type EffectFn[A, S, R, F] = Callable[[S, S, A], Outcome[R, F]]
"""(old state, new state, action) → effect outcome."""

type Handler[A, S, F, R, F2] = Callable[[F, Transition[A, S]], Outcome[R, F2]]
"""(effect error, transition) → substitute outcome, or Error to re-raise."""

# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "Store",
    "Transition",
    "Reducer",
    "EffectFn",
    "Handler",
)
