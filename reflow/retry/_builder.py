"""
Retry builder — fluent API.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

from kungfu import Result, LazyCoroResult

from reflow._types import Operation, Kinds
from reflow.retry._policy import RetryPolicy
from reflow.retry._run import retry

# ═══════════════════════════════════════════════════════════════════════════════
# Retrying Builder
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(slots=True, frozen=True)
class Retrying[T, E]:
    """
    Fluent retry builder.

    Each .when() wraps everything declared before it in another retry
    layer. Policies act as templates: every execution of a layer works
    on policy.fresh(), so one builder can be awaited many times.

    Example:
        result = await (
            R.retrying(lambda: gateway.charge(order))
            .when(Kind.TIMEOUT, R.immediate(2))
            .when(Kind.UNAVAILABLE, R.random(100, 1000, max_attempts=5))
        )
    """

    _operation: Operation[T, E]
    _rules: tuple[tuple[Kinds[Any], RetryPolicy], ...]
    _signal: asyncio.Event | None

    def when[K](self, kind: Kinds[K], policy: RetryPolicy) -> Retrying[T, E]:
        """Retry errors of `kind` under `policy`."""
        return Retrying(
            _operation=self._operation,
            _rules=(*self._rules, (kind, policy)),
            _signal=self._signal,
        )

    def until(self, signal: asyncio.Event) -> Retrying[T, E]:
        """Stop retrying once signal is set (see task.deadline)."""
        return Retrying(
            _operation=self._operation,
            _rules=self._rules,
            _signal=signal,
        )

    def run(self) -> LazyCoroResult[T, E]:
        """Build the layered executor."""
        operation = self._operation
        for kind, policy in self._rules:
            operation = _layer(operation, kind, policy, self._signal)
        final = operation

        async def execute() -> Result[T, E]:
            return await final()

        return LazyCoroResult(execute)

    def __await__(self):
        return self.run().__await__()


def _layer[T, E](
    operation: Operation[T, E],
    kind: Kinds[Any],
    template: RetryPolicy,
    signal: asyncio.Event | None,
) -> Operation[T, E]:
    def attempt() -> LazyCoroResult[T, E]:
        return retry(operation, template.fresh(), kind, signal=signal)

    return attempt


# ═══════════════════════════════════════════════════════════════════════════════
# retrying() — Entry Point
# ═══════════════════════════════════════════════════════════════════════════════


def retrying[T, E](operation: Operation[T, E]) -> Retrying[T, E]:
    """
    Start a retry builder for a zero-argument operation factory.

    Without any .when() the operation runs exactly once.
    """
    return Retrying(_operation=operation, _rules=(), _signal=None)


__all__ = ("Retrying", "retrying")
