"""
Lift — Helpers for lifting values and raising callables into LazyCoroResult.

Re-exports from combinators.lift with reflow-specific additions.
"""

from __future__ import annotations

from collections.abc import Callable, Awaitable

from kungfu import LazyCoroResult

# Re-export everything from combinators.lift
from combinators.lift import (
    pure,
    fail,
    from_result,
    catching_async,
    wrap_async,
    lifted,
    call,
    call_catching,
)

from reflow._types import Fault


# ═══════════════════════════════════════════════════════════════════════════════
# reflow-specific helpers
# ═══════════════════════════════════════════════════════════════════════════════

def faulting[T, K](
    kind: K,
    fn: Callable[[], Awaitable[T]],
) -> LazyCoroResult[T, Fault[K]]:
    """
    Run a raising async callable, tagging any exception with `kind`.

    The bridge from exception-throwing code to kind-filtered combinators.

    Example:
        effect = lambda old, new, action: L.faulting(
            Kind.EFFECT,
            lambda: db.persist(new),
        )
    """
    return catching_async(
        fn,
        on_error=lambda e: Fault(kind, str(e), e),
    )


__all__ = (
    # From combinators.lift
    "pure",
    "fail",
    "from_result",
    "catching_async",
    "wrap_async",
    "lifted",
    "call",
    "call_catching",
    # reflow additions
    "faulting",
)
