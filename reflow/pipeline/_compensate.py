"""
Compensation helpers — undo a saved reduction.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from kungfu import Result, Error, Pulse, LazyCoroResult

from reflow._types import Outcome
from reflow.task import settle
from reflow.pipeline._types import Store, Transition

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# rollback() — Reverse Write
# ═══════════════════════════════════════════════════════════════════════════════


def rollback[A, S, E](
    store: Store[S, E],
    transition: Transition[A, S],
) -> LazyCoroResult[None, E]:
    """
    Write the old state back: save_state(old, new).

    Example:
        .catch(Kind.EFFECT, lambda e, t: P.rollback(wallet, t).map(lambda _: FAILED))
    """

    async def execute() -> Pulse[E]:
        logger.info("rolling back state after %r", transition.action)
        return await store.save_state(transition.old, transition.new)

    return LazyCoroResult(execute)


# ═══════════════════════════════════════════════════════════════════════════════
# revert() — Ready-made Catch Handler
# ═══════════════════════════════════════════════════════════════════════════════


def revert[A, S, E, F, R, F2](
    store: Store[S, E],
    substitute: Callable[[F], Outcome[R, F2]],
) -> Callable[[F, Transition[A, S]], LazyCoroResult[R, E | F2]]:
    """
    Catch handler: roll back, then answer with substitute(error).

    If the rollback itself fails, its error is returned instead.

    Example:
        P.bind(action, wallet).reduce(spend).effect(persist).catch(
            Kind.EFFECT,
            P.revert(wallet, lambda e: HTTPStatus.INTERNAL_SERVER_ERROR),
        )
    """

    def handler(error: F, transition: Transition[A, S]) -> LazyCoroResult[R, E | F2]:
        async def execute() -> Result[R, E | F2]:
            match await rollback(store, transition):
                case Error(rollback_error):
                    logger.error(
                        "rollback after %r failed: %s",
                        transition.action,
                        rollback_error,
                    )
                    return Error(rollback_error)
                case _:
                    return await settle(substitute(error))

        return LazyCoroResult(execute)

    return handler


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = ("rollback", "revert")
