"""
Pipeline stages — Bound → Reduced → Effected.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from kungfu import Result, Ok, Error, Option, Some, Nothing, LazyCoroResult

from reflow._types import Kinds, matches
from reflow.task import settle
from reflow.pipeline._types import Store, Transition, Reducer, EffectFn, Handler

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# Once — Shared Single Execution
# ═══════════════════════════════════════════════════════════════════════════════


class Once[T]:
    """
    Runs an async factory at most once per successful completion.

    Awaiters arriving while the first run is in flight wait for it and
    get the same value. A run that raises stores nothing; the next
    awaiter tries again.
    """

    __slots__ = ("_factory", "_lock", "_value")

    def __init__(self, factory: Callable[[], Awaitable[T]]) -> None:
        self._factory = factory
        self._lock = asyncio.Lock()
        self._value: Option[T] = Nothing()

    async def __call__(self) -> T:
        async with self._lock:
            match self._value:
                case Some(value):
                    return value
                case _:
                    pass
            value = await self._factory()
            self._value = Some(value)
            return value


# ═══════════════════════════════════════════════════════════════════════════════
# Bound — Action Attached to Store
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Bound[A, S, E]:
    """An action waiting to be reduced against a store."""

    action: A
    store: Store[S, E]

    def reduce(self, reducer: Reducer[S, A]) -> Reduced[A, S, E]:
        """Attach the reducer. Nothing runs until awaited."""
        return Reduced(self, reducer)


# ═══════════════════════════════════════════════════════════════════════════════
# Reduced — Read, Reduce, Write (Memoized)
# ═══════════════════════════════════════════════════════════════════════════════


class Reduced[A, S, E]:
    """
    Reduction of one action: read old → reducer → save (new, old).

    Runs at most once, also under concurrent awaits; every later await
    (including each effect stage) reuses the first Result. Awaiting
    yields Result[Transition, E].
    """

    __slots__ = ("_bound", "_reducer", "_reduction")

    def __init__(self, bound: Bound[A, S, E], reducer: Reducer[S, A]) -> None:
        self._bound = bound
        self._reducer = reducer
        self._reduction: Once[Result[Transition[A, S], E]] = Once(self._reduce)

    async def _reduce(self) -> Result[Transition[A, S], E]:
        store = self._bound.store
        action = self._bound.action

        match await store.get_state():
            case Ok(old):
                pass
            case Error(error):
                return Error(error)

        # Reducer exceptions propagate: nothing has been written yet
        new = self._reducer(old, action)

        match await store.save_state(new, old):
            case Error(error):
                return Error(error)
            case _:
                logger.debug("reduced %r and saved new state", action)
                return Ok(Transition(action=action, old=old, new=new))

    def effect[R, F](self, fn: EffectFn[A, S, R, F]) -> Effected[A, S, R, E | F]:
        """Run fn(old, new, action) once the new state is saved."""
        return Effected(self, fn)

    def __await__(self):
        return LazyCoroResult(self._reduction).__await__()


# ═══════════════════════════════════════════════════════════════════════════════
# Effected — Side Effect + Recovery Handlers
# ═══════════════════════════════════════════════════════════════════════════════


class Effected[A, S, R, E]:
    """
    Terminal stage. Awaiting yields the effect's Result, or the
    substitute produced by a matching catch handler.

    The effect runs once per Effected; stages derived with .catch()
    share that single run and only add handlers. Each stage's final
    outcome is memoized too, so awaiting it again repeats nothing.

    Handlers apply in declaration order, each one seeing the outcome of
    the previous: a handler that returns Error can be caught again by
    a later .catch(). Reduction failures skip the handlers entirely.
    """

    __slots__ = ("_reduced", "_fn", "_handlers", "_effect", "_outcome")

    def __init__(
        self,
        reduced: Reduced[A, S, Any],
        fn: EffectFn[A, S, Any, Any],
        handlers: tuple[tuple[Kinds[Any], Handler[A, S, Any, Any, Any]], ...] = (),
        effect: Once[Result[Any, Any]] | None = None,
    ) -> None:
        self._reduced = reduced
        self._fn = fn
        self._handlers = handlers
        self._effect = effect if effect is not None else Once(self._run_effect)
        self._outcome: Once[Result[R, E]] = Once(self._execute)

    def catch[K, R2, F2](
        self,
        kind: Kinds[K],
        handler: Handler[A, S, Any, R2, F2],
    ) -> Effected[A, S, R | R2, E | F2]:
        """
        Recover from effect errors of `kind`.

        handler(error, transition) receives the same old/new snapshot
        the effect saw, e.g. to compensate with P.rollback().
        """
        return Effected(
            self._reduced,
            self._fn,
            (*self._handlers, (kind, handler)),
            self._effect,
        )

    async def _run_effect(self) -> Result[Any, Any]:
        match await self._reduced:
            case Ok(transition):
                return await settle(self._fn(transition.old, transition.new, transition.action))
            case Error(error):
                return Error(error)

    async def _execute(self) -> Result[R, E]:
        match await self._reduced:
            case Ok(transition):
                pass
            case Error(error):
                return Error(error)

        outcome: Result[Any, Any] = await self._effect()
        for kind, handler in self._handlers:
            match outcome:
                case Error(error) if matches(error, kind):
                    logger.warning(
                        "effect for %r failed (%s), running recovery handler",
                        transition.action,
                        error,
                    )
                    outcome = await settle(handler(error, transition))
                case _:
                    pass
        return outcome

    def run(self) -> LazyCoroResult[R, E]:
        return LazyCoroResult(self._outcome)

    def __await__(self):
        return self.run().__await__()


# ═══════════════════════════════════════════════════════════════════════════════
# bind() — Entry Point
# ═══════════════════════════════════════════════════════════════════════════════


def bind[A, S, E](action: A, store: Store[S, E]) -> Bound[A, S, E]:
    """
    Start a pipeline for one action.

    Example:
        from reflow import pipeline as P

        status = await (
            P.bind("Buy an ice cream", wallet)
            .reduce(lambda state, action: "Now I have $5")
            .effect(lambda old, new, action: persist(new))
            .catch(Kind.EFFECT, P.revert(wallet, lambda e: HTTPStatus.INTERNAL_SERVER_ERROR))
        )
    """
    return Bound(action=action, store=store)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = ("Bound", "Reduced", "Effected", "bind")
