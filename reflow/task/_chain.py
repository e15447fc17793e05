"""
Continuation combinators — then / catch over single-valued async results.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from typing import Any, cast

from kungfu import Result, Ok, Error, LazyCoroResult

from reflow._types import Source, Outcome, Kinds, matches

# ═══════════════════════════════════════════════════════════════════════════════
# settle() — Normalize continuation output
# ═══════════════════════════════════════════════════════════════════════════════


async def settle[T, E](outcome: Outcome[T, E]) -> Result[T, E]:
    """
    Turn whatever a continuation returned into a Result.

    - awaitables are awaited first (async continuations)
    - Ok / Error pass through (returning Error is how a handler re-raises)
    - any other value is wrapped in Ok
    """
    value: Any = outcome
    if inspect.isawaitable(value):
        value = await value
    if isinstance(value, (Ok, Error)):
        return cast(Result[T, E], value)
    return Ok(value)


# ═══════════════════════════════════════════════════════════════════════════════
# then() — Sequencing
# ═══════════════════════════════════════════════════════════════════════════════


def then[T, U, E, E2](
    source: Source[T, E],
    continuation: Callable[[T], Outcome[U, E2]],
) -> LazyCoroResult[U, E | E2]:
    """
    Await source, then feed its value to continuation.

    A failed source short-circuits: continuation is never invoked.

    Example:
        from reflow import task as T

        greeting = T.then(fetch_user(42), lambda user: f"hello, {user.name}")
        profile = T.then(fetch_user(42), lambda user: fetch_profile(user.id))
    """

    async def execute() -> Result[U, E | E2]:
        match await source:
            case Ok(value):
                return await settle(continuation(value))
            case Error(error):
                return Error(error)

    return LazyCoroResult(execute)


# ═══════════════════════════════════════════════════════════════════════════════
# catch() — Typed Recovery
# ═══════════════════════════════════════════════════════════════════════════════


def catch[T, U, E, E2, K](
    source: Source[T, E],
    kind: Kinds[K],
    handler: Callable[[E], Outcome[U, E2]],
) -> LazyCoroResult[T | U, E | E2]:
    """
    Recover from errors of a declared kind.

    Success and non-matching errors pass through untouched.

    Example:
        user = T.catch(
            fetch_user(42),
            Kind.NOT_FOUND,
            lambda e: User.anonymous(),
        )
    """

    async def execute() -> Result[T | U, E | E2]:
        result = await source
        match result:
            case Error(error) if matches(error, kind):
                return await settle(handler(error))
            case _:
                return result

    return LazyCoroResult(execute)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = ("settle", "then", "catch")
