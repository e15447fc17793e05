"""
Core types for reflow.

Re-exports from kungfu/combinators + error kind matching.
"""

from __future__ import annotations

from collections.abc import Callable, Awaitable
from dataclasses import dataclass
from typing import Never

# Re-export from kungfu
from kungfu import Result, Ok, Error, Option, Some, Nothing, Pulse, LazyCoroResult

# Re-export from combinators
from combinators import LCR, NoError

# ═══════════════════════════════════════════════════════════════════════════════
# Lazy Computation Aliases
# ═══════════════════════════════════════════════════════════════════════════════

type Lazy[T, E] = LazyCoroResult[T, E]
"""Lazy async computation that may fail."""

type Pure[T] = Lazy[T, Never]
"""Lazy computation that cannot fail."""

type Fallible[T, E] = Lazy[T, E]
"""Lazy computation that can fail with E."""

type Source[T, E] = Awaitable[Result[T, E]]
"""Anything that yields a Result when awaited (LazyCoroResult, coroutine, ...)."""

type Operation[T, E] = Callable[[], Awaitable[Result[T, E]]]
"""Zero-argument factory producing a fresh Source on every call."""

type Outcome[T, E] = T | Result[T, E] | Awaitable[T | Result[T, E]]
"""What continuations and handlers may return. See task.settle()."""

# ═══════════════════════════════════════════════════════════════════════════════
# Error Kinds
# ═══════════════════════════════════════════════════════════════════════════════


type Kinds[K] = K | tuple[K, ...]
"""One kind or several kinds accepted by a filter."""


@dataclass(frozen=True, slots=True)
class Fault[K]:
    """
    Stock error value: kind tag + message.

    cause keeps the exception a fault was converted from, if any.

    Example:
        class Kind(Enum):
            TRANSIENT = auto()
            EFFECT = auto()

        Error(Fault(Kind.TRANSIENT, "connection reset"))
    """

    kind: K
    message: str
    cause: Exception | None = None

    def __str__(self) -> str:
        return self.message


def matches[K](error: object, kind: Kinds[K]) -> bool:
    """
    Exact-kind match.

    Errors without a `kind` attribute never match.
    """
    if not hasattr(error, "kind"):
        return False
    error_kind = getattr(error, "kind")
    kinds = kind if isinstance(kind, tuple) else (kind,)
    return any(error_kind == k for k in kinds)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    # Re-exports from kungfu
    "Result",
    "Ok",
    "Error",
    "Option",
    "Some",
    "Nothing",
    "Pulse",
    "LazyCoroResult",
    # Re-exports from combinators
    "LCR",
    "NoError",
    # Type aliases
    "Lazy",
    "Pure",
    "Fallible",
    "Source",
    "Operation",
    "Outcome",
    # Error kinds
    "Kinds",
    "Fault",
    "matches",
)
