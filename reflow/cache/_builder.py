"""
Cache-aside builder — fluent API.
"""

from __future__ import annotations

from dataclasses import dataclass
from collections.abc import Callable, Awaitable
from kungfu import LazyCoroResult, Result
from reflow.cache._types import CacheItem, CacheLock, KeyedLocks
from reflow.cache._ops import get_or_add

# ═══════════════════════════════════════════════════════════════════════════════
# Provider Types
# ═══════════════════════════════════════════════════════════════════════════════

type KeyFn[K] = Callable[[K], str]
type ItemProvider[T] = Callable[[str], CacheItem[T]]
type LockProvider = Callable[[str], CacheLock]
type ComputeFn[K, T, E] = Callable[[K], Awaitable[Result[T, E]]]


# ═══════════════════════════════════════════════════════════════════════════════
# Cache-Aside Builder
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(slots=True, frozen=True)
class Aside[K, T, E]:
    """
    Fluent cache-aside builder.

    Type parameters:
        K: Key input type
        T: Value type
        E: Error type from compute

    Example:
        user_cache = (
            C.aside(make_key, fetch_user)
            .items(C.LocalCache[User](max_size=100).item)
            .locks(C.KeyedLocks().lock)
            .build()
        )
    """

    _key_fn: KeyFn[K]
    _compute: ComputeFn[K, T, E]
    _items: ItemProvider[T] | None
    _locks: LockProvider | None

    def items(self, provider: ItemProvider[T]) -> Aside[K, T, E]:
        """Where cached values live: cache key → CacheItem."""
        return Aside(
            _key_fn=self._key_fn,
            _compute=self._compute,
            _items=provider,
            _locks=self._locks,
        )

    def locks(self, provider: LockProvider) -> Aside[K, T, E]:
        """Which lock guards a key: cache key → CacheLock."""
        return Aside(
            _key_fn=self._key_fn,
            _compute=self._compute,
            _items=self._items,
            _locks=provider,
        )

    def build(self) -> CacheAside[K, T, E]:
        """Build executable cache. Locks default to a private KeyedLocks."""
        if self._items is None:
            raise ValueError("Cache-aside needs an item provider, call .items() first")
        return CacheAside(
            key_fn=self._key_fn,
            compute=self._compute,
            items=self._items,
            locks=self._locks if self._locks is not None else KeyedLocks().lock,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Cache-Aside Executor
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(slots=True, frozen=True)
class CacheAside[K, T, E]:
    """Compiled cache-aside executor."""

    key_fn: KeyFn[K]
    compute: ComputeFn[K, T, E]
    items: ItemProvider[T]
    locks: LockProvider

    def get(self, key: K) -> LazyCoroResult[T, E]:
        """Cached value for key, computed once on a miss."""
        cache_key = self.key_fn(key)
        compute_fn = self.compute
        return get_or_add(
            self.items(cache_key),
            self.locks(cache_key),
            lambda: compute_fn(key),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# aside() — Entry Point (Type-Safe)
# ═══════════════════════════════════════════════════════════════════════════════


def aside[K, T, E](
    key: KeyFn[K],
    compute: ComputeFn[K, T, E],
) -> Aside[K, T, E]:
    """
    Create cache-aside builder with key function and compute.

    Types are inferred from arguments — no manual annotation needed.

    Example:
        from reflow import cache as C

        def make_key(uid: UserId) -> str:
            return f"user:{uid.value}"

        def fetch_user(uid: UserId) -> LazyCoroResult[User, Fault[Kind]]:
            return L.faulting(Kind.DB, lambda: db.get_user(uid))

        user_cache = (
            C.aside(make_key, fetch_user)
            .items(C.LocalCache[User](max_size=100).item)
            .build()
        )

        result = await user_cache.get(user_id)
    """
    return Aside(
        _key_fn=key,
        _compute=compute,
        _items=None,
        _locks=None,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = ("Aside", "CacheAside", "aside")
