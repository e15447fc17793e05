"""
Cache — cache-aside reads with duplicate-computation protection.

    from reflow import cache as C

    user_cache = C.aside(key_fn, fetch_fn).items(C.LocalCache(max_size=100).item).build()
    result = await user_cache.get(user_id)
"""

from __future__ import annotations

from reflow.cache._types import (
    CacheItem,
    CacheLock,
    LocalCache,
    LocalItem,
    LocalLock,
    KeyedLocks,
    KeyedLock,
)
from reflow.cache._ops import get_or_add
from reflow.cache._builder import aside, Aside, CacheAside

__all__ = (
    "CacheItem",
    "CacheLock",
    "LocalCache",
    "LocalItem",
    "LocalLock",
    "KeyedLocks",
    "KeyedLock",
    "get_or_add",
    "aside",
    "Aside",
    "CacheAside",
)
