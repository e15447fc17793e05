"""
Cache types.
"""

from __future__ import annotations

import asyncio
from collections import OrderedDict
from typing import Protocol

from kungfu import Option, Some, Nothing

# ═══════════════════════════════════════════════════════════════════════════════
# CacheItem Protocol — Users Implement This
# ═══════════════════════════════════════════════════════════════════════════════

class CacheItem[T](Protocol):
    """
    One cache slot. The key lives outside — scope it when creating the item.

    Implement this for custom backends (Redis, Memcached, etc.)

    Example:
        class RedisItem[T]:
            def __init__(self, client: Redis, key: str, ttl: int | None = None):
                self.client = client
                self.key = key
                self.ttl = ttl

            async def get(self) -> Option[T]:
                data = await self.client.get(self.key)
                return Some(pickle.loads(data)) if data is not None else Nothing()

            async def set(self, value: T) -> None:
                await self.client.set(self.key, pickle.dumps(value), ex=self.ttl)
    """

    async def get(self) -> Option[T]:
        """Some(value) when present, Nothing() on miss."""
        ...

    async def set(self, value: T) -> None:
        """Store value."""
        ...


# ═══════════════════════════════════════════════════════════════════════════════
# CacheLock Protocol — Users Implement This
# ═══════════════════════════════════════════════════════════════════════════════

class CacheLock(Protocol):
    """
    Mutual exclusion for one cache item.

    Never share one lock between unrelated keys: that serializes
    unrelated recomputations.
    """

    async def acquire(self) -> None:
        """Suspend until the lock is granted."""
        ...

    async def release(self) -> None:
        """Give the lock back."""
        ...


# ═══════════════════════════════════════════════════════════════════════════════
# Local Cache — In-Memory LRU (Default)
# ═══════════════════════════════════════════════════════════════════════════════

class LocalCache[T]:
    """
    In-memory LRU storage handing out per-key items.

    Example:
        users = LocalCache[User](max_size=1000)
        item = users.item(f"user:{uid}")
    """

    def __init__(self, max_size: int = 1000) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._max_size = max_size
        self._entries: OrderedDict[str, T] = OrderedDict()

    def item(self, key: str) -> LocalItem[T]:
        return LocalItem(self, key)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def _get(self, key: str) -> Option[T]:
        if key in self._entries:
            # Move to end (most recent)
            self._entries.move_to_end(key)
            return Some(self._entries[key])
        return Nothing()

    def _set(self, key: str, value: T) -> None:
        if key in self._entries:
            self._entries.move_to_end(key)
        elif len(self._entries) >= self._max_size:
            # Evict oldest
            self._entries.popitem(last=False)
        self._entries[key] = value


class LocalItem[T]:
    """CacheItem view of one LocalCache key."""

    __slots__ = ("_cache", "_key")

    def __init__(self, cache: LocalCache[T], key: str) -> None:
        self._cache = cache
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    async def get(self) -> Option[T]:
        return self._cache._get(self._key)

    async def set(self, value: T) -> None:
        self._cache._set(self._key, value)


# ═══════════════════════════════════════════════════════════════════════════════
# Local Locks
# ═══════════════════════════════════════════════════════════════════════════════

class LocalLock:
    """CacheLock over asyncio.Lock (single process)."""

    __slots__ = ("_lock",)

    def __init__(self) -> None:
        self._lock = asyncio.Lock()

    def locked(self) -> bool:
        return self._lock.locked()

    async def acquire(self) -> None:
        await self._lock.acquire()

    async def release(self) -> None:
        self._lock.release()


class _Slot:
    """asyncio.Lock plus the number of callers holding or awaiting it."""

    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.users = 0


class KeyedLocks:
    """
    Per-key mutual exclusion with bounded bookkeeping.

    Handles for the same key exclude each other. A key's entry exists
    only while some caller holds or waits for it, so memory tracks the
    keys in use, not every key ever requested.

    Example:
        locks = KeyedLocks()
        await C.get_or_add(users.item(key), locks.lock(key), fetch)
    """

    def __init__(self) -> None:
        self._slots: dict[str, _Slot] = {}

    def lock(self, key: str) -> KeyedLock:
        return KeyedLock(self, key)

    def __len__(self) -> int:
        return len(self._slots)

    def _enter(self, key: str) -> _Slot:
        slot = self._slots.get(key)
        if slot is None:
            slot = self._slots[key] = _Slot()
        slot.users += 1
        return slot

    def _leave(self, key: str, slot: _Slot) -> None:
        slot.users -= 1
        if slot.users == 0 and self._slots.get(key) is slot:
            del self._slots[key]


class KeyedLock:
    """CacheLock handle for one key of a KeyedLocks."""

    __slots__ = ("_owner", "_key")

    def __init__(self, owner: KeyedLocks, key: str) -> None:
        self._owner = owner
        self._key = key

    def locked(self) -> bool:
        slot = self._owner._slots.get(self._key)
        return slot is not None and slot.lock.locked()

    async def acquire(self) -> None:
        slot = self._owner._enter(self._key)
        try:
            await slot.lock.acquire()
        except BaseException:
            self._owner._leave(self._key, slot)
            raise

    async def release(self) -> None:
        slot = self._owner._slots[self._key]
        slot.lock.release()
        self._owner._leave(self._key, slot)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "CacheItem",
    "CacheLock",
    "LocalCache",
    "LocalItem",
    "LocalLock",
    "KeyedLocks",
    "KeyedLock",
)
