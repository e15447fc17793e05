"""
Cache operations — read-through with a per-item lock.
"""

from __future__ import annotations

import logging

from kungfu import Result, Ok, Some, LazyCoroResult

from reflow._types import Operation
from reflow.cache._types import CacheItem, CacheLock

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# get_or_add() — Cache-Aside
# ═══════════════════════════════════════════════════════════════════════════════


def get_or_add[T, E](
    item: CacheItem[T],
    lock: CacheLock,
    compute: Operation[T, E],
) -> LazyCoroResult[T, E]:
    """
    Return the cached value, computing and storing it on a miss.

    Check → lock → re-check → compute → store. At most one caller per
    lock computes; callers that queued on the lock find the stored value.
    Failed computations are not cached. The lock is released on every
    path once acquired.

    Example:
        from reflow import cache as C

        users = C.LocalCache[User](max_size=100)
        locks = C.KeyedLocks()

        key = f"user:{uid}"
        result = await C.get_or_add(
            users.item(key),
            locks.lock(key),
            lambda: db.fetch_user(uid),
        )
    """

    async def execute() -> Result[T, E]:
        match await item.get():
            case Some(value):
                return Ok(value)
            case _:
                pass

        await lock.acquire()
        try:
            match await item.get():
                case Some(value):
                    logger.debug("cache filled while waiting for lock, skipping compute")
                    return Ok(value)
                case _:
                    pass

            result = await compute()
            match result:
                case Ok(value):
                    await item.set(value)
                case _:
                    logger.debug("compute failed, leaving cache item empty")
            return result
        finally:
            await lock.release()

    return LazyCoroResult(execute)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = ("get_or_add",)
