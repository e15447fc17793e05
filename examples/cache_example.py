"""
Cache — cache-aside reads with stampede protection.

Key concepts:
- CacheItem = one slot (key scoped at creation)
- CacheLock = one lock per key; only the lock holder computes
- Failed computations are never cached

Level 5: reflow.cache
Level 3: combinators.lift
Level 2: kungfu.Result
"""

import asyncio

from kungfu import Ok, Error, LazyCoroResult
from reflow import Fault
from reflow import cache as C
from reflow import lift as L
from examples._infra import banner, run, Kind, UserId, User, FakeDb


db = FakeDb()


# ═══════════════════════════════════════════════════════════════════════════════
# 1. STORAGE + LOCKS ARE GLOBAL — create once, inject everywhere
# ═══════════════════════════════════════════════════════════════════════════════

users: C.LocalCache[User] = C.LocalCache(max_size=100)
locks = C.KeyedLocks()


# ═══════════════════════════════════════════════════════════════════════════════
# 2. COMPUTE FUNCTION — returns LazyCoroResult
# ═══════════════════════════════════════════════════════════════════════════════


def fetch_user(uid: UserId) -> LazyCoroResult[User, Fault[Kind]]:
    async def _fetch():
        print(f"  [ORIGIN] Fetching user {uid.value} from DB...")
        return await db.get_user(uid)

    return L.call(_fetch)


# ═══════════════════════════════════════════════════════════════════════════════
# 3. CACHE = BUILDER
# ═══════════════════════════════════════════════════════════════════════════════

user_cache = (
    C.aside(lambda uid: f"user:{uid.value}", fetch_user)
    .items(users.item)
    .locks(locks.lock)
    .build()
)

# How it works:
# HIT:   item.get() → Some → return, no lock taken
# MISS:  lock → re-check → compute → store → unlock
# ERROR: lock → re-check → compute fails → unlock, nothing stored


async def main() -> None:
    banner("Cache: Aside + Per-Key Lock")

    print("\n1. Ten concurrent requests for a cold key (one origin fetch):")
    results = await asyncio.gather(*(user_cache.get(UserId(1)) for _ in range(10)))
    names = {r.value.name for r in results if isinstance(r, Ok)}
    print(f"   results={names} origin queries={db.queries}")

    print("\n2. Warm request (no lock, no fetch):")
    match await user_cache.get(UserId(1)):
        case Ok(user):
            print(f"   → {user.name} origin queries={db.queries}")
        case Error(e):
            print(f"   error: {e}")

    print("\n3. Missing user (error is returned, not cached):")
    for _ in range(2):
        match await user_cache.get(UserId(99)):
            case Ok(user):
                print(f"   → {user.name}")
            case Error(e):
                print(f"   error: {e} (kind={e.kind.name})")
    print(f"   cached keys={len(users)} origin queries={db.queries}")

    print("\nDone!")


if __name__ == "__main__":
    run(main)
