"""Shared infrastructure for examples."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from enum import Enum, auto

from kungfu import Result, Ok, Error, Pulse

from reflow import Fault


# Types
@dataclass(frozen=True, slots=True)
class UserId:
    value: int


@dataclass(frozen=True, slots=True)
class User:
    id: UserId
    name: str
    email: str
    tier: str = "standard"


# Errors
class Kind(Enum):
    TRANSIENT = auto()
    NOT_FOUND = auto()
    EFFECT = auto()
    STORE = auto()


# Fake DB
@dataclass(slots=True)
class FakeDb:
    users: dict[int, User] = field(default_factory=lambda: {
        1: User(UserId(1), "Alice", "alice@example.com", "gold"),
        2: User(UserId(2), "Bob", "bob@example.com", "silver"),
    })
    queries: int = 0

    async def get_user(self, user_id: UserId) -> Result[User, Fault[Kind]]:
        self.queries += 1
        await asyncio.sleep(0.05)
        user = self.users.get(user_id.value)
        if user is None:
            return Error(Fault(Kind.NOT_FOUND, f"User:{user_id.value} not found"))
        return Ok(user)


# Fake wallet store
@dataclass(slots=True)
class Wallet:
    state: str

    async def get_state(self) -> Result[str, Fault[Kind]]:
        await asyncio.sleep(0.01)
        print(f"  [STORE] read  → {self.state!r}")
        return Ok(self.state)

    async def save_state(self, new_state: str, old_state: str) -> Pulse[Fault[Kind]]:
        await asyncio.sleep(0.01)
        print(f"  [STORE] write → {new_state!r} (was {old_state!r})")
        self.state = new_state
        return Ok(None)


# Helpers
def banner(title: str) -> None:
    print(f"\n{'─' * 50}\n{title}\n{'─' * 50}")


def run(main: Callable[[], Coroutine[object, object, None]]) -> None:
    logging.basicConfig(level=logging.WARNING, format="  [%(name)s] %(message)s")
    asyncio.run(main())
