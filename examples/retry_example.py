"""
Retry — policies, the executor and the fluent builder.

Level 5: reflow.retry, reflow.task
Level 3: combinators.lift
Level 2: kungfu.Result
"""

import asyncio

from kungfu import Ok, Error, Result
from reflow import Fault
from reflow import retry as R
from reflow import task as T
from examples._infra import banner, run, Kind


class FlakyApi:
    """Fails with TRANSIENT `failures` times, then answers."""

    def __init__(self, failures: int) -> None:
        self.failures = failures
        self.calls = 0

    async def fetch(self) -> Result[str, Fault[Kind]]:
        self.calls += 1
        await asyncio.sleep(0.01)
        if self.calls <= self.failures:
            print(f"  ✗ call #{self.calls}: connection reset")
            return Error(Fault(Kind.TRANSIENT, "connection reset"))
        print(f"  ✓ call #{self.calls}")
        return Ok("payload")


def show(result: Result[object, Fault[Kind]]) -> None:
    match result:
        case Ok(value):
            print(f"   → {value!r}")
        case Error(e):
            print(f"   error: {e} (kind={e.kind.name})")


async def main() -> None:
    banner("Retry: Executor")

    print("\n1. Two failures, three attempts allowed:")
    api = FlakyApi(failures=2)
    show(await R.retry(api.fetch, R.immediate(3), on=Kind.TRANSIENT))

    print("\n2. Constant 100ms backoff, gives up after 2 attempts:")
    api = FlakyApi(failures=5)
    show(await R.retry(api.fetch, R.constant(100, max_attempts=2), on=Kind.TRANSIENT))

    banner("Retry: Builder + Continuations")

    print("\n3. Jittered retry, then a continuation:")
    api = FlakyApi(failures=1)
    fetched = R.retrying(api.fetch).when(Kind.TRANSIENT, R.random(20, 80, max_attempts=3))
    show(await T.then(fetched, lambda payload: payload.upper()))

    print("\n4. Deadline cuts the backoff short:")
    api = FlakyApi(failures=10)
    show(await T.deadline(
        lambda signal: R.retrying(api.fetch).when(Kind.TRANSIENT, R.constant(200, max_attempts=10)).until(signal),
        seconds=0.5,
    ))
    print(f"   calls made: {api.calls}")

    print("\nDone!")


if __name__ == "__main__":
    run(main)
