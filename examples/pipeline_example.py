"""
Pipeline — action → reducer → effect, with rollback on effect failure.

Level 5: reflow.pipeline
Level 3: combinators.lift
Level 2: kungfu.Result
"""

from http import HTTPStatus

from kungfu import Ok, Error
from reflow import lift as L
from reflow import pipeline as P
from examples._infra import banner, run, Kind, Wallet


# Mock APIs
async def persist(new_state: str) -> HTTPStatus:
    print(f"  ✓ Persist: {new_state!r}")
    return HTTPStatus.OK


async def persist_broken(new_state: str) -> HTTPStatus:
    print(f"  ✗ Persist: {new_state!r}")
    raise RuntimeError("Failed to persist into database")


def spend(state: str, action: str) -> str:
    return "Now I have $5"


async def main() -> None:
    banner("Pipeline: Buy an Ice Cream")

    wallet = Wallet("I have $10 in my pocket")

    print("\nHappy path...")
    result = await (
        P.bind("Buy an ice cream", wallet)
        .reduce(spend)
        .effect(lambda old, new, action: L.faulting(Kind.EFFECT, lambda: persist(new)))
    )
    match result:
        case Ok(status):
            print(f"\n✓ Success: {status.value} {status.phrase}")
        case Error(e):
            print(f"\n✗ Failed: {e}")

    banner("Pipeline: Effect Fails, State Rolled Back")

    wallet = Wallet("I have $10 in my pocket")

    print("\nExecuting pipeline...")
    result = await (
        P.bind("Buy an ice cream", wallet)
        .reduce(spend)
        .effect(lambda old, new, action: L.faulting(Kind.EFFECT, lambda: persist_broken(new)))
        .catch(Kind.EFFECT, P.revert(wallet, lambda e: HTTPStatus.INTERNAL_SERVER_ERROR))
    )

    match result:
        case Ok(status):
            print(f"\n✓ Answered: {status.value} {status.phrase}")
        case Error(e):
            print(f"\n✗ Failed: {e}")
    print(f"  Wallet now: {wallet.state!r}")


if __name__ == "__main__":
    run(main)
