import asyncio
from http import HTTPStatus
from unittest.mock import AsyncMock, Mock, call

import pytest
from kungfu import Ok, Error

from reflow import Fault
from reflow import lift as L
from reflow import pipeline as P
from reflow import retry as R
from tests._infra import Kind, FakeStore, ok, err

POCKET = "I have $10 in my pocket"
AFTER = "Now I have $5"
ACTION = "Buy an ice cream"


def wallet() -> AsyncMock:
    store = AsyncMock()
    store.get_state.return_value = Ok(POCKET)
    store.save_state.return_value = Ok(None)
    return store


def spend(state: str, action: str) -> str:
    return AFTER


async def persist_fails(old: str, new: str, action: str):
    raise RuntimeError("Failed to persist into database")


class TestReduce:
    @pytest.mark.asyncio
    async def test_reduction_saves_new_then_old(self):
        store = wallet()

        transition = ok(await P.bind(ACTION, store).reduce(spend))

        assert transition == P.Transition(action=ACTION, old=POCKET, new=AFTER)
        store.get_state.assert_awaited_once()
        store.save_state.assert_awaited_once_with(AFTER, POCKET)

    @pytest.mark.asyncio
    async def test_nothing_runs_until_awaited(self):
        store = wallet()
        P.bind(ACTION, store).reduce(spend).effect(lambda old, new, action: "done")
        store.get_state.assert_not_called()

    @pytest.mark.asyncio
    async def test_reducer_receives_state_and_action(self):
        reducer = Mock(return_value=AFTER)
        await P.bind(ACTION, wallet()).reduce(reducer)
        reducer.assert_called_once_with(POCKET, ACTION)

    @pytest.mark.asyncio
    async def test_reducer_exception_propagates_without_write(self):
        store = wallet()

        def broken(state: str, action: str) -> str:
            raise ValueError("bad action")

        with pytest.raises(ValueError, match="bad action"):
            await P.bind(ACTION, store).reduce(broken)
        store.save_state.assert_not_called()

    @pytest.mark.asyncio
    async def test_read_error_skips_write(self):
        store = FakeStore(POCKET, read_errors=[Fault(Kind.STORE, "redis down")])

        result = await P.bind(ACTION, store).reduce(spend)

        assert err(result).message == "redis down"
        assert store.saves == []

    @pytest.mark.asyncio
    async def test_reduction_runs_once_across_awaits(self):
        store = FakeStore(POCKET)
        reduced = P.bind(ACTION, store).reduce(spend)

        first = ok(await reduced)
        second = ok(await reduced)
        effect_saw = ok(await reduced.effect(lambda old, new, action: (old, new)))

        assert first == second
        assert effect_saw == (POCKET, AFTER)
        assert store.reads == 1
        assert store.saves == [(AFTER, POCKET)]

    @pytest.mark.asyncio
    async def test_concurrent_awaits_share_one_reduction(self):
        store = FakeStore(POCKET)
        reduced = P.bind(ACTION, store).reduce(spend)
        first = AsyncMock(return_value="first")
        second = AsyncMock(return_value="second")

        transition, a, b = await asyncio.gather(
            reduced,
            reduced.effect(first),
            reduced.effect(second),
        )

        assert ok(transition).new == AFTER
        assert (ok(a), ok(b)) == ("first", "second")
        assert store.reads == 1
        assert store.saves == [(AFTER, POCKET)]
        first.assert_awaited_once_with(POCKET, AFTER, ACTION)
        second.assert_awaited_once_with(POCKET, AFTER, ACTION)

    @pytest.mark.asyncio
    async def test_reducer_exception_is_not_memoized(self):
        store = wallet()
        reducer = Mock(side_effect=[ValueError("flaky reducer"), AFTER])
        reduced = P.bind(ACTION, store).reduce(reducer)

        with pytest.raises(ValueError):
            await reduced
        assert ok(await reduced).new == AFTER
        store.save_state.assert_awaited_once_with(AFTER, POCKET)


class TestEffect:
    @pytest.mark.asyncio
    async def test_ice_cream_purchase(self):
        store = wallet()
        effect = AsyncMock(return_value=HTTPStatus.OK)

        result = await P.bind(ACTION, store).reduce(spend).effect(effect)

        assert ok(result) is HTTPStatus.OK
        effect.assert_awaited_once_with(POCKET, AFTER, ACTION)
        store.save_state.assert_awaited_once_with(AFTER, POCKET)

    @pytest.mark.asyncio
    async def test_sync_effect_value_is_wrapped(self):
        result = await P.bind(ACTION, wallet()).reduce(spend).effect(lambda old, new, action: len(new))
        assert ok(result) == len(AFTER)

    @pytest.mark.asyncio
    async def test_read_write_then_effect_order(self):
        store = FakeStore(POCKET)

        async def effect(old: str, new: str, action: str):
            store.log.append(("effect", (old, new, action)))
            return "sent"

        await P.bind(ACTION, store).reduce(spend).effect(effect)

        assert [name for name, _ in store.log] == ["get_state", "save_state", "effect"]

    @pytest.mark.asyncio
    async def test_write_error_skips_effect(self):
        store = FakeStore(POCKET, write_errors=[Fault(Kind.STORE, "write rejected")])
        effect = AsyncMock()

        result = await P.bind(ACTION, store).reduce(spend).effect(effect)

        assert err(result).message == "write rejected"
        effect.assert_not_called()

    @pytest.mark.asyncio
    async def test_store_errors_bypass_catch_handlers(self):
        store = FakeStore(POCKET, read_errors=[Fault(Kind.EFFECT, "tagged like an effect")])
        handler = Mock(return_value="recovered")
        effect = AsyncMock()

        result = await (
            P.bind(ACTION, store)
            .reduce(spend)
            .effect(effect)
            .catch(Kind.EFFECT, handler)
        )

        assert err(result).message == "tagged like an effect"
        effect.assert_not_called()
        handler.assert_not_called()

    @pytest.mark.asyncio
    async def test_effect_failure_without_catch_propagates(self):
        store = wallet()

        result = await (
            P.bind(ACTION, store)
            .reduce(spend)
            .effect(lambda old, new, action: L.faulting(Kind.EFFECT, lambda: persist_fails(old, new, action)))
        )

        assert err(result).message == "Failed to persist into database"
        store.save_state.assert_awaited_once_with(AFTER, POCKET)


class TestCatch:
    @pytest.mark.asyncio
    async def test_compensating_handler_swaps_states(self):
        store = wallet()

        async def compensate(error: Fault[Kind], t: P.Transition[str, str]):
            await store.save_state(t.old, t.new)
            return HTTPStatus.INTERNAL_SERVER_ERROR

        result = await (
            P.bind(ACTION, store)
            .reduce(spend)
            .effect(lambda old, new, action: L.faulting(Kind.EFFECT, lambda: persist_fails(old, new, action)))
            .catch(Kind.EFFECT, compensate)
        )

        assert ok(result) is HTTPStatus.INTERNAL_SERVER_ERROR
        assert store.save_state.await_args_list == [call(AFTER, POCKET), call(POCKET, AFTER)]
        store.get_state.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_handler_not_called_on_success(self):
        handler = Mock()
        result = await (
            P.bind(ACTION, wallet())
            .reduce(spend)
            .effect(lambda old, new, action: "fine")
            .catch(Kind.EFFECT, handler)
        )
        assert ok(result) == "fine"
        handler.assert_not_called()

    @pytest.mark.asyncio
    async def test_non_matching_error_passes_through(self):
        original = Fault(Kind.TRANSIENT, "timeout")
        handler = Mock()

        result = await (
            P.bind(ACTION, wallet())
            .reduce(spend)
            .effect(lambda old, new, action: Error(original))
            .catch(Kind.EFFECT, handler)
        )

        assert err(result) is original
        handler.assert_not_called()

    @pytest.mark.asyncio
    async def test_chained_catches_see_previous_outcome(self):
        result = await (
            P.bind(ACTION, wallet())
            .reduce(spend)
            .effect(lambda old, new, action: Error(Fault(Kind.EFFECT, "first")))
            .catch(Kind.EFFECT, lambda e, t: Error(Fault(Kind.STORE, f"escalated {e}")))
            .catch(Kind.STORE, lambda e, t: e.message)
        )
        assert ok(result) == "escalated first"

    @pytest.mark.asyncio
    async def test_handler_sees_effect_snapshot(self):
        seen = []

        def handler(error, transition):
            seen.append(transition)
            return "handled"

        await (
            P.bind(ACTION, wallet())
            .reduce(spend)
            .effect(lambda old, new, action: Error(Fault(Kind.EFFECT, "x")))
            .catch((Kind.EFFECT, Kind.TRANSIENT), handler)
        )

        assert seen == [P.Transition(action=ACTION, old=POCKET, new=AFTER)]


class TestEffectRunsOnce:
    @pytest.mark.asyncio
    async def test_awaiting_twice_runs_effect_once(self):
        effect = AsyncMock(return_value=HTTPStatus.OK)
        stage = P.bind(ACTION, wallet()).reduce(spend).effect(effect)

        assert ok(await stage) is HTTPStatus.OK
        assert ok(await stage) is HTTPStatus.OK
        effect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_concurrent_awaits_run_effect_once(self):
        effect = AsyncMock(return_value="sent")
        stage = P.bind(ACTION, FakeStore(POCKET)).reduce(spend).effect(effect)

        results = await asyncio.gather(stage, stage, stage)

        assert [ok(r) for r in results] == ["sent"] * 3
        effect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_catch_derived_stage_reuses_effect_outcome(self):
        effect = AsyncMock(return_value=Error(Fault(Kind.EFFECT, "db down")))
        stage = P.bind(ACTION, wallet()).reduce(spend).effect(effect)

        plain = await stage
        recovered = await stage.catch(Kind.EFFECT, lambda e, t: "recovered")

        assert err(plain).message == "db down"
        assert ok(recovered) == "recovered"
        effect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_handlers_run_once_per_stage(self):
        store = FakeStore(POCKET)
        stage = (
            P.bind(ACTION, store)
            .reduce(spend)
            .effect(lambda old, new, action: Error(Fault(Kind.EFFECT, "db down")))
            .catch(Kind.EFFECT, P.revert(store, lambda e: HTTPStatus.INTERNAL_SERVER_ERROR))
        )

        await stage
        await stage

        assert store.saves == [(AFTER, POCKET), (POCKET, AFTER)]


class TestCompensation:
    @pytest.mark.asyncio
    async def test_rollback_writes_old_state_back(self):
        store = FakeStore(AFTER)
        transition = P.Transition(action=ACTION, old=POCKET, new=AFTER)

        assert ok(await P.rollback(store, transition)) is None
        assert store.saves == [(POCKET, AFTER)]
        assert store.state == POCKET

    @pytest.mark.asyncio
    async def test_revert_restores_state_and_substitutes(self):
        store = FakeStore(POCKET)

        result = await (
            P.bind(ACTION, store)
            .reduce(spend)
            .effect(lambda old, new, action: Error(Fault(Kind.EFFECT, "db down")))
            .catch(Kind.EFFECT, P.revert(store, lambda e: HTTPStatus.INTERNAL_SERVER_ERROR))
        )

        assert ok(result) is HTTPStatus.INTERNAL_SERVER_ERROR
        assert store.saves == [(AFTER, POCKET), (POCKET, AFTER)]
        assert store.state == POCKET

    @pytest.mark.asyncio
    async def test_revert_reports_failed_rollback(self):
        store = FakeStore(POCKET)
        substitute = Mock()

        async def effect(old, new, action):
            store.write_errors.append(Fault(Kind.STORE, "rollback rejected"))
            return Error(Fault(Kind.EFFECT, "db down"))

        result = await (
            P.bind(ACTION, store)
            .reduce(spend)
            .effect(effect)
            .catch(Kind.EFFECT, P.revert(store, substitute))
        )

        assert err(result).message == "rollback rejected"
        substitute.assert_not_called()
        assert store.state == AFTER


class TestRetryingStore:
    @pytest.mark.asyncio
    async def test_transient_read_is_retried(self):
        inner = FakeStore(POCKET, read_errors=[Fault(Kind.TRANSIENT, "blip")] * 2)
        store = P.with_retry(inner, R.immediate(3), on=Kind.TRANSIENT)

        result = await P.bind(ACTION, store).reduce(spend)

        assert ok(result).old == POCKET
        assert inner.reads == 3
        assert inner.saves == [(AFTER, POCKET)]

    @pytest.mark.asyncio
    async def test_write_retries_use_fresh_policy(self):
        inner = FakeStore(POCKET, write_errors=[Fault(Kind.TRANSIENT, "blip")])
        template = R.immediate(2)
        store = P.with_retry(inner, template, on=Kind.TRANSIENT)

        assert ok(await store.save_state(AFTER, POCKET)) is None
        inner.write_errors.append(Fault(Kind.TRANSIENT, "blip again"))
        assert ok(await store.save_state(POCKET, AFTER)) is None
        assert template.attempts == 0
        assert len(inner.saves) == 4

    @pytest.mark.asyncio
    async def test_other_kinds_are_not_retried(self):
        inner = FakeStore(POCKET, read_errors=[Fault(Kind.STORE, "corrupt")])
        store = P.with_retry(inner, R.immediate(5), on=Kind.TRANSIENT)

        result = await store.get_state()

        assert err(result).kind is Kind.STORE
        assert inner.reads == 1


@pytest.mark.asyncio
async def test_concurrent_pipelines_on_separate_stores():
    stores = [FakeStore(n) for n in range(5)]

    results = await asyncio.gather(
        *(
            P.bind("inc", s).reduce(lambda state, action: state + 1).effect(lambda old, new, action: new)
            for s in stores
        )
    )

    assert [ok(r) for r in results] == [1, 2, 3, 4, 5]
    assert [s.state for s in stores] == [1, 2, 3, 4, 5]
