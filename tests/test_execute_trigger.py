"""execute_trigger(): re-check, state transition and randomness request."""

from __future__ import annotations

import asyncio

import pytest

from autoraffle.engine.raffle import RaffleEngine
from autoraffle.errors import InvalidConsumer, TriggerNotReady
from autoraffle.models.events import RandomnessRequested
from autoraffle.models.state import RaffleState

from tests.conftest import ENTRANCE_FEE, INTERVAL, TEST_PUBLIC, enter_all
from tests.factories import make_raffle_config


async def test_execute_arms_draw(engine, ledger, players, clock, oracle, event_log, raffle_config):
    await enter_all(engine, ledger, players)
    clock.advance(INTERVAL + 1)
    before = engine.checkpoint()

    request_id = await engine.execute_trigger()

    assert engine.raffle_state == RaffleState.CALCULATING
    assert engine.pending_request_id == request_id
    # Execution only arms the draw
    assert engine.checkpoint().players == before.players
    assert engine.last_timestamp == before.last_timestamp
    assert engine.recent_winner is None
    assert await engine.pool_balance() == ENTRANCE_FEE * len(players)

    assert len(oracle.requests) == 1
    req = oracle.requests[0]
    assert req["key_hash"] == raffle_config.gas_lane
    assert req["sub_id"] == raffle_config.subscription_id
    assert req["min_confirmations"] == 3
    assert req["callback_gas_limit"] == raffle_config.callback_gas_limit
    assert req["num_words"] == 1
    assert req["consumer"] is engine

    requested = event_log.of_type(RandomnessRequested)
    assert len(requested) == 1
    assert requested[0].request_id == request_id
    assert requested[0].player_count == len(players)


async def test_execute_before_interval_fails_with_diagnostics(engine, ledger, players, oracle):
    await enter_all(engine, ledger, players[:2])

    with pytest.raises(TriggerNotReady) as excinfo:
        await engine.execute_trigger()

    err = excinfo.value
    assert err.balance == 2 * ENTRANCE_FEE
    assert err.player_count == 2
    assert err.state == RaffleState.OPEN
    assert engine.raffle_state == RaffleState.OPEN
    assert oracle.requests == []


async def test_execute_with_no_players_fails(engine, clock):
    clock.advance(INTERVAL + 1)

    with pytest.raises(TriggerNotReady) as excinfo:
        await engine.execute_trigger()

    assert excinfo.value.balance == 0
    assert excinfo.value.player_count == 0
    assert excinfo.value.state == RaffleState.OPEN


async def test_execute_twice_fails_second_time(armed_engine, oracle, players, clock):
    clock.advance(INTERVAL + 1)

    with pytest.raises(TriggerNotReady) as excinfo:
        await armed_engine.execute_trigger()

    assert excinfo.value.state == RaffleState.CALCULATING
    assert excinfo.value.player_count == len(players)
    assert len(oracle.requests) == 1


async def test_oracle_failure_leaves_raffle_open(engine, ledger, players, clock, oracle, event_log):
    await enter_all(engine, ledger, players)
    clock.advance(INTERVAL + 1)
    oracle.fail = True

    with pytest.raises(RuntimeError):
        await engine.execute_trigger()

    assert engine.raffle_state == RaffleState.OPEN
    assert engine.pending_request_id is None
    assert event_log.of_type(RandomnessRequested) == []
    assert await engine.check_trigger() is True


async def test_unregistered_consumer_rejected_by_coordinator(ledger, coordinator, clock, players):
    sub_id = await coordinator.create_subscription(owner=TEST_PUBLIC)
    unregistered = RaffleEngine(
        make_raffle_config(subscription_id=sub_id),
        TEST_PUBLIC,
        ledger,
        coordinator,
        clock=clock,
    )
    await enter_all(unregistered, ledger, players)
    clock.advance(INTERVAL + 1)

    with pytest.raises(InvalidConsumer):
        await unregistered.execute_trigger()

    assert unregistered.raffle_state == RaffleState.OPEN


async def test_cancelled_request_leaves_raffle_open(engine, ledger, players, clock, oracle, event_log):
    await enter_all(engine, ledger, players)
    clock.advance(INTERVAL + 1)
    oracle.hang = True

    task = asyncio.create_task(engine.execute_trigger())
    await oracle.started.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert engine.raffle_state == RaffleState.OPEN
    assert engine.pending_request_id is None
    assert event_log.of_type(RandomnessRequested) == []

    oracle.hang = False
    assert await engine.execute_trigger() == 1
    assert engine.raffle_state == RaffleState.CALCULATING
