"""SQLiteStateStore: checkpoint, entry queue, events and activity log."""

from __future__ import annotations

from autoraffle.models.events import Entered, RandomnessRequested, WinnerPicked
from autoraffle.models.state import RaffleCheckpoint, RaffleState
from autoraffle.storage.sqlite import SQLiteStateStore

from tests.factories import make_address, make_players

TS = 1_700_000_000.0


# ── Checkpoint ───────────────────────────────────────────


async def test_no_checkpoint_on_fresh_store(store):
    assert await store.load_checkpoint() is None


async def test_checkpoint_round_trip(store):
    players = make_players(2)
    checkpoint = RaffleCheckpoint(
        state=RaffleState.CALCULATING,
        players=players,
        last_timestamp=TS,
        recent_winner=make_address(3),
        pending_request_id=4,
        cycle=2,
    )
    balances = {players[0]: 10, players[1]: 20}
    coordinator = {"block_number": 7, "subscriptions": []}

    await store.save_checkpoint(checkpoint, balances, coordinator)
    loaded = await store.load_checkpoint()

    assert loaded == (checkpoint, balances, coordinator)


async def test_checkpoint_overwrites_single_row(store):
    await store.save_checkpoint(RaffleCheckpoint(last_timestamp=TS), {}, {})
    newer = RaffleCheckpoint(last_timestamp=TS + 60, cycle=1)
    await store.save_checkpoint(newer, {"a": 1}, {"block_number": 1})

    checkpoint, balances, coordinator = await store.load_checkpoint()

    assert checkpoint == newer
    assert balances == {"a": 1}
    assert coordinator == {"block_number": 1}
    async with store.db.execute("SELECT COUNT(*) FROM checkpoint") as cur:
        assert (await cur.fetchone())[0] == 1


async def test_checkpoint_survives_reopen(tmp_path):
    db_path = str(tmp_path / "nested" / "state.db")
    first = SQLiteStateStore(db_path)
    await first.initialize()
    await first.save_checkpoint(RaffleCheckpoint(last_timestamp=TS, cycle=5), {}, {})
    await first.close()

    second = SQLiteStateStore(db_path)
    await second.initialize()
    checkpoint, _, _ = await second.load_checkpoint()
    await second.close()

    assert checkpoint.cycle == 5


# ── Entry queue ──────────────────────────────────────────


async def test_queue_entry_lifecycle(store):
    alice, bob = make_players(2)
    first = await store.queue_entry(alice, 1_000_000)
    second = await store.queue_entry(bob, 2_000_000)

    queued = await store.get_queued_entries()
    assert [e.id for e in queued] == [first, second]
    assert queued[0].participant == alice
    assert queued[1].amount == 2_000_000
    assert all(e.status == "queued" for e in queued)

    await store.update_entry_status(first, "entered")
    await store.update_entry_status(second, "rejected", "Raffle__RaffleNotOpen")

    assert await store.get_queued_entries() == []
    entered = await store.get_entry(first)
    rejected = await store.get_entry(second)
    assert entered.status == "entered"
    assert entered.reject_reason is None
    assert rejected.status == "rejected"
    assert rejected.reject_reason == "Raffle__RaffleNotOpen"


async def test_get_missing_entry(store):
    assert await store.get_entry(404) is None


# ── Events & winners ─────────────────────────────────────


async def test_events_are_persisted_newest_first(store):
    player = make_address(1)
    await store.save_events([
        Entered(participant=player, amount=5, timestamp=TS),
        RandomnessRequested(request_id=1, player_count=1, timestamp=TS + 1),
    ])

    events = await store.get_recent_events()

    assert [e.event_type for e in events] == ["RandomnessRequested", "Entered"]
    assert events[1].payload == {"participant": player, "amount": 5, "timestamp": TS}
    assert events[0].created_at.startswith("2023-11-14")


async def test_winner_picked_is_recorded(store):
    alice, bob = make_players(2)
    await store.save_events([
        WinnerPicked(winner=alice, amount=30, request_id=1, cycle=1, timestamp=TS),
        WinnerPicked(winner=bob, amount=40, request_id=2, cycle=2, timestamp=TS + 60),
    ])

    winners = await store.get_winners()

    assert [(w.cycle, w.winner, w.amount, w.request_id) for w in winners] == [
        (2, bob, 40, 2),
        (1, alice, 30, 1),
    ]
    assert len(await store.get_winners(limit=1)) == 1


async def test_save_no_events(store):
    await store.save_events([])

    assert await store.get_recent_events() == []
    assert await store.get_winners() == []


# ── Activity ─────────────────────────────────────────────


async def test_activity_log(store):
    player = make_address(2)
    await store.log_activity("daemon_started", "Daemon started")
    await store.log_activity("entered", "Entry accepted", participant=player, amount=7)

    activity = await store.get_recent_activity()

    assert [a.event_type for a in activity] == ["entered", "daemon_started"]
    assert activity[0].participant == player
    assert activity[0].amount == 7
    assert activity[1].participant is None
    assert len(await store.get_recent_activity(limit=1)) == 1
