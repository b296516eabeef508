"""CLI commands via click's CliRunner."""

from __future__ import annotations

import asyncio
import json

import pytest
from click.testing import CliRunner
from stellar_sdk import StrKey

from autoraffle.cli import cli
from autoraffle.models.events import WinnerPicked
from autoraffle.models.state import RaffleCheckpoint, RaffleState
from autoraffle.storage.sqlite import SQLiteStateStore

from tests.conftest import TEST_PUBLIC, TEST_SECRET
from tests.factories import make_address


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "cli.db")


@pytest.fixture
def env(db_path, monkeypatch):
    for name in ("NETWORK", "ENTRANCE_FEE", "INTERVAL"):
        monkeypatch.delenv(f"AUTORAFFLE_{name}", raising=False)
    return {"AUTORAFFLE_DB_PATH": db_path, "AUTORAFFLE_SECRET": TEST_SECRET}


def _read_store(db_path, fn):
    async def _run():
        store = SQLiteStateStore(db_path)
        await store.initialize()
        try:
            return await fn(store)
        finally:
            await store.close()

    return asyncio.run(_run())


def test_new_address():
    result = CliRunner().invoke(cli, ["new-address"])

    assert result.exit_code == 0
    address = result.output.splitlines()[0].split()[-1]
    assert StrKey.is_valid_ed25519_public_key(address)
    assert "Secret:" in result.output


def test_status(env):
    result = CliRunner().invoke(cli, ["status"], env=env)

    assert result.exit_code == 0
    assert "localhost" in result.output
    assert "1000000 stroops" in result.output
    assert "***configured***" in result.output


def test_enter_queues_entry(env, db_path):
    player = make_address(1)

    result = CliRunner().invoke(cli, ["enter", player], env=env)

    assert result.exit_code == 0
    assert "Entry #1 queued" in result.output
    queued = _read_store(db_path, lambda s: s.get_queued_entries())
    assert [(e.participant, e.amount) for e in queued] == [(player, 1_000_000)]


def test_enter_with_low_amount_warns(env, db_path):
    result = CliRunner().invoke(cli, ["enter", make_address(2), "--amount", "5"], env=env)

    assert result.exit_code == 0
    assert "below the entrance fee" in result.output
    queued = _read_store(db_path, lambda s: s.get_queued_entries())
    assert queued[0].amount == 5


def test_enter_rejects_bad_address(env, db_path):
    result = CliRunner().invoke(cli, ["enter", "GNOTANADDRESS"], env=env)

    assert result.exit_code == 1
    assert "not a valid account address" in result.output


def test_info_without_checkpoint(env):
    result = CliRunner().invoke(cli, ["info"], env=env)

    assert result.exit_code == 0
    assert "No raffle state yet" in result.output


def _seed_calculating(db_path, player):
    async def seed(store):
        await store.save_checkpoint(
            RaffleCheckpoint(
                state=RaffleState.CALCULATING,
                players=[player],
                last_timestamp=1_700_000_000.0,
                pending_request_id=2,
                cycle=1,
            ),
            {TEST_PUBLIC: 1_000_000},
            {},
        )

    _read_store(db_path, seed)


def test_info_shows_checkpoint(env, db_path):
    player = make_address(3)
    _seed_calculating(db_path, player)

    result = CliRunner().invoke(cli, ["info"], env=env)

    assert result.exit_code == 0
    assert "CALCULATING" in result.output
    assert "1000000 stroops" in result.output
    assert "Entrance fee:   1000000 stroops" in result.output
    assert "Interval:       30s" in result.output
    assert "3 confirmations" in result.output
    assert "Pending request: 2" in result.output
    assert player in result.output


def test_info_json(env, db_path):
    player = make_address(4)
    _seed_calculating(db_path, player)

    result = CliRunner().invoke(cli, ["info", "--json"], env=env)

    assert result.exit_code == 0
    snap = json.loads(result.output)
    assert snap["address"] == TEST_PUBLIC
    assert snap["state"] == "calculating"
    assert snap["request_confirmations"] == 3
    assert snap["pending_request_id"] == 2
    assert snap["pool_balance"] == 1_000_000
    assert snap["players"] == [player]
    assert snap["cycle"] == 1


def test_info_requires_secret(db_path, monkeypatch):
    monkeypatch.delenv("AUTORAFFLE_SECRET", raising=False)

    result = CliRunner().invoke(cli, ["info"], env={"AUTORAFFLE_DB_PATH": db_path})

    assert result.exit_code == 1
    assert "No raffle secret configured" in result.output


def test_empty_history(env):
    runner = CliRunner()

    assert "No winners yet." in runner.invoke(cli, ["winners"], env=env).output
    assert "No events recorded." in runner.invoke(cli, ["events"], env=env).output


def test_winners_and_events(env, db_path):
    winner = make_address(4)
    _read_store(db_path, lambda s: s.save_events([
        WinnerPicked(winner=winner, amount=3_000_000, request_id=1, cycle=1, timestamp=1_700_000_000.0),
    ]))
    runner = CliRunner()

    winners = runner.invoke(cli, ["winners"], env=env)
    events = runner.invoke(cli, ["events", "-n", "5"], env=env)

    assert winners.exit_code == 0
    assert f"winner={winner}" in winners.output
    assert "request=1" in winners.output
    assert "WinnerPicked" in events.output
    assert "amount=3000000" in events.output
