"""SQLite implementation of the StateStore protocol."""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from autoraffle.interfaces.publisher import RaffleEvent
from autoraffle.models.events import WinnerPicked
from autoraffle.models.records import (
    ActivityRecord,
    EntryRequest,
    EventRecord,
    WinnerRecord,
)
from autoraffle.models.state import RaffleCheckpoint, RaffleState

SCHEMA = """
-- Engine, ledger and coordinator state for crash recovery
CREATE TABLE IF NOT EXISTS checkpoint (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    raffle_state TEXT NOT NULL,
    players TEXT NOT NULL,
    last_timestamp REAL NOT NULL,
    recent_winner TEXT,
    pending_request_id INTEGER,
    cycle INTEGER NOT NULL DEFAULT 0,
    balances TEXT NOT NULL,
    coordinator TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);

-- Entries submitted from the CLI, consumed by the daemon
CREATE TABLE IF NOT EXISTS entry_queue (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    participant TEXT NOT NULL,
    amount INTEGER NOT NULL,
    status TEXT NOT NULL DEFAULT 'queued',
    reject_reason TEXT,
    created_at TEXT NOT NULL DEFAULT (datetime('now')),
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);
CREATE INDEX IF NOT EXISTS idx_entry_queue_status ON entry_queue(status);

-- Engine notifications
CREATE TABLE IF NOT EXISTS events (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    event_type TEXT NOT NULL,
    payload TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);

-- Completed draws
CREATE TABLE IF NOT EXISTS winners (
    cycle INTEGER PRIMARY KEY,
    winner TEXT NOT NULL,
    amount INTEGER NOT NULL,
    request_id INTEGER NOT NULL,
    picked_at TEXT NOT NULL DEFAULT (datetime('now'))
);

-- Activity log
CREATE TABLE IF NOT EXISTS activity_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    event_type TEXT NOT NULL,
    participant TEXT,
    amount INTEGER,
    message TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);
CREATE INDEX IF NOT EXISTS idx_activity_created ON activity_log(created_at);
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _iso(ts: float) -> str:
    return datetime.fromtimestamp(ts, timezone.utc).isoformat()


class SQLiteStateStore:
    """SQLite-backed implementation of the StateStore protocol."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(self._db_path)
        self._db.row_factory = aiosqlite.Row
        await self._db.executescript(SCHEMA)
        await self._db.commit()

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        assert self._db is not None, "Store not initialized. Call initialize() first."
        return self._db

    # ── Checkpoint ─────────────────────────────────────────

    async def save_checkpoint(
        self,
        checkpoint: RaffleCheckpoint,
        balances: dict[str, int],
        coordinator: dict,
    ) -> None:
        await self.db.execute(
            "INSERT INTO checkpoint"
            " (id, raffle_state, players, last_timestamp, recent_winner,"
            "  pending_request_id, cycle, balances, coordinator, updated_at)"
            " VALUES (1, ?, ?, ?, ?, ?, ?, ?, ?, ?)"
            " ON CONFLICT(id) DO UPDATE SET"
            " raffle_state=excluded.raffle_state, players=excluded.players,"
            " last_timestamp=excluded.last_timestamp, recent_winner=excluded.recent_winner,"
            " pending_request_id=excluded.pending_request_id, cycle=excluded.cycle,"
            " balances=excluded.balances, coordinator=excluded.coordinator,"
            " updated_at=excluded.updated_at",
            (
                checkpoint.state.value,
                json.dumps(checkpoint.players),
                checkpoint.last_timestamp,
                checkpoint.recent_winner,
                checkpoint.pending_request_id,
                checkpoint.cycle,
                json.dumps(balances),
                json.dumps(coordinator),
                _now(),
            ),
        )
        await self.db.commit()

    async def load_checkpoint(self) -> tuple[RaffleCheckpoint, dict[str, int], dict] | None:
        async with self.db.execute("SELECT * FROM checkpoint WHERE id=1") as cur:
            row = await cur.fetchone()
            if row is None:
                return None
            checkpoint = RaffleCheckpoint(
                state=RaffleState(row["raffle_state"]),
                players=json.loads(row["players"]),
                last_timestamp=row["last_timestamp"],
                recent_winner=row["recent_winner"],
                pending_request_id=row["pending_request_id"],
                cycle=row["cycle"],
            )
            return checkpoint, json.loads(row["balances"]), json.loads(row["coordinator"])

    # ── Entry queue ────────────────────────────────────────

    async def queue_entry(self, participant: str, amount: int) -> int:
        now = _now()
        cur = await self.db.execute(
            "INSERT INTO entry_queue (participant, amount, status, created_at, updated_at)"
            " VALUES (?, ?, 'queued', ?, ?)",
            (participant, amount, now, now),
        )
        await self.db.commit()
        return cur.lastrowid

    async def get_queued_entries(self) -> list[EntryRequest]:
        async with self.db.execute(
            "SELECT * FROM entry_queue WHERE status='queued' ORDER BY id"
        ) as cur:
            return [_row_to_entry(row) async for row in cur]

    async def get_entry(self, entry_id: int) -> EntryRequest | None:
        async with self.db.execute(
            "SELECT * FROM entry_queue WHERE id=?", (entry_id,)
        ) as cur:
            row = await cur.fetchone()
            return _row_to_entry(row) if row else None

    async def update_entry_status(
        self, entry_id: int, status: str, reject_reason: str | None = None,
    ) -> None:
        if reject_reason:
            await self.db.execute(
                "UPDATE entry_queue SET status=?, reject_reason=?, updated_at=? WHERE id=?",
                (status, reject_reason, _now(), entry_id),
            )
        else:
            await self.db.execute(
                "UPDATE entry_queue SET status=?, updated_at=? WHERE id=?",
                (status, _now(), entry_id),
            )
        await self.db.commit()

    # ── Events & history ───────────────────────────────────

    async def save_events(self, events: list[RaffleEvent]) -> None:
        for event in events:
            created = _iso(event.timestamp)
            await self.db.execute(
                "INSERT INTO events (event_type, payload, created_at) VALUES (?, ?, ?)",
                (type(event).__name__, json.dumps(asdict(event)), created),
            )
            if isinstance(event, WinnerPicked):
                await self.db.execute(
                    "INSERT OR REPLACE INTO winners"
                    " (cycle, winner, amount, request_id, picked_at)"
                    " VALUES (?, ?, ?, ?, ?)",
                    (event.cycle, event.winner, event.amount, event.request_id, created),
                )
        await self.db.commit()

    async def get_recent_events(self, limit: int = 50) -> list[EventRecord]:
        async with self.db.execute(
            "SELECT * FROM events ORDER BY id DESC LIMIT ?", (limit,)
        ) as cur:
            return [
                EventRecord(
                    id=row["id"],
                    event_type=row["event_type"],
                    payload=json.loads(row["payload"]),
                    created_at=row["created_at"],
                )
                async for row in cur
            ]

    async def get_winners(self, limit: int = 20) -> list[WinnerRecord]:
        async with self.db.execute(
            "SELECT * FROM winners ORDER BY cycle DESC LIMIT ?", (limit,)
        ) as cur:
            return [
                WinnerRecord(
                    cycle=row["cycle"],
                    winner=row["winner"],
                    amount=row["amount"],
                    request_id=row["request_id"],
                    picked_at=row["picked_at"],
                )
                async for row in cur
            ]

    # ── Activity log ───────────────────────────────────────

    async def log_activity(
        self,
        event_type: str,
        message: str,
        participant: str | None = None,
        amount: int | None = None,
    ) -> None:
        await self.db.execute(
            "INSERT INTO activity_log (event_type, participant, amount, message, created_at)"
            " VALUES (?, ?, ?, ?, ?)",
            (event_type, participant, amount, message, _now()),
        )
        await self.db.commit()

    async def get_recent_activity(self, limit: int = 50) -> list[ActivityRecord]:
        async with self.db.execute(
            "SELECT * FROM activity_log ORDER BY id DESC LIMIT ?", (limit,)
        ) as cur:
            return [
                ActivityRecord(
                    id=row["id"],
                    event_type=row["event_type"],
                    message=row["message"],
                    participant=row["participant"],
                    amount=row["amount"],
                    created_at=row["created_at"],
                )
                async for row in cur
            ]


# ── Row converters ─────────────────────────────────────────


def _row_to_entry(row: aiosqlite.Row) -> EntryRequest:
    return EntryRequest(
        id=row["id"],
        participant=row["participant"],
        amount=row["amount"],
        status=row["status"],
        reject_reason=row["reject_reason"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
