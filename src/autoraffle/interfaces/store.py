"""StateStore protocol - persists raffle state for crash recovery and queries."""

from __future__ import annotations

from typing import Protocol

from autoraffle.interfaces.publisher import RaffleEvent
from autoraffle.models.records import (
    ActivityRecord,
    EntryRequest,
    EventRecord,
    WinnerRecord,
)
from autoraffle.models.state import RaffleCheckpoint


class StateStore(Protocol):
    """Persists engine checkpoints, notifications and history."""

    # ── Lifecycle ──────────────────────────────────────────

    async def initialize(self) -> None:
        """Create tables if they don't exist."""
        ...

    async def close(self) -> None:
        ...

    # ── Checkpoint ─────────────────────────────────────────

    async def save_checkpoint(
        self,
        checkpoint: RaffleCheckpoint,
        balances: dict[str, int],
        coordinator: dict,
    ) -> None:
        ...

    async def load_checkpoint(self) -> tuple[RaffleCheckpoint, dict[str, int], dict] | None:
        ...

    # ── Entry queue ────────────────────────────────────────

    async def queue_entry(self, participant: str, amount: int) -> int:
        ...

    async def get_queued_entries(self) -> list[EntryRequest]:
        ...

    async def update_entry_status(
        self, entry_id: int, status: str, reject_reason: str | None = None,
    ) -> None:
        ...

    # ── Events & history ───────────────────────────────────

    async def save_events(self, events: list[RaffleEvent]) -> None:
        ...

    async def get_recent_events(self, limit: int = 50) -> list[EventRecord]:
        ...

    async def get_winners(self, limit: int = 20) -> list[WinnerRecord]:
        ...

    # ── Activity log ───────────────────────────────────────

    async def log_activity(
        self,
        event_type: str,
        message: str,
        participant: str | None = None,
        amount: int | None = None,
    ) -> None:
        ...

    async def get_recent_activity(self, limit: int = 50) -> list[ActivityRecord]:
        ...
