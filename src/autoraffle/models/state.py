"""Raffle state machine models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class RaffleState(str, Enum):
    """Lifecycle state of the raffle."""

    OPEN = "open"  # accepting entries, draw may be triggered
    CALCULATING = "calculating"  # randomness request in flight


@dataclass
class RaffleCheckpoint:
    """Mutable engine state, serializable for crash recovery."""

    state: RaffleState = RaffleState.OPEN
    players: list[str] = field(default_factory=list)
    last_timestamp: float = 0.0  # unix seconds
    recent_winner: str | None = None
    pending_request_id: int | None = None
    cycle: int = 0  # completed payouts
