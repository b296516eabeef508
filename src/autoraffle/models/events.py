"""Notifications emitted by the raffle engine for external watchers."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Entered:
    """A participant joined the pool (RaffleEnter)."""

    participant: str  # Stellar address
    amount: int  # stroops paid
    timestamp: float


@dataclass(frozen=True)
class RandomnessRequested:
    """A draw was armed and a randomness request issued (RequestedRaffleWinner)."""

    request_id: int
    player_count: int
    timestamp: float


@dataclass(frozen=True)
class WinnerPicked:
    """A winner was drawn and paid out.

    amount is the whole pool balance transferred to the winner.
    """

    winner: str
    amount: int
    request_id: int
    cycle: int
    timestamp: float
