"""Raffle engine and its in-memory event log."""

from autoraffle.engine.event_log import EventLog
from autoraffle.engine.raffle import RaffleEngine

__all__ = ["EventLog", "RaffleEngine"]
