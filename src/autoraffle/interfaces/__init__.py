"""Protocol interfaces for all autoraffle collaborators."""

from autoraffle.interfaces.oracle import RandomnessConsumer, RandomnessOracle
from autoraffle.interfaces.ledger import Ledger
from autoraffle.interfaces.publisher import EventPublisher, RaffleEvent
from autoraffle.interfaces.store import StateStore

__all__ = [
    "RandomnessConsumer", "RandomnessOracle",
    "Ledger",
    "EventPublisher", "RaffleEvent",
    "StateStore",
]
