"""EventPublisher protocol - sink for engine notifications."""

from __future__ import annotations

from typing import Protocol, Union

from autoraffle.models.events import Entered, RandomnessRequested, WinnerPicked

RaffleEvent = Union[Entered, RandomnessRequested, WinnerPicked]


class EventPublisher(Protocol):
    """Receives notifications emitted by the engine. Must not fail."""

    def publish(self, event: RaffleEvent) -> None:
        ...
