"""In-memory event log - buffers engine notifications until drained."""

from __future__ import annotations

from autoraffle.interfaces.publisher import RaffleEvent


class EventLog:
    """Implements the EventPublisher protocol with a plain list."""

    def __init__(self) -> None:
        self.events: list[RaffleEvent] = []
        self._drained = 0

    def publish(self, event: RaffleEvent) -> None:
        self.events.append(event)

    def drain(self) -> list[RaffleEvent]:
        """Return events published since the previous drain()."""
        new = self.events[self._drained:]
        self._drained = len(self.events)
        return new

    def of_type(self, kind: type) -> list[RaffleEvent]:
        return [e for e in self.events if isinstance(e, kind)]
