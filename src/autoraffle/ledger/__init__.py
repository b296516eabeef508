"""Value-transfer ledgers."""

from autoraffle.ledger.memory import InMemoryLedger

__all__ = ["InMemoryLedger"]
