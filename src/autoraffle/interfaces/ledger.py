"""Ledger protocol - the value-transfer substrate holding account balances."""

from __future__ import annotations

from typing import Protocol

from autoraffle.models.records import TransferResult


class Ledger(Protocol):
    """Atomic balance bookkeeping for addressable accounts."""

    async def balance_of(self, address: str) -> int:
        ...

    async def deposit(self, payer: str, account: str, amount: int) -> None:
        """Move amount from payer to account. Raises InsufficientFunds."""
        ...

    async def pay_out(self, account: str, recipient: str) -> TransferResult:
        """Move the entire balance of account to recipient, all or nothing."""
        ...
