"""In-memory value-transfer ledger for local networks and tests."""

from __future__ import annotations

import logging

from autoraffle.errors import InsufficientFunds
from autoraffle.models.records import TransferResult

log = logging.getLogger(__name__)


class InMemoryLedger:
    """Implements the Ledger protocol over a plain address -> balance map.

    Every method runs without awaiting anything else, so each transfer is
    atomic with respect to the event loop.
    """

    def __init__(self, balances: dict[str, int] | None = None) -> None:
        self._balances: dict[str, int] = dict(balances or {})
        self._rejecting: set[str] = set()

    async def balance_of(self, address: str) -> int:
        return self._balances.get(address, 0)

    async def fund(self, address: str, amount: int) -> int:
        """Mint amount into address. Local networks only."""
        if amount < 0:
            raise ValueError("amount must be non-negative")
        self._balances[address] = self._balances.get(address, 0) + amount
        return self._balances[address]

    async def burn(self, address: str, amount: int) -> int:
        """Remove amount previously minted with fund()."""
        balance = self._balances.get(address, 0)
        if balance < amount:
            raise InsufficientFunds(address, balance, amount)
        self._balances[address] = balance - amount
        return self._balances[address]

    async def deposit(self, payer: str, account: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("amount must be non-negative")
        balance = self._balances.get(payer, 0)
        if balance < amount:
            raise InsufficientFunds(payer, balance, amount)
        self._balances[payer] = balance - amount
        self._balances[account] = self._balances.get(account, 0) + amount

    async def pay_out(self, account: str, recipient: str) -> TransferResult:
        amount = self._balances.get(account, 0)
        if recipient in self._rejecting:
            log.warning("Recipient %s rejected payment of %d", recipient[:12], amount)
            return TransferResult(
                success=False,
                sender=account,
                recipient=recipient,
                amount=amount,
                error="recipient_rejected",
            )
        self._balances[account] = 0
        self._balances[recipient] = self._balances.get(recipient, 0) + amount
        return TransferResult(
            success=True, sender=account, recipient=recipient, amount=amount,
        )

    def reject_payments(self, address: str, reject: bool = True) -> None:
        """Make address refuse (or accept again) incoming payouts."""
        if reject:
            self._rejecting.add(address)
        else:
            self._rejecting.discard(address)

    def balances(self) -> dict[str, int]:
        return {a: b for a, b in self._balances.items() if b}

    def load(self, balances: dict[str, int]) -> None:
        self._balances = dict(balances)
