"""Error taxonomy for the raffle engine and its local collaborators."""

from __future__ import annotations

from autoraffle.models.state import RaffleState


class RaffleError(Exception):
    """Base class for every failure raised by the raffle engine."""


class InsufficientPayment(RaffleError):
    """Payment sent with enter() is below the entrance fee."""

    def __init__(self, payment: int, entrance_fee: int) -> None:
        self.payment = payment
        self.entrance_fee = entrance_fee
        super().__init__(
            f"Raffle__SendMoreToEnterRaffle: sent {payment}, need {entrance_fee}"
        )


class RaffleNotOpen(RaffleError):
    """enter() was called while a draw is in flight."""

    def __init__(self, state: RaffleState) -> None:
        self.state = state
        super().__init__(f"Raffle__RaffleNotOpen: state is {state.value}")


class TriggerNotReady(RaffleError):
    """execute_trigger() was called while check_trigger() is false.

    Carries the values needed to diagnose which condition failed.
    """

    def __init__(self, balance: int, player_count: int, state: RaffleState) -> None:
        self.balance = balance
        self.player_count = player_count
        self.state = state
        super().__init__(
            f"Raffle__UpkeepNotNeeded: balance={balance} "
            f"players={player_count} state={state.value}"
        )


class PayoutTransferFailed(RaffleError):
    """The ledger refused to move the pool balance to the winner."""

    def __init__(self, winner: str, amount: int, reason: str | None = None) -> None:
        self.winner = winner
        self.amount = amount
        self.reason = reason
        super().__init__(
            f"Raffle__TransferFailed: {amount} to {winner[:12]}... ({reason or 'unknown'})"
        )


class RaffleNotCalculating(RaffleError):
    """Randomness arrived while no draw was in flight."""

    def __init__(self, state: RaffleState) -> None:
        self.state = state
        super().__init__(f"Raffle__NotCalculating: state is {state.value}")


class UnknownRequest(RaffleError):
    """Randomness arrived for a request id that is not the outstanding one."""

    def __init__(self, request_id: int, expected: int | None) -> None:
        self.request_id = request_id
        self.expected = expected
        super().__init__(
            f"Raffle__UnknownRequest: got {request_id}, outstanding {expected}"
        )


class InvalidParticipant(RaffleError):
    """Participant is not a valid account address."""

    def __init__(self, participant: str) -> None:
        self.participant = participant
        super().__init__(f"Raffle__InvalidParticipant: {participant!r}")


# ── Ledger ─────────────────────────────────────────────


class LedgerError(Exception):
    """Base class for value-transfer substrate failures."""


class InsufficientFunds(LedgerError):
    def __init__(self, address: str, balance: int, amount: int) -> None:
        self.address = address
        self.balance = balance
        self.amount = amount
        super().__init__(
            f"insufficient funds: {address[:12]}... has {balance}, needs {amount}"
        )


# ── Randomness coordinator ─────────────────────────────


class CoordinatorError(Exception):
    """Base class for randomness coordinator failures."""


class InvalidSubscription(CoordinatorError):
    pass


class InvalidConsumer(CoordinatorError):
    pass


class InvalidRequest(CoordinatorError):
    pass


class InsufficientBalance(CoordinatorError):
    pass


class NumWordsTooBig(CoordinatorError):
    pass
