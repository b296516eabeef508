"""Raffle engine - owns raffle state and every transition rule.

Cycle:
1. Participants enter() while the raffle is OPEN, paying at least the fee
2. An automation keeper polls check_trigger() and calls execute_trigger()
   once the interval has passed and the pool is funded
3. execute_trigger() moves to CALCULATING and requests one random word
4. The oracle calls deliver_randomness(); the winner takes the whole pool
   and the raffle reopens
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable

from stellar_sdk import StrKey

from autoraffle.engine.event_log import EventLog
from autoraffle.errors import (
    InsufficientPayment,
    InvalidParticipant,
    PayoutTransferFailed,
    RaffleNotCalculating,
    RaffleNotOpen,
    TriggerNotReady,
    UnknownRequest,
)
from autoraffle.interfaces.ledger import Ledger
from autoraffle.interfaces.oracle import RandomnessOracle
from autoraffle.interfaces.publisher import EventPublisher, RaffleEvent
from autoraffle.models.config import RaffleConfig
from autoraffle.models.events import Entered, RandomnessRequested, WinnerPicked
from autoraffle.models.snapshots import RaffleSnapshot, format_xlm
from autoraffle.models.state import RaffleCheckpoint, RaffleState

log = logging.getLogger(__name__)


class RaffleEngine:
    """Automated raffle paid out through a ledger account.

    Every mutating operation holds one lock for its whole duration, so no two
    operations interleave. The oracle must deliver randomness outside of
    execute_trigger(), never from inside request_random_words().
    """

    def __init__(
        self,
        config: RaffleConfig,
        address: str,
        ledger: Ledger,
        oracle: RandomnessOracle,
        publisher: EventPublisher | None = None,
        clock: Callable[[], float] = time.time,
        checkpoint: RaffleCheckpoint | None = None,
    ) -> None:
        self._config = config
        self._address = address
        self._ledger = ledger
        self._oracle = oracle
        self._publisher = publisher if publisher is not None else EventLog()
        self._clock = clock
        self._lock = asyncio.Lock()
        self.restore(checkpoint or RaffleCheckpoint(last_timestamp=clock()))

    # ── Queries ───────────────────────────────────────────

    @property
    def address(self) -> str:
        return self._address

    @property
    def config(self) -> RaffleConfig:
        return self._config

    @property
    def publisher(self) -> EventPublisher:
        return self._publisher

    @property
    def entrance_fee(self) -> int:
        return self._config.entrance_fee

    @property
    def interval(self) -> int:
        return self._config.interval

    @property
    def num_words(self) -> int:
        return self._config.num_words

    @property
    def request_confirmations(self) -> int:
        return self._config.request_confirmations

    @property
    def raffle_state(self) -> RaffleState:
        return self._state

    @property
    def recent_winner(self) -> str | None:
        return self._recent_winner

    @property
    def last_timestamp(self) -> float:
        return self._last_timestamp

    @property
    def number_of_players(self) -> int:
        return len(self._players)

    @property
    def pending_request_id(self) -> int | None:
        return self._pending_request_id

    @property
    def cycle(self) -> int:
        return self._cycle

    def get_player(self, index: int) -> str:
        if not 0 <= index < len(self._players):
            raise IndexError(f"no player at index {index}")
        return self._players[index]

    async def pool_balance(self) -> int:
        return await self._ledger.balance_of(self._address)

    async def snapshot(self) -> RaffleSnapshot:
        balance = await self.pool_balance()
        remaining = self._last_timestamp + self.interval - self._clock()
        return RaffleSnapshot(
            address=self._address,
            state=self._state.value,
            entrance_fee=self.entrance_fee,
            interval=self.interval,
            num_words=self.num_words,
            request_confirmations=self.request_confirmations,
            number_of_players=len(self._players),
            last_timestamp=self._last_timestamp,
            pool_balance=balance,
            pool_balance_xlm=format_xlm(balance),
            recent_winner=self._recent_winner,
            pending_request_id=self._pending_request_id,
            cycle=self._cycle,
            players=list(self._players),
            seconds_until_ready=max(remaining, 0.0),
        )

    # ── Checkpointing ─────────────────────────────────────

    def checkpoint(self) -> RaffleCheckpoint:
        return RaffleCheckpoint(
            state=self._state,
            players=list(self._players),
            last_timestamp=self._last_timestamp,
            recent_winner=self._recent_winner,
            pending_request_id=self._pending_request_id,
            cycle=self._cycle,
        )

    def restore(self, checkpoint: RaffleCheckpoint) -> None:
        self._state = checkpoint.state
        self._players = list(checkpoint.players)
        self._last_timestamp = checkpoint.last_timestamp
        self._recent_winner = checkpoint.recent_winner
        self._pending_request_id = checkpoint.pending_request_id
        self._cycle = checkpoint.cycle

    # ── Operations ────────────────────────────────────────

    async def enter(self, payment: int, participant: str) -> None:
        """Join the pool. The payment moves from participant to the raffle."""
        async with self._lock:
            if payment < self.entrance_fee:
                raise InsufficientPayment(payment, self.entrance_fee)
            if self._state != RaffleState.OPEN:
                raise RaffleNotOpen(self._state)
            if not StrKey.is_valid_ed25519_public_key(participant):
                raise InvalidParticipant(participant)

            await self._ledger.deposit(participant, self._address, payment)
            self._players.append(participant)
            log.info(
                "Entered: %s paid %d (players=%d)",
                participant[:12], payment, len(self._players),
            )
            self._emit(Entered(participant=participant, amount=payment, timestamp=self._clock()))

    async def check_trigger(self) -> bool:
        """True when a draw is due. Read-only; safe to call at any time."""
        return self._is_ready(await self.pool_balance())

    def _is_ready(self, balance: int) -> bool:
        time_passed = (self._clock() - self._last_timestamp) > self.interval
        is_open = self._state == RaffleState.OPEN
        has_players = len(self._players) > 0
        has_balance = balance > 0
        return time_passed and is_open and has_players and has_balance

    async def execute_trigger(self) -> int:
        """Arm the draw: request randomness and stop accepting entries.

        The readiness check is repeated here because any earlier
        check_trigger() result may be stale. Returns the request id.
        """
        async with self._lock:
            balance = await self.pool_balance()
            if not self._is_ready(balance):
                raise TriggerNotReady(balance, len(self._players), self._state)

            self._state = RaffleState.CALCULATING
            try:
                request_id = await self._oracle.request_random_words(
                    key_hash=self._config.gas_lane,
                    sub_id=self._config.subscription_id,
                    min_confirmations=self.request_confirmations,
                    callback_gas_limit=self._config.callback_gas_limit,
                    num_words=self.num_words,
                    consumer=self,
                )
            except BaseException:
                # Includes cancellation while the request is in flight
                self._state = RaffleState.OPEN
                raise

            self._pending_request_id = request_id
            log.info(
                "RandomnessRequested: id=%d players=%d balance=%d",
                request_id, len(self._players), balance,
            )
            self._emit(RandomnessRequested(
                request_id=request_id,
                player_count=len(self._players),
                timestamp=self._clock(),
            ))
            return request_id

    async def deliver_randomness(self, request_id: int, random_words: list[int]) -> None:
        """Oracle callback: pick the winner and pay out the whole pool.

        State is reset before the transfer. If the transfer fails, the reset
        is rolled back (still CALCULATING with the same players and request)
        and PayoutTransferFailed is raised so the delivery can be retried.
        """
        async with self._lock:
            if self._state != RaffleState.CALCULATING:
                raise RaffleNotCalculating(self._state)
            if request_id != self._pending_request_id:
                raise UnknownRequest(request_id, self._pending_request_id)
            if not random_words:
                raise ValueError("random_words must contain at least one value")

            prior = self.checkpoint()
            index = random_words[0] % len(self._players)
            winner = self._players[index]

            self._recent_winner = winner
            self._state = RaffleState.OPEN
            self._players = []
            self._last_timestamp = self._clock()
            self._pending_request_id = None

            try:
                result = await self._ledger.pay_out(self._address, winner)
            except Exception as exc:
                self.restore(prior)
                raise PayoutTransferFailed(winner, 0, str(exc)) from exc
            except BaseException:
                # Cancelled mid-transfer: keep the draw pending
                self.restore(prior)
                raise
            if not result.success:
                self.restore(prior)
                log.error(
                    "Payout of %d to %s failed: %s", result.amount, winner[:12], result.error,
                )
                raise PayoutTransferFailed(winner, result.amount, result.error)

            self._cycle += 1
            log.info(
                "WinnerPicked: %s (index %d of %d) won %d in cycle %d",
                winner[:12], index, len(prior.players), result.amount, self._cycle,
            )
            self._emit(WinnerPicked(
                winner=winner,
                amount=result.amount,
                request_id=request_id,
                cycle=self._cycle,
                timestamp=self._last_timestamp,
            ))

    def _emit(self, event: RaffleEvent) -> None:
        self._publisher.publish(event)
