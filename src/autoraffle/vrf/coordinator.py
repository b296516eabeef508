"""Local randomness coordinator - subscription-based VRF stand-in.

Mirrors the coordinator mock deployed on local development networks:
consumers are registered on a funded subscription, requests wait for a
number of block confirmations, and each fulfillment charges the
subscription a flat base fee plus the callback gas budget at a fixed price.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import asdict

from autoraffle.errors import (
    InsufficientBalance,
    InvalidConsumer,
    InvalidRequest,
    InvalidSubscription,
    NumWordsTooBig,
)
from autoraffle.interfaces.oracle import RandomnessConsumer
from autoraffle.models.config import JUELS_PER_LINK
from autoraffle.models.records import FulfillmentResult, RandomnessRequest, Subscription

log = logging.getLogger(__name__)

BASE_FEE = JUELS_PER_LINK // 4  # 0.25 LINK
GAS_PRICE_LINK = 1_000_000_000
MAX_NUM_WORDS = 500


def derive_words(request_id: int, num_words: int) -> list[int]:
    """Deterministic 256-bit words for a request, one hash per index."""
    return [
        int.from_bytes(
            hashlib.sha256(f"{request_id}:{i}".encode("utf-8")).digest(), "big",
        )
        for i in range(num_words)
    ]


class LocalVRFCoordinator:
    """Implements the RandomnessOracle protocol in-process."""

    def __init__(
        self,
        base_fee: int = BASE_FEE,
        gas_price: int = GAS_PRICE_LINK,
        max_num_words: int = MAX_NUM_WORDS,
    ) -> None:
        self._base_fee = base_fee
        self._gas_price = gas_price
        self._max_num_words = max_num_words
        self._subscriptions: dict[int, Subscription] = {}
        self._requests: dict[int, RandomnessRequest] = {}
        self._consumers: dict[str, RandomnessConsumer] = {}
        self._next_sub_id = 1
        self._next_request_id = 1
        self.block_number = 0

    @property
    def base_fee(self) -> int:
        return self._base_fee

    @property
    def gas_price(self) -> int:
        return self._gas_price

    # ── Subscriptions ─────────────────────────────────────

    async def create_subscription(self, owner: str = "") -> int:
        sub_id = self._next_sub_id
        self._next_sub_id += 1
        self._subscriptions[sub_id] = Subscription(sub_id=sub_id, owner=owner)
        log.info("Subscription %d created", sub_id)
        return sub_id

    async def fund_subscription(self, sub_id: int, amount: int) -> int:
        sub = self._get_sub(sub_id)
        sub.balance += amount
        log.info("Subscription %d funded with %d (balance %d)", sub_id, amount, sub.balance)
        return sub.balance

    async def get_subscription(self, sub_id: int) -> Subscription:
        return self._get_sub(sub_id)

    async def list_subscriptions(self) -> list[Subscription]:
        return [self._subscriptions[k] for k in sorted(self._subscriptions)]

    async def add_consumer(self, sub_id: int, consumer: RandomnessConsumer) -> None:
        sub = self._get_sub(sub_id)
        if consumer.address not in sub.consumers:
            sub.consumers.append(consumer.address)
        self._consumers[consumer.address] = consumer
        log.info("Consumer %s added to subscription %d", consumer.address[:12], sub_id)

    async def remove_consumer(self, sub_id: int, address: str) -> None:
        sub = self._get_sub(sub_id)
        if address not in sub.consumers:
            raise InvalidConsumer(f"{address} is not a consumer of subscription {sub_id}")
        sub.consumers.remove(address)

    def _get_sub(self, sub_id: int) -> Subscription:
        sub = self._subscriptions.get(sub_id)
        if sub is None:
            raise InvalidSubscription(f"subscription {sub_id} does not exist")
        return sub

    # ── Requests ──────────────────────────────────────────

    async def request_random_words(
        self,
        key_hash: str,
        sub_id: int,
        min_confirmations: int,
        callback_gas_limit: int,
        num_words: int,
        consumer: RandomnessConsumer,
    ) -> int:
        sub = self._get_sub(sub_id)
        if consumer.address not in sub.consumers:
            raise InvalidConsumer(
                f"{consumer.address} is not a consumer of subscription {sub_id}"
            )
        if num_words > self._max_num_words:
            raise NumWordsTooBig(f"{num_words} > {self._max_num_words}")

        request_id = self._next_request_id
        self._next_request_id += 1
        sub.req_count += 1
        self._consumers[consumer.address] = consumer
        self._requests[request_id] = RandomnessRequest(
            request_id=request_id,
            sub_id=sub_id,
            consumer=consumer.address,
            key_hash=key_hash,
            min_confirmations=min_confirmations,
            callback_gas_limit=callback_gas_limit,
            num_words=num_words,
            block_requested=self.block_number,
        )
        log.info(
            "RandomWordsRequested: id=%d sub=%d consumer=%s block=%d",
            request_id, sub_id, consumer.address[:12], self.block_number,
        )
        return request_id

    def mine(self, blocks: int = 1) -> int:
        self.block_number += blocks
        return self.block_number

    def get_request(self, request_id: int) -> RandomnessRequest | None:
        return self._requests.get(request_id)

    def ready_requests(self) -> list[RandomnessRequest]:
        """Pending requests that have waited their confirmation depth."""
        return [
            r for r in sorted(self._requests.values(), key=lambda r: r.request_id)
            if self.block_number - r.block_requested >= r.min_confirmations
        ]

    async def fulfill_random_words(
        self, request_id: int, words: list[int] | None = None,
    ) -> FulfillmentResult:
        """Deliver randomness for request_id and charge its subscription.

        If the consumer callback raises, the request stays pending and the
        subscription is not charged.
        """
        req = self._requests.get(request_id)
        if req is None:
            raise InvalidRequest(f"request {request_id} is not pending")

        sub = self._get_sub(req.sub_id)
        payment = self._base_fee + req.callback_gas_limit * self._gas_price
        if sub.balance < payment:
            raise InsufficientBalance(
                f"subscription {sub.sub_id} has {sub.balance}, fulfillment costs {payment}"
            )

        consumer = self._consumers.get(req.consumer)
        if consumer is None:
            raise InvalidConsumer(f"no consumer bound for {req.consumer}")

        random_words = list(words) if words is not None else derive_words(
            request_id, req.num_words,
        )
        await consumer.deliver_randomness(request_id, random_words)

        sub.balance -= payment
        del self._requests[request_id]
        log.info("RandomWordsFulfilled: id=%d payment=%d", request_id, payment)
        return FulfillmentResult(
            request_id=request_id, payment=payment, random_words=random_words,
        )

    # ── Persistence ───────────────────────────────────────

    def export_state(self) -> dict:
        return {
            "block_number": self.block_number,
            "next_sub_id": self._next_sub_id,
            "next_request_id": self._next_request_id,
            "subscriptions": [asdict(s) for s in self._subscriptions.values()],
            "requests": [asdict(r) for r in self._requests.values()],
        }

    def load_state(self, state: dict) -> None:
        self.block_number = state.get("block_number", 0)
        self._next_sub_id = state.get("next_sub_id", 1)
        self._next_request_id = state.get("next_request_id", 1)
        self._subscriptions = {
            s["sub_id"]: Subscription(**s) for s in state.get("subscriptions", [])
        }
        self._requests = {
            r["request_id"]: RandomnessRequest(**r) for r in state.get("requests", [])
        }
