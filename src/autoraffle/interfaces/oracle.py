"""RandomnessOracle protocol - issues randomness requests and calls back consumers."""

from __future__ import annotations

from typing import Protocol


class RandomnessConsumer(Protocol):
    """Anything that can receive randomness from the oracle."""

    @property
    def address(self) -> str:
        ...

    async def deliver_randomness(self, request_id: int, random_words: list[int]) -> None:
        """Callback invoked exactly once per fulfilled request."""
        ...


class RandomnessOracle(Protocol):
    """Produces random values asynchronously, one delivery per request."""

    async def request_random_words(
        self,
        key_hash: str,
        sub_id: int,
        min_confirmations: int,
        callback_gas_limit: int,
        num_words: int,
        consumer: RandomnessConsumer,
    ) -> int:
        """Register a request and return its id. Delivery happens later."""
        ...
