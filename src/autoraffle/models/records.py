"""Internal record types for state persistence and operation results."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class TransferResult:
    """Result of moving a balance on the ledger."""

    success: bool
    sender: str
    recipient: str
    amount: int = 0
    error: str | None = None


@dataclass
class Subscription:
    """A funded randomness subscription on the coordinator."""

    sub_id: int
    owner: str
    balance: int = 0  # juels
    consumers: list[str] = field(default_factory=list)
    req_count: int = 0


@dataclass
class RandomnessRequest:
    """An outstanding randomness request held by the coordinator."""

    request_id: int
    sub_id: int
    consumer: str  # consumer address
    key_hash: str
    min_confirmations: int
    callback_gas_limit: int
    num_words: int
    block_requested: int


@dataclass
class FulfillmentResult:
    """Result of delivering randomness to a consumer."""

    request_id: int
    payment: int  # juels charged to the subscription
    random_words: list[int] = field(default_factory=list)


@dataclass
class UpkeepResult:
    """Result of one keeper check/execute round."""

    performed: bool
    request_id: int | None = None
    error: str | None = None
    checked_at: str = ""  # ISO 8601


@dataclass
class EntryRequest:
    """A queued entry waiting for the daemon to submit it."""

    id: int
    participant: str
    amount: int
    status: str = "queued"  # queued | entered | rejected
    reject_reason: str | None = None
    created_at: str = ""
    updated_at: str = ""


@dataclass
class WinnerRecord:
    """Historical record of a completed draw."""

    cycle: int
    winner: str
    amount: int
    request_id: int
    picked_at: str = ""  # ISO 8601


@dataclass
class EventRecord:
    """A persisted engine notification."""

    id: int
    event_type: str
    payload: dict
    created_at: str


@dataclass
class ActivityRecord:
    """A single activity log entry."""

    id: int
    event_type: str
    message: str
    participant: str | None
    amount: int | None  # stroops
    created_at: str
