"""JSON-serializable snapshot of the raffle query surface."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field

from autoraffle.models.config import STROOPS_PER_XLM


def format_xlm(stroops: int) -> str:
    return f"{stroops / STROOPS_PER_XLM:.7f} XLM"


@dataclass
class RaffleSnapshot:
    """Every read-only query the engine exposes, in one object."""

    address: str
    state: str  # "open" | "calculating"
    entrance_fee: int  # stroops
    interval: int  # seconds
    num_words: int
    request_confirmations: int
    number_of_players: int
    last_timestamp: float
    pool_balance: int  # stroops
    pool_balance_xlm: str
    recent_winner: str | None = None
    pending_request_id: int | None = None
    cycle: int = 0
    players: list[str] = field(default_factory=list)
    seconds_until_ready: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)
