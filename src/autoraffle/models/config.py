"""Configuration models for the raffle engine and daemon."""

from __future__ import annotations

from dataclasses import dataclass, field

STROOPS_PER_XLM = 10_000_000
JUELS_PER_LINK = 10**18

REQUEST_CONFIRMATIONS = 3
NUM_WORDS = 1

DEFAULT_GAS_LANE = "0x474e34a077df58807dbe9c96d3c009b23b3c6d0cce433e59bbf5b34f823bc56c"


@dataclass(frozen=True)
class RaffleConfig:
    """Immutable parameters fixed at engine construction."""

    entrance_fee: int = 1_000_000  # stroops (0.1 XLM)
    interval: int = 30  # seconds between draws
    gas_lane: str = DEFAULT_GAS_LANE  # randomness key hash
    subscription_id: int = 0
    callback_gas_limit: int = 500_000
    vrf_coordinator: str = "local"
    request_confirmations: int = field(default=REQUEST_CONFIRMATIONS, init=False)
    num_words: int = field(default=NUM_WORDS, init=False)


@dataclass
class RaffleSettings:
    """[raffle] section: user-tunable values that seed RaffleConfig."""

    entrance_fee: int = 1_000_000
    interval: int = 30
    gas_lane: str = DEFAULT_GAS_LANE
    subscription_id: int = 0  # 0 = create one on first start
    callback_gas_limit: int = 500_000

    def to_raffle_config(
        self, vrf_coordinator: str = "local", subscription_id: int | None = None,
    ) -> RaffleConfig:
        return RaffleConfig(
            entrance_fee=self.entrance_fee,
            interval=self.interval,
            gas_lane=self.gas_lane,
            subscription_id=(
                self.subscription_id if subscription_id is None else subscription_id
            ),
            callback_gas_limit=self.callback_gas_limit,
            vrf_coordinator=vrf_coordinator,
        )


@dataclass
class VRFConfig:
    """[vrf] section: local randomness coordinator parameters."""

    coordinator: str = "local"
    base_fee: int = JUELS_PER_LINK // 4  # 0.25 LINK per request
    gas_price: int = 1_000_000_000  # juels per gas unit
    fund_amount: int = 10 * JUELS_PER_LINK  # initial subscription funding
    max_num_words: int = 500


@dataclass
class KeeperConfig:
    """[keeper] section: automation polling."""

    enabled: bool = True
    poll_interval: int = 1  # seconds between check_trigger() polls


@dataclass
class DaemonConfig:
    """Complete daemon configuration."""

    # Daemon
    poll_interval: int = 1  # seconds per loop iteration (one local block)
    error_backoff: int = 5  # seconds
    log_level: str = "info"

    # Network
    network: str = "localhost"
    raffle_secret: str = ""  # loaded from env var AUTORAFFLE_SECRET

    # Raffle
    raffle: RaffleSettings = field(default_factory=RaffleSettings)

    # Randomness
    vrf: VRFConfig = field(default_factory=VRFConfig)

    # Automation
    keeper: KeeperConfig = field(default_factory=KeeperConfig)

    # Storage
    db_path: str = "~/.autoraffle/state.db"
