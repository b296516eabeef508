"""Data models for the autoraffle engine and daemon."""

from autoraffle.models.events import Entered, RandomnessRequested, WinnerPicked
from autoraffle.models.state import RaffleCheckpoint, RaffleState
from autoraffle.models.records import (
    ActivityRecord,
    EntryRequest,
    EventRecord,
    FulfillmentResult,
    RandomnessRequest,
    Subscription,
    TransferResult,
    UpkeepResult,
    WinnerRecord,
)
from autoraffle.models.config import (
    DaemonConfig,
    KeeperConfig,
    RaffleConfig,
    RaffleSettings,
    VRFConfig,
)
from autoraffle.models.snapshots import RaffleSnapshot

__all__ = [
    "Entered", "RandomnessRequested", "WinnerPicked",
    "RaffleCheckpoint", "RaffleState",
    "ActivityRecord", "EntryRequest", "EventRecord", "FulfillmentResult",
    "RandomnessRequest", "Subscription", "TransferResult", "UpkeepResult",
    "WinnerRecord",
    "DaemonConfig", "KeeperConfig", "RaffleConfig", "RaffleSettings", "VRFConfig",
    "RaffleSnapshot",
]
