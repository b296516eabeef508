"""Configuration loading: network presets + TOML file + environment variables."""

from __future__ import annotations

import os
import tomllib
from pathlib import Path

from autoraffle.models.config import (
    DEFAULT_GAS_LANE,
    DaemonConfig,
    KeeperConfig,
    RaffleSettings,
    VRFConfig,
)

# Per-network raffle defaults. Every preset is a development network, where the
# daemon runs the in-process ledger and coordinator.
NETWORK_CONFIG: dict[str, dict] = {
    "localhost": {
        "entrance_fee": 1_000_000,  # 0.1 XLM
        "interval": 30,
        "gas_lane": DEFAULT_GAS_LANE,
        "subscription_id": 0,
        "callback_gas_limit": 500_000,
    },
}

DEVELOPMENT_NETWORKS = ("localhost",)


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "AUTORAFFLE_",
) -> DaemonConfig:
    """Load daemon configuration from network presets, TOML file and env vars.

    Priority (highest wins):
        1. Environment variables (AUTORAFFLE_SECRET, etc.)
        2. TOML config file
        3. Network preset from NETWORK_CONFIG
        4. Defaults from DaemonConfig
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    cfg = DaemonConfig()

    # ── Daemon section ─────────────────────────────────────
    daemon = raw.get("daemon", {})
    if v := daemon.get("poll_interval"):
        cfg.poll_interval = int(v)
    if v := daemon.get("error_backoff"):
        cfg.error_backoff = int(v)
    if v := daemon.get("log_level"):
        cfg.log_level = str(v)
    if v := daemon.get("network"):
        cfg.network = str(v)
    if v := daemon.get("raffle_secret"):
        cfg.raffle_secret = str(v)

    if net := os.environ.get(f"{env_prefix}NETWORK"):
        cfg.network = net
    if cfg.network not in NETWORK_CONFIG:
        raise ValueError(
            f"Unknown network {cfg.network!r}; expected one of {sorted(NETWORK_CONFIG)}"
        )

    # ── Raffle section ─────────────────────────────────────
    preset = dict(NETWORK_CONFIG[cfg.network])
    preset.update(raw.get("raffle", {}))
    cfg.raffle = RaffleSettings(
        entrance_fee=int(preset["entrance_fee"]),
        interval=int(preset["interval"]),
        gas_lane=str(preset["gas_lane"]),
        subscription_id=int(preset["subscription_id"]),
        callback_gas_limit=int(preset["callback_gas_limit"]),
    )

    # ── VRF section ────────────────────────────────────────
    vrf_raw = raw.get("vrf", {})
    defaults = VRFConfig()
    cfg.vrf = VRFConfig(
        coordinator=vrf_raw.get("coordinator", defaults.coordinator),
        base_fee=int(vrf_raw.get("base_fee", defaults.base_fee)),
        gas_price=int(vrf_raw.get("gas_price", defaults.gas_price)),
        fund_amount=int(vrf_raw.get("fund_amount", defaults.fund_amount)),
        max_num_words=int(vrf_raw.get("max_num_words", defaults.max_num_words)),
    )

    # ── Keeper section ─────────────────────────────────────
    keeper_raw = raw.get("keeper", {})
    cfg.keeper = KeeperConfig(
        enabled=keeper_raw.get("enabled", True),
        poll_interval=int(keeper_raw.get("poll_interval", 1)),
    )

    # ── Storage section ────────────────────────────────────
    storage = raw.get("storage", {})
    if v := storage.get("db_path"):
        cfg.db_path = str(v)

    # ── Environment variable overrides (highest priority) ──
    if secret := os.environ.get(f"{env_prefix}SECRET"):
        cfg.raffle_secret = secret
    if fee := os.environ.get(f"{env_prefix}ENTRANCE_FEE"):
        cfg.raffle.entrance_fee = int(fee)
    if interval := os.environ.get(f"{env_prefix}INTERVAL"):
        cfg.raffle.interval = int(interval)
    if db := os.environ.get(f"{env_prefix}DB_PATH"):
        cfg.db_path = db

    # Expand ~ in paths
    if cfg.db_path != ":memory:":
        cfg.db_path = str(Path(cfg.db_path).expanduser())

    return cfg
