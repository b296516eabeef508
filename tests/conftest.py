"""Shared fixtures for autoraffle tests."""

from __future__ import annotations

import pytest
from pytest_metadata.plugin import metadata_key

from autoraffle.daemon import RaffleDaemon
from autoraffle.engine.event_log import EventLog
from autoraffle.engine.raffle import RaffleEngine
from autoraffle.ledger.memory import InMemoryLedger
from autoraffle.models.config import DaemonConfig, KeeperConfig, RaffleSettings, VRFConfig
from autoraffle.storage.sqlite import SQLiteStateStore
from autoraffle.vrf.coordinator import LocalVRFCoordinator

from tests.factories import make_players, make_raffle_config
from tests.mocks import FakeClock, MockOracle

TEST_SECRET = "SBWVJTD3F5ETMVWCNI7MM4HUAPUSCUXXMUEJZJTPRWRJGXW2BF4SVQTK"
TEST_PUBLIC = "GDNAG4KFFVF5HCSGRWZIXZNL2SR2KBGJSHW2A6FI6DZI62XF6IBLO4GD"

ENTRANCE_FEE = 1_000_000  # 0.1 XLM
INTERVAL = 30


# ── Report metadata ──────────────────────────────────────────────


def pytest_configure(config):
    """Add raffle parameters to the HTML report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["Raffle Account"] = TEST_PUBLIC
    meta["Entrance Fee"] = f"{ENTRANCE_FEE} stroops"
    meta["Interval"] = f"{INTERVAL}s"


def pytest_html_results_summary(prefix, summary, postfix):
    """Show the raffle account under test in the report summary."""
    prefix.append(
        '<div style="margin:8px 0;padding:10px;background:#f8f9fa;border:1px solid #dee2e6;'
        'border-radius:4px;font-family:monospace;font-size:13px;">'
        f"<strong>Raffle account</strong><br/>{TEST_PUBLIC}"
        "</div>"
    )


def make_test_config(**overrides) -> DaemonConfig:
    """Build a DaemonConfig suitable for testing."""
    defaults = dict(
        poll_interval=0,
        error_backoff=0,
        network="localhost",
        raffle_secret=TEST_SECRET,
        raffle=RaffleSettings(entrance_fee=ENTRANCE_FEE, interval=INTERVAL),
        vrf=VRFConfig(),
        keeper=KeeperConfig(enabled=True, poll_interval=0),
        db_path=":memory:",
    )
    defaults.update(overrides)
    return DaemonConfig(**defaults)


async def enter_all(engine: RaffleEngine, ledger: InMemoryLedger, players: list[str],
                    amount: int | None = None) -> int:
    """Fund each player and enter them once. Returns the pool total."""
    payment = amount if amount is not None else engine.entrance_fee
    for player in players:
        await ledger.fund(player, payment)
        await engine.enter(payment, player)
    return payment * len(players)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ledger():
    return InMemoryLedger()


@pytest.fixture
def oracle():
    return MockOracle()


@pytest.fixture
def event_log():
    return EventLog()


@pytest.fixture
def raffle_config():
    return make_raffle_config(entrance_fee=ENTRANCE_FEE, interval=INTERVAL)


@pytest.fixture
def engine(raffle_config, ledger, oracle, event_log, clock):
    """Fresh OPEN engine backed by an in-memory ledger and a mock oracle."""
    return RaffleEngine(
        raffle_config,
        TEST_PUBLIC,
        ledger,
        oracle,
        publisher=event_log,
        clock=clock,
    )


@pytest.fixture
def players():
    return make_players(3)


@pytest.fixture
async def armed_engine(engine, ledger, players, clock):
    """Engine with three entries and an outstanding randomness request."""
    await enter_all(engine, ledger, players)
    clock.advance(INTERVAL + 1)
    await engine.execute_trigger()
    return engine


@pytest.fixture
def coordinator():
    return LocalVRFCoordinator()


@pytest.fixture
async def store():
    """Initialized in-memory SQLiteStateStore."""
    s = SQLiteStateStore(":memory:")
    await s.initialize()
    yield s
    await s.close()


@pytest.fixture
async def daemon(clock):
    """RaffleDaemon set up against an in-memory store and a fake clock."""
    d = RaffleDaemon(make_test_config(), clock=clock)
    await d.setup()
    yield d
    await d.store.close()
