"""Main daemon loop - wires the engine to its local collaborators."""

from __future__ import annotations

import asyncio
import logging
import signal
import time
from typing import Callable

from stellar_sdk import Keypair

from autoraffle.config import DEVELOPMENT_NETWORKS
from autoraffle.engine.event_log import EventLog
from autoraffle.engine.raffle import RaffleEngine
from autoraffle.errors import (
    CoordinatorError,
    InvalidSubscription,
    LedgerError,
    PayoutTransferFailed,
    RaffleError,
)
from autoraffle.keeper.automation import AutomationKeeper
from autoraffle.ledger.memory import InMemoryLedger
from autoraffle.models.config import DaemonConfig
from autoraffle.models.events import Entered, RandomnessRequested, WinnerPicked
from autoraffle.storage.sqlite import SQLiteStateStore
from autoraffle.vrf.coordinator import LocalVRFCoordinator

log = logging.getLogger(__name__)


class RaffleDaemon:
    """Runs one raffle end to end on a local network.

    The keeper polls on its own task every keeper.poll_interval seconds.
    Each main loop iteration is one block:
    1. Mine a block on the coordinator
    2. Submit entries queued from the CLI
    3. Fulfil randomness requests that reached their confirmation depth
    4. Persist notifications and checkpoint all state
    """

    def __init__(self, cfg: DaemonConfig, clock: Callable[[], float] = time.time) -> None:
        if cfg.network not in DEVELOPMENT_NETWORKS:
            raise ValueError(
                f"Network {cfg.network!r} is not a development network"
                f" (expected one of {', '.join(DEVELOPMENT_NETWORKS)})"
            )
        self._cfg = cfg
        self._clock = clock
        self._running = False

        keypair = Keypair.from_secret(cfg.raffle_secret)
        self.address = keypair.public_key

        self.store = SQLiteStateStore(cfg.db_path)
        self.ledger = InMemoryLedger()
        self.coordinator = LocalVRFCoordinator(
            base_fee=cfg.vrf.base_fee,
            gas_price=cfg.vrf.gas_price,
            max_num_words=cfg.vrf.max_num_words,
        )
        self.events = EventLog()
        self.engine: RaffleEngine = None  # type: ignore[assignment]  # set in setup()
        self.keeper: AutomationKeeper = None  # type: ignore[assignment]

    async def setup(self) -> None:
        """Open storage, restore the last checkpoint and build the engine."""
        await self.store.initialize()

        checkpoint = None
        restored = await self.store.load_checkpoint()
        if restored:
            checkpoint, balances, coordinator_state = restored
            self.ledger.load(balances)
            self.coordinator.load_state(coordinator_state)
            log.info(
                "Restored checkpoint: state=%s players=%d cycle=%d",
                checkpoint.state.value, len(checkpoint.players), checkpoint.cycle,
            )

        sub_id = await self._ensure_subscription()
        raffle_cfg = self._cfg.raffle.to_raffle_config(
            vrf_coordinator=self._cfg.vrf.coordinator, subscription_id=sub_id,
        )
        self.engine = RaffleEngine(
            raffle_cfg,
            self.address,
            self.ledger,
            self.coordinator,
            publisher=self.events,
            clock=self._clock,
            checkpoint=checkpoint,
        )
        await self.coordinator.add_consumer(sub_id, self.engine)
        self.keeper = AutomationKeeper(self.engine, self._cfg.keeper.poll_interval)

    async def _ensure_subscription(self) -> int:
        """Reuse the configured or owned subscription, else create and fund one."""
        configured = self._cfg.raffle.subscription_id
        if configured:
            try:
                await self.coordinator.get_subscription(configured)
                return configured
            except InvalidSubscription:
                log.warning("Subscription %d not found, creating a new one", configured)

        for sub in await self.coordinator.list_subscriptions():
            if sub.owner == self.address:
                return sub.sub_id

        sub_id = await self.coordinator.create_subscription(owner=self.address)
        await self.coordinator.fund_subscription(sub_id, self._cfg.vrf.fund_amount)
        return sub_id

    async def start(self) -> None:
        """Initialize components and run the main loop."""
        log.info("Starting autoraffle daemon")
        log.info("  Network: %s", self._cfg.network)
        log.info("  Address: %s", self.address)
        log.info("  Entrance fee: %d stroops", self._cfg.raffle.entrance_fee)
        log.info("  Interval: %ds", self._cfg.raffle.interval)

        await self.setup()
        self._running = True
        await self.store.log_activity("daemon_started", "Daemon started")
        if self._cfg.keeper.enabled:
            await self.keeper.start()

        try:
            await self._main_loop()
        finally:
            await self.keeper.stop()
            await self.checkpoint()
            await self.store.log_activity("daemon_stopped", "Daemon stopped")
            await self.store.close()
            log.info("Daemon shut down cleanly")

    async def stop(self) -> None:
        """Signal the daemon to stop gracefully."""
        log.info("Stop requested")
        self._running = False

    async def _main_loop(self) -> None:
        while self._running:
            try:
                await self.run_once()
                await asyncio.sleep(self._cfg.poll_interval)

            except asyncio.CancelledError:
                log.info("Main loop cancelled")
                break
            except Exception as exc:
                log.error("Main loop error: %s", exc, exc_info=True)
                await self.store.log_activity("error", str(exc))
                await asyncio.sleep(self._cfg.error_backoff)

    async def run_once(self) -> None:
        """One block worth of work."""
        self.coordinator.mine(1)

        await self._process_entry_queue()
        await self._fulfil_ready_requests()
        await self._flush_events()
        await self.checkpoint()

    async def _process_entry_queue(self) -> None:
        """Fund and submit entries queued by `autoraffle enter`."""
        for entry in await self.store.get_queued_entries():
            await self.ledger.fund(entry.participant, entry.amount)
            try:
                await self.engine.enter(entry.amount, entry.participant)
            except (RaffleError, LedgerError) as exc:
                log.warning("Entry %d rejected: %s", entry.id, exc)
                # enter() moves nothing when it fails, so the mint is returned whole
                await self.ledger.burn(entry.participant, entry.amount)
                await self.store.update_entry_status(entry.id, "rejected", reject_reason=str(exc))
                await self.store.log_activity(
                    "entry_rejected", str(exc), participant=entry.participant, amount=entry.amount,
                )
                continue
            await self.store.update_entry_status(entry.id, "entered")

    async def _fulfil_ready_requests(self) -> None:
        for request in self.coordinator.ready_requests():
            try:
                result = await self.coordinator.fulfill_random_words(request.request_id)
            except PayoutTransferFailed as exc:
                # Engine rolled back; the request stays pending and is retried next block
                log.error("Payout failed for request %d: %s", request.request_id, exc)
                await self.store.log_activity(
                    "payout_failed", str(exc), participant=exc.winner, amount=exc.amount,
                )
            except (RaffleError, CoordinatorError) as exc:
                log.error("Fulfillment of request %d failed: %s", request.request_id, exc)
                await self.store.log_activity("fulfillment_failed", str(exc))
            else:
                log.debug("Request %d fulfilled, charged %d", result.request_id, result.payment)

    async def _flush_events(self) -> None:
        events = self.events.drain()
        if not events:
            return
        await self.store.save_events(events)
        for event in events:
            if isinstance(event, Entered):
                await self.store.log_activity(
                    "entered",
                    f"{event.participant[:12]}... entered",
                    participant=event.participant,
                    amount=event.amount,
                )
            elif isinstance(event, RandomnessRequested):
                await self.store.log_activity(
                    "randomness_requested",
                    f"Request {event.request_id} for {event.player_count} players",
                )
            elif isinstance(event, WinnerPicked):
                await self.store.log_activity(
                    "winner_picked",
                    f"Cycle {event.cycle}: {event.winner[:12]}... won {event.amount} stroops",
                    participant=event.winner,
                    amount=event.amount,
                )

    async def checkpoint(self) -> None:
        if self.engine is None:
            return
        await self.store.save_checkpoint(
            self.engine.checkpoint(),
            self.ledger.balances(),
            self.coordinator.export_state(),
        )


async def run_daemon(cfg: DaemonConfig) -> None:
    """Entry point for running the daemon."""
    daemon = RaffleDaemon(cfg)

    loop = asyncio.get_running_loop()

    def _signal_handler():
        asyncio.ensure_future(daemon.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _signal_handler)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass

    await daemon.start()
