"""Automation keeper - polls the trigger predicate and performs upkeep."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from autoraffle.engine.raffle import RaffleEngine
from autoraffle.errors import RaffleError
from autoraffle.models.records import UpkeepResult

log = logging.getLogger(__name__)


class AutomationKeeper:
    """Off-chain scheduler for a single raffle.

    Each tick:
    1. Calls check_trigger() (free, read-only)
    2. If ready, calls execute_trigger(), which re-checks before mutating
    3. Reports what happened as an UpkeepResult
    """

    def __init__(self, engine: RaffleEngine, poll_interval: int = 1) -> None:
        self._engine = engine
        self._poll_interval = poll_interval
        self._running = False
        self._task: asyncio.Task | None = None
        self.last_result: UpkeepResult | None = None

    async def tick(self) -> UpkeepResult:
        """Run one check/execute round."""
        now = datetime.now(timezone.utc).isoformat()

        if not await self._engine.check_trigger():
            result = UpkeepResult(performed=False, checked_at=now)
        else:
            try:
                request_id = await self._engine.execute_trigger()
                result = UpkeepResult(performed=True, request_id=request_id, checked_at=now)
                log.info("Upkeep performed: request %d", request_id)
            except RaffleError as exc:
                # Another caller may have changed state between check and execute
                log.warning("Upkeep rejected: %s", exc)
                result = UpkeepResult(performed=False, error=str(exc), checked_at=now)

        self.last_result = result
        return result

    # ── Lifecycle ─────────────────────────────────────────

    async def start(self) -> None:
        self._running = True
        self._task = asyncio.create_task(self.run())
        log.info("Keeper started (poll_interval=%ds)", self._poll_interval)

    async def stop(self) -> None:
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        log.info("Keeper stopped")

    async def run(self) -> None:
        self._running = True
        while self._running:
            try:
                await self.tick()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                log.error("Keeper tick error: %s", exc, exc_info=True)
            await asyncio.sleep(self._poll_interval)
