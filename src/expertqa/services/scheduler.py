"""Periodic trigger for the maintenance sweep."""

import asyncio

from loguru import logger

from expertqa.services.sweeper import MaintenanceSweeper, SweepReport


class SweepScheduler:
    """Run the sweep on a fixed interval inside the application's event loop.

    Stopping waits for an in-flight sweep to finish instead of cancelling
    it, so a refund that was already sent is always recorded.
    """

    def __init__(self, sweeper: MaintenanceSweeper, interval_seconds: float) -> None:
        self.sweeper = sweeper
        self.interval_seconds = interval_seconds
        self._stopping = asyncio.Event()
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._stopping.clear()
        self._task = asyncio.create_task(self._run(), name="maintenance-sweep")
        logger.info("Sweep scheduler started", interval_seconds=self.interval_seconds)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._stopping.set()
        await self._task
        self._task = None
        logger.info("Sweep scheduler stopped")

    async def run_once(self) -> SweepReport | None:
        """Run one sweep; errors are logged so the loop keeps going."""
        try:
            return await self.sweeper.sweep()
        except Exception as exc:
            logger.error(
                "Scheduled sweep failed",
                error=f"{type(exc).__name__}: {exc}",
            )
            return None

    async def _run(self) -> None:
        while not self._stopping.is_set():
            await self.run_once()
            try:
                await asyncio.wait_for(
                    self._stopping.wait(), timeout=self.interval_seconds
                )
            except TimeoutError:
                continue
