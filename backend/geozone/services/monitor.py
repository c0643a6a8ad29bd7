"""Background pump that fires due dwell timers."""

import asyncio
import contextlib
import logging

from geozone.config import DWELL_CHECK_INTERVAL
from geozone.services.zone_manager import ZoneManager

logger = logging.getLogger(__name__)


class ZoneMonitor:
    """Drives ``ZoneManager.run_due_timers()`` from an asyncio task."""

    def __init__(self, manager: ZoneManager, interval: float = DWELL_CHECK_INTERVAL):
        if interval <= 0:
            raise ValueError("Monitor interval must be positive")
        self.manager = manager
        self.interval = interval
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start monitoring on the running event loop."""
        if self.is_running:
            logger.warning("Monitoring already active")
            return

        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(f"Zone monitoring started (interval={self.interval}s)")

    async def stop(self) -> None:
        """Stop monitoring and drop all pending dwell timers."""
        if not self.is_running:
            return

        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

        self.manager.cancel_all_dwell_timers()
        logger.info("Zone monitoring stopped")

    async def _run(self) -> None:
        while True:
            try:
                self.manager.run_due_timers()
            except Exception:
                logger.exception("Dwell timer pass failed")
            await asyncio.sleep(self.interval)
