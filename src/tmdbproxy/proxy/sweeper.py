"""Periodic background eviction of the response cache."""

from __future__ import annotations

import asyncio
import contextlib

from tmdbproxy.common.logging import get_logger
from tmdbproxy.proxy.cache import CacheStore

logger = get_logger(__name__)


class CacheSweeper:
    """Runs CacheStore.sweep() on a fixed interval as an asyncio task."""

    def __init__(self, store: CacheStore, interval: float = 300.0):
        """
        Initialize the sweeper.

        Args:
            store: Cache to sweep
            interval: Seconds between sweeps
        """
        self._store = store
        self._interval = interval
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def run_once(self) -> int:
        """Sweep immediately and return the number of removed entries."""
        removed = self._store.sweep()
        if removed:
            logger.info("Cache sweep removed entries", removed=removed, remaining=len(self._store))
        return removed

    def start(self) -> None:
        """Start the background loop; no-op if already running."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="tmdbproxy-cache-sweeper")
        logger.debug("Cache sweeper started", interval=self._interval)

    async def stop(self) -> None:
        """Cancel the background loop and wait for it to finish."""
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.debug("Cache sweeper stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                self.run_once()
            except Exception as e:
                logger.error("Cache sweep failed", error=str(e))
