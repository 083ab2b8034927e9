"""Periodic removal of expired counter windows.

Purely a memory bound: the limiter already treats expired entries as absent,
so sweeping only keeps the table from growing with every client ever seen.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from typing import Callable

from app.adapters.rate_limit.base import AbstractCounterStore

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL_SECONDS = 600.0


class CounterSweeper:
    """Owns an asyncio task that sweeps a counter store on a fixed period."""

    def __init__(
        self,
        store: AbstractCounterStore,
        *,
        interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")

        self._store = store
        self._interval = interval_seconds
        self._clock = clock
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sweep_once(self) -> int:
        """Remove every expired entry once.

        Returns:
            Number of entries removed.
        """
        now_ms = int(self._clock() * 1000)
        removed = self._store.sweep_expired(now_ms)
        logger.info(
            "rate_limit.sweep",
            extra={"removed": removed, "size": len(self._store)},
        )
        return removed

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                self.sweep_once()
            except Exception:
                logger.exception("rate_limit.sweep_failed")

    def start(self) -> None:
        """Schedule the sweep loop on the running event loop (idempotent)."""

        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info("rate_limit.sweeper_started", extra={"interval_s": self._interval})

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish."""

        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("rate_limit.sweeper_stopped")
