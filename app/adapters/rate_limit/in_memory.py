"""In-memory fixed-window counter table.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: every read-modify-write and every sweep runs under one lock.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from app.adapters.rate_limit.base import AbstractCounterStore, CounterEntry

logger = logging.getLogger(__name__)


@dataclass
class _WindowState:
    count: int
    reset_at: int


class InMemoryCounterStore(AbstractCounterStore):
    """Counter table keyed by "{identifier}:{route}".

    Important:
        State lives for the lifetime of the process. If the API runs with
        multiple Uvicorn/Gunicorn workers, each worker enforces its own
        independent limits.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._state_by_key: dict[str, _WindowState] = {}
        self._windows_opened = 0
        self._swept = 0

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"InMemoryCounterStore(size={len(self._state_by_key)})"

    def __len__(self) -> int:
        with self._lock:
            return len(self._state_by_key)

    def hit(self, key: str, *, now_ms: int, window_ms: int) -> CounterEntry:
        """Record one request for key under the table lock.

        Raises:
            ValueError: If key is empty or window_ms is not positive.
        """
        if not key:
            raise ValueError("key must be a non-empty string")
        if window_ms < 1:
            raise ValueError("window_ms must be >= 1")

        with self._lock:
            state = self._state_by_key.get(key)
            if state is None or state.reset_at <= now_ms:
                state = _WindowState(count=1, reset_at=now_ms + window_ms)
                self._state_by_key[key] = state
                self._windows_opened += 1
            else:
                state.count += 1
            return CounterEntry(key=key, count=state.count, reset_at=state.reset_at)

    def get(self, key: str) -> CounterEntry | None:
        with self._lock:
            state = self._state_by_key.get(key)
            if state is None:
                return None
            return CounterEntry(key=key, count=state.count, reset_at=state.reset_at)

    def sweep_expired(self, now_ms: int) -> int:
        with self._lock:
            expired_keys = [
                k for k, state in self._state_by_key.items() if state.reset_at <= now_ms
            ]
            for key in expired_keys:
                del self._state_by_key[key]
            self._swept += len(expired_keys)
            remaining = len(self._state_by_key)

        if expired_keys:
            logger.debug(
                "rate_limit.store.swept",
                extra={"removed": len(expired_keys), "size": remaining},
            )
        return len(expired_keys)

    def clear(self) -> None:
        """Drop every entry and reset counters."""

        with self._lock:
            self._state_by_key.clear()
            self._windows_opened = 0
            self._swept = 0

    def stats(self) -> dict[str, int]:
        """Return table metrics without exposing keys."""

        with self._lock:
            return {
                "entries": len(self._state_by_key),
                "windows_opened": self._windows_opened,
                "swept": self._swept,
            }
