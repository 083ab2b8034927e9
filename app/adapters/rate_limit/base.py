"""Counter store interface.

The limiter depends on this abstraction, not on the concrete table, so the
store can be injected per application (and per test).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class CounterEntry:
    """Snapshot of one fixed window for a key.

    Attributes:
        key: Composite "{identifier}:{route}" key.
        count: Requests observed in the current window (starts at 1).
        reset_at: Epoch milliseconds at which the window ends.
    """

    key: str
    count: int
    reset_at: int

    def is_expired(self, now_ms: int) -> bool:
        return self.reset_at <= now_ms


class AbstractCounterStore(ABC):
    """Interface for fixed-window counter tables."""

    @abstractmethod
    def hit(self, key: str, *, now_ms: int, window_ms: int) -> CounterEntry:
        """Record one request for key and return the resulting window.

        Atomically: when no entry exists or the existing one has expired, a new
        window is opened with ``count=1`` and ``reset_at=now_ms + window_ms``;
        otherwise ``count`` is incremented.

        Args:
            key: Limiter key.
            now_ms: Current time in epoch milliseconds.
            window_ms: Window length used when a new window is opened.

        Returns:
            Snapshot of the entry after the update.
        """
        raise NotImplementedError

    @abstractmethod
    def get(self, key: str) -> CounterEntry | None:
        """Return a snapshot of the entry for key, if any (no mutation)."""
        raise NotImplementedError

    @abstractmethod
    def sweep_expired(self, now_ms: int) -> int:
        """Remove entries whose window ended at or before now_ms.

        Returns:
            Number of entries removed.
        """
        raise NotImplementedError

    @abstractmethod
    def clear(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def __len__(self) -> int:
        raise NotImplementedError
