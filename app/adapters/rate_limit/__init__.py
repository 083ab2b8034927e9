"""Counter storage for admission control.

The limiter talks to an abstract counter store so the in-process table can be
swapped (or isolated per test) without touching the HTTP layer.
"""

from app.adapters.rate_limit.base import AbstractCounterStore, CounterEntry
from app.adapters.rate_limit.in_memory import InMemoryCounterStore

__all__ = ["AbstractCounterStore", "CounterEntry", "InMemoryCounterStore"]
