"""Unit tests for the in-memory counter store."""

import threading

import pytest

from app.adapters.rate_limit.in_memory import InMemoryCounterStore


def test_first_hit_opens_window(store: InMemoryCounterStore) -> None:
    entry = store.hit("1.2.3.4:/x", now_ms=1_000, window_ms=500)

    assert entry.count == 1
    assert entry.reset_at == 1_500
    assert len(store) == 1


def test_hits_in_same_window_increment_without_moving_reset(store: InMemoryCounterStore) -> None:
    store.hit("k", now_ms=1_000, window_ms=500)
    store.hit("k", now_ms=1_200, window_ms=500)
    entry = store.hit("k", now_ms=1_499, window_ms=500)

    assert entry.count == 3
    assert entry.reset_at == 1_500


def test_hit_at_reset_time_opens_new_window(store: InMemoryCounterStore) -> None:
    store.hit("k", now_ms=1_000, window_ms=500)
    store.hit("k", now_ms=1_100, window_ms=500)

    entry = store.hit("k", now_ms=1_500, window_ms=500)

    assert entry.count == 1
    assert entry.reset_at == 2_000
    assert len(store) == 1


def test_keys_are_isolated(store: InMemoryCounterStore) -> None:
    store.hit("a:/x", now_ms=0, window_ms=100)
    store.hit("a:/x", now_ms=0, window_ms=100)

    assert store.hit("b:/x", now_ms=0, window_ms=100).count == 1
    assert store.hit("a:/y", now_ms=0, window_ms=100).count == 1


def test_get_returns_snapshot_without_mutation(store: InMemoryCounterStore) -> None:
    assert store.get("k") is None

    store.hit("k", now_ms=0, window_ms=100)
    snapshot = store.get("k")

    assert snapshot is not None
    assert snapshot.count == 1
    assert store.get("k").count == 1


def test_sweep_removes_only_expired_entries(store: InMemoryCounterStore) -> None:
    store.hit("old", now_ms=0, window_ms=100)
    store.hit("edge", now_ms=100, window_ms=100)
    store.hit("live", now_ms=150, window_ms=100)

    removed = store.sweep_expired(200)

    assert removed == 2
    assert store.get("old") is None
    assert store.get("edge") is None
    assert store.get("live") is not None
    assert store.stats()["swept"] == 2


def test_clear_resets_state(store: InMemoryCounterStore) -> None:
    store.hit("a", now_ms=0, window_ms=100)
    store.hit("b", now_ms=0, window_ms=100)

    store.clear()

    assert len(store) == 0
    assert store.stats() == {"entries": 0, "windows_opened": 0, "swept": 0}


@pytest.mark.parametrize(
    "key, window_ms",
    [
        ("", 100),
        ("k", 0),
    ],
)
def test_invalid_hit_args(store: InMemoryCounterStore, key: str, window_ms: int) -> None:
    with pytest.raises(ValueError):
        store.hit(key, now_ms=0, window_ms=window_ms)


def test_concurrent_hits_are_not_lost(store: InMemoryCounterStore) -> None:
    threads_count = 20
    hits_per_thread = 50

    def _worker() -> None:
        for _ in range(hits_per_thread):
            store.hit("shared", now_ms=0, window_ms=60_000)

    threads = [threading.Thread(target=_worker) for _ in range(threads_count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert store.get("shared").count == threads_count * hits_per_thread
