"""
Tests for the cache module.
"""

import threading
import time

import pytest

from gcporg.cache import ConnectionCache


def test_get_and_set():
    cache = ConnectionCache()
    assert cache.get("Organizations") is None
    assert cache.get("Organizations", []) == []
    assert "Organizations" not in cache

    cache.set("Organizations", ["1", "2"])
    assert "Organizations" in cache
    assert cache.get("Organizations") == ["1", "2"]


def test_get_or_compute_computes_once():
    cache = ConnectionCache()
    calls = []

    def compute():
        calls.append(1)
        return ["1"]

    assert cache.get_or_compute("Organizations", compute) == ["1"]
    assert cache.get_or_compute("Organizations", compute) == ["1"]
    assert len(calls) == 1


def test_get_or_compute_caches_falsy_values():
    """An empty list is a valid result and must not trigger recomputation."""
    cache = ConnectionCache()
    calls = []

    def compute():
        calls.append(1)
        return []

    cache.get_or_compute("Organizations", compute)
    cache.get_or_compute("Organizations", compute)
    assert len(calls) == 1


def test_get_or_compute_failure_stores_nothing():
    cache = ConnectionCache()

    def failing():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        cache.get_or_compute("Organizations", failing)

    assert "Organizations" not in cache
    assert cache.get_or_compute("Organizations", lambda: ["1"]) == ["1"]


def test_get_or_compute_single_flight():
    """Concurrent first access computes once and every caller sees the value."""
    cache = ConnectionCache()
    calls = []
    barrier = threading.Barrier(8)
    results = []

    def compute():
        calls.append(1)
        time.sleep(0.05)
        return ["1", "2"]

    def worker():
        barrier.wait()
        results.append(cache.get_or_compute("Organizations", compute))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(calls) == 1
    assert results == [["1", "2"]] * 8


def test_clear():
    cache = ConnectionCache()
    cache.set("a", 1)
    cache.clear()
    assert "a" not in cache
