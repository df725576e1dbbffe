import threading
import time
from unittest.mock import MagicMock

from profile_cards.cache import DOCUMENTS_TIER, STATS_TIER, ExpiringCache, TieredCache


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now
    def __call__(self):
        return self.now


def test_hit_within_ttl_computes_once():
    clock = FakeClock()
    cache = ExpiringCache(ttl=60, clock=clock)
    compute = MagicMock(return_value="payload")
    assert cache.get_or_compute("octo", compute) == "payload"
    clock.now += 59
    assert cache.get_or_compute("octo", compute) == "payload"
    assert compute.call_count == 1
    assert (cache.hits, cache.misses) == (1, 1)


def test_expired_entry_recomputes_exactly_once():
    clock = FakeClock()
    cache = ExpiringCache(ttl=60, clock=clock)
    compute = MagicMock(side_effect=["old", "new", "newer"])
    cache.get_or_compute("octo", compute)
    clock.now += 60
    assert cache.get_or_compute("octo", compute) == "new"
    assert cache.get_or_compute("octo", compute) == "new"
    assert compute.call_count == 2


def test_bypass_forces_miss_and_overwrites():
    clock = FakeClock()
    cache = ExpiringCache(ttl=60, clock=clock)
    cache.get_or_compute("octo", lambda: "old")
    assert cache.get_or_compute("octo", lambda: "fresh", bypass=True) == "fresh"
    assert cache.get_or_compute("octo", lambda: "unused") == "fresh"


def test_failed_compute_stores_nothing():
    cache = ExpiringCache(ttl=60, clock=FakeClock())
    try:
        cache.get_or_compute("octo", MagicMock(side_effect=RuntimeError("down")))
    except RuntimeError:
        pass
    assert "octo" not in cache
    assert len(cache) == 0


def test_lru_bound_evicts_least_recently_used():
    cache = ExpiringCache(ttl=60, max_entries=2, clock=FakeClock())
    cache.put("a", 1)
    cache.put("b", 2)
    cache.get("a")
    cache.put("c", 3)
    assert "a" in cache
    assert "b" not in cache
    assert "c" in cache


def test_tiers_are_independent():
    clock = FakeClock()
    tiers = TieredCache(stats_ttl=100, document_ttl=10, clock=clock)
    tiers.get_or_compute(STATS_TIER, "octo", lambda: "stats")
    tiers.get_or_compute(DOCUMENTS_TIER, "octo", lambda: "doc")
    clock.now += 50
    assert tiers.stats.get("octo").payload == "stats"
    assert tiers.documents.get("octo") is None


def test_concurrent_callers_share_one_computation():
    cache = ExpiringCache(ttl=60)
    calls = []
    gate = threading.Event()

    def compute():
        calls.append(1)
        gate.wait(2)
        return "value"

    results = []
    threads = [threading.Thread(target=lambda: results.append(cache.get_or_compute("k", compute))) for _ in range(5)]
    for t in threads:
        t.start()
    time.sleep(0.1)
    gate.set()
    for t in threads:
        t.join()
    assert results == ["value"] * 5
    assert len(calls) == 1


def test_key_locks_do_not_outlive_their_computation():
    cache = ExpiringCache(ttl=60, max_entries=2, clock=FakeClock())
    for i in range(1000):
        cache.get_or_compute(f"user{i}", lambda: "payload")
    assert len(cache) == 2
    assert cache._key_locks == {}


def test_key_lock_released_when_compute_fails():
    cache = ExpiringCache(ttl=60)
    try:
        cache.get_or_compute("octo", MagicMock(side_effect=RuntimeError("boom")))
    except RuntimeError:
        pass
    assert cache._key_locks == {}
    assert cache.get_or_compute("octo", lambda: "payload") == "payload"
