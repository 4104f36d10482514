"""Tests for the TTL cache with stale fallback"""

from shared.cache import MISSING, StaleCache


class Timer:
    def __init__(self):
        self.t = 0.0

    def __call__(self):
        return self.t


def test_get_missing():
    assert StaleCache().get("nope") is MISSING


def test_cached_none_is_not_missing():
    cache = StaleCache()
    cache.set("k", None)
    assert cache.get("k") is None


def test_expired_value_survives_in_stale_store():
    timer = Timer()
    cache = StaleCache(maxsize=8, ttl=10, timer=timer)
    cache.set("k", "v")

    timer.t = 11
    assert cache.get("k") is MISSING
    assert cache.get_stale("k") == "v"


def test_invalidate_keeps_stale_forget_drops_both():
    cache = StaleCache()
    cache.set("a", 1)
    cache.set("b", 2)

    cache.invalidate("a")
    cache.forget("b")

    assert cache.get("a") is MISSING
    assert cache.get_stale("a") == 1
    assert cache.get_stale("b") is MISSING


def test_stale_store_is_bounded():
    cache = StaleCache(maxsize=2)
    for key in ("a", "b", "c"):
        cache.set(key, key)
    assert cache.stale_size == 2
    assert cache.get_stale("a") is MISSING


def test_clear_keeps_stale():
    cache = StaleCache()
    cache.set("a", 1)
    cache.clear()
    assert cache.size == 0
    assert cache.get_stale("a") == 1
