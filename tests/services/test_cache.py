"""Unit tests for the TTL cache."""
from homewise.services.cache import CacheEntry, TTLCache, get_shared_cache


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_get_returns_stored_value():
    cache = TTLCache()
    cache.set("fred:MORTGAGE30US", {"value": 6.5}, ttl_seconds=60)

    assert cache.get("fred:MORTGAGE30US") == {"value": 6.5}
    assert "fred:MORTGAGE30US" in cache


def test_missing_key_is_none():
    assert TTLCache().get("nope") is None


def test_entry_expires_after_ttl():
    clock = FakeClock()
    cache = TTLCache(clock=clock)
    cache.set("k", "v", ttl_seconds=300)

    clock.now += 299
    assert cache.get("k") == "v"

    clock.now += 1
    assert cache.get("k") is None
    # Expired entries are dropped on read
    assert len(cache) == 0


def test_set_overwrites_and_restarts_ttl():
    clock = FakeClock()
    cache = TTLCache(clock=clock)
    cache.set("k", "old", ttl_seconds=10)
    clock.now += 8
    cache.set("k", "new", ttl_seconds=10)
    clock.now += 8

    assert cache.get("k") == "new"


def test_invalidate_and_clear():
    cache = TTLCache()
    cache.set("a", 1, ttl_seconds=60)
    cache.set("b", 2, ttl_seconds=60)

    cache.invalidate("a")
    cache.invalidate("missing")
    assert cache.get("a") is None
    assert cache.get("b") == 2

    cache.clear()
    assert len(cache) == 0


def test_cache_entry_expiry():
    entry = CacheEntry(value="x", stored_at=100.0, ttl_seconds=50)
    assert entry.expires_at == 150.0
    assert not entry.is_expired(149.9)
    assert entry.is_expired(150.0)


def test_shared_cache_is_a_singleton():
    assert get_shared_cache() is get_shared_cache()
