"""Tests for the bounded TTL response cache."""

from services.cache import ResponseCache, make_key


def test_get_returns_stored_value():
    cache = ResponseCache(ttl_seconds=60, max_entries=10)
    cache.set("k", {"a": 1})
    assert cache.get("k") == {"a": 1}
    assert cache.get("missing") is None


def test_entry_expires_after_ttl(timer):
    cache = ResponseCache(ttl_seconds=60, max_entries=10, timer=timer)
    cache.set("k", "v")

    timer.advance(59)
    assert cache.get("k") == "v"

    timer.advance(1)
    assert cache.get("k") is None
    assert len(cache) == 0


def test_evicts_least_recently_used_when_full():
    cache = ResponseCache(ttl_seconds=60, max_entries=2)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.get("a")  # touch a so b is the eviction candidate
    cache.set("c", 3)

    assert len(cache) == 2
    assert cache.get("a") == 1
    assert cache.get("b") is None
    assert cache.get("c") == 3


def test_clear_reports_flushed_entries(timer):
    cache = ResponseCache(ttl_seconds=60, max_entries=10, timer=timer)
    cache.set("old", 1)
    timer.advance(61)
    cache.set("a", 1)
    cache.set("b", 2)

    assert cache.clear() == 2
    assert len(cache) == 0
    assert cache.get("a") is None


def test_make_key_normalizes_inputs():
    assert make_key("/api/geocode", "  London ") == make_key("/api/geocode", "london")
    assert make_key("/api/weather", 51.5, -0.12, "Europe/London") == "/api/weather:51.5:-0.12:europe/london"
    assert make_key("/api/weather", 51.5, -0.12, "UTC") != make_key("/api/geocode", 51.5, -0.12, "UTC")
