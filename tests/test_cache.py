"""Tests for the in-memory TTL cache."""

from macro_planner.services.cache import InMemoryCache


def test_entries_expire() -> None:
    cache = InMemoryCache()

    cache.set("fresh", [1], ttl_seconds=60)
    cache.set("stale", [2], ttl_seconds=0)

    assert cache.get("fresh") == [1]
    assert cache.get("stale") is None
