"""Tests for cache/ttl_cache.py"""

from datetime import datetime, timedelta

import pytest
import pytz

from meeting_orchestrator.cache.ttl_cache import TTLCache


class FakeClock:
    def __init__(self):
        self.now = datetime(2024, 1, 15, 9, 0, tzinfo=pytz.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return TTLCache(default_ttl_hours=24, clock=clock)


class TestTTLCache:
    def test_hit_before_expiry(self, cache, clock):
        cache.upsert("g1", "contact", "bob@acme.com", {"id": "c1"})
        clock.advance(hours=23)

        assert cache.get("g1", "contact", "bob@acme.com") == {"id": "c1"}

    def test_expired_entry_is_evicted(self, cache, clock):
        """Should never return an expired entry, and drop it on read."""
        cache.upsert("g1", "contact", "bob@acme.com", {"id": "c1"}, ttl_hours=1)
        clock.advance(hours=1)

        assert cache.get("g1", "contact", "bob@acme.com") is None
        assert len(cache) == 0

    def test_upsert_replaces_and_refreshes_ttl(self, cache, clock):
        cache.upsert("g1", "calendar", "evt-1", "old", ttl_hours=1)
        clock.advance(minutes=50)
        cache.upsert("g1", "calendar", "evt-1", "new", ttl_hours=1)
        clock.advance(minutes=50)

        assert cache.get("g1", "calendar", "evt-1") == "new"

    def test_keys_are_scoped_by_grant_and_type(self, cache):
        cache.upsert("g1", "contact", "x", 1)

        assert cache.get("g2", "contact", "x") is None
        assert cache.get("g1", "calendar", "x") is None

    def test_delete(self, cache):
        cache.upsert("g1", "calendar", "evt-1", "data")

        assert cache.delete("g1", "calendar", "evt-1") is True
        assert cache.delete("g1", "calendar", "evt-1") is False
        assert cache.get("g1", "calendar", "evt-1") is None

    def test_clear_grant(self, cache):
        cache.upsert("g1", "contact", "a", 1)
        cache.upsert("g1", "calendar", "b", 2)
        cache.upsert("g2", "contact", "a", 3)

        assert cache.clear_grant("g1") == 2
        assert cache.get("g2", "contact", "a") == 3

    def test_purge_and_stats(self, cache, clock):
        cache.upsert("g1", "contact", "a", 1, ttl_hours=1)
        cache.upsert("g1", "calendar", "b", 2, ttl_hours=48)
        clock.advance(hours=2)

        stats = cache.stats()
        assert stats["total"] == 2
        assert stats["expired"] == 1
        assert stats["contact"] == 1
        assert stats["calendar"] == 1

        assert cache.purge_expired() == 1
        assert len(cache) == 1
