from __future__ import annotations

import pytest

from chat_overlay.cache import QuotaCache


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return QuotaCache(ttl_minutes=5, clock=clock)


def test_get_missing_key_returns_none(cache):
    assert cache.get("nope") is None


def test_fresh_entry_is_returned(cache, clock):
    cache.set("chan1", {"videoId": "x"})
    assert cache.get("chan1") == {"videoId": "x"}
    clock.advance(299)
    assert cache.get("chan1") == {"videoId": "x"}


def test_entry_at_exact_ttl_is_still_valid(cache, clock):
    cache.set("chan1", {"videoId": "x"})
    clock.advance(300)
    assert cache.get("chan1") == {"videoId": "x"}


def test_expired_entry_is_evicted(cache, clock):
    cache.set("chan1", {"videoId": "x"})
    cache.set("chan2", {"videoId": "y"})
    clock.advance(301)

    assert cache.get("chan1") is None
    assert cache.has("chan1") is False
    stats = cache.stats()
    assert stats["size"] == 1
    assert [e["key"] for e in stats["entries"]] == ["chan2"]


def test_set_overwrites_and_restarts_ttl(cache, clock):
    cache.set("chan1", {"videoId": "old"})
    clock.advance(200)
    cache.set("chan1", {"videoId": "new"})
    clock.advance(200)
    assert cache.get("chan1") == {"videoId": "new"}


def test_clear_and_delete(cache):
    cache.set("a", 1)
    cache.set("b", 2)
    assert cache.delete("a") is True
    assert cache.delete("a") is False
    assert cache.clear() == 1
    assert cache.stats()["size"] == 0


def test_stats_reports_age_and_remaining_life(cache, clock):
    cache.set("chan1", {"videoId": "x"})
    clock.advance(60)
    stats = cache.stats()
    assert stats["ttlMinutes"] == 5
    assert stats["entries"] == [{"key": "chan1", "ageSeconds": 60, "expiresInSeconds": 240}]


def test_custom_ttl(clock):
    cache = QuotaCache(ttl_minutes=1, clock=clock)
    cache.set("k", "v")
    clock.advance(61)
    assert cache.get("k") is None
