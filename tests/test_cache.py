"""Tests for the user stats cache."""

from __future__ import annotations

from owbot.owapi.cache import StatsCache
from owbot.owapi.models import UserStats


def _stats(tag: str) -> UserStats:
    return UserStats(battle_tag=tag, region="US")


class TestStatsCache:
    def test_missing_key_is_absent(self, fake_timer) -> None:
        cache = StatsCache(maxsize=10, ttl=0.1, timer=fake_timer)
        assert cache.get("Name-1234") is None

    def test_get_returns_stored_value(self, fake_timer) -> None:
        cache = StatsCache(maxsize=10, ttl=0.1, timer=fake_timer)
        stats = _stats("Name-1234")
        cache.put("Name-1234", stats)
        assert cache.get("Name-1234") is stats

    def test_entry_valid_just_before_ttl(self, fake_timer) -> None:
        cache = StatsCache(maxsize=10, ttl=0.1, timer=fake_timer)
        cache.put("Name-1234", _stats("Name-1234"))
        fake_timer.now += 0.1 - 0.001
        assert cache.get("Name-1234") is not None

    def test_entry_valid_at_exactly_ttl(self, fake_timer) -> None:
        cache = StatsCache(maxsize=10, ttl=0.5, timer=fake_timer)
        cache.put("Name-1234", _stats("Name-1234"))
        fake_timer.now += 0.5
        assert cache.get("Name-1234") is not None

    def test_entry_absent_after_ttl(self, fake_timer) -> None:
        cache = StatsCache(maxsize=10, ttl=0.1, timer=fake_timer)
        cache.put("Name-1234", _stats("Name-1234"))
        fake_timer.now += 0.1 + 0.001
        assert cache.get("Name-1234") is None

    def test_put_overwrites_and_restarts_ttl(self, fake_timer) -> None:
        cache = StatsCache(maxsize=10, ttl=0.1, timer=fake_timer)
        cache.put("Name-1234", _stats("old"))
        fake_timer.now += 0.08
        cache.put("Name-1234", _stats("new"))
        fake_timer.now += 0.08
        assert cache.get("Name-1234").battle_tag == "new"

    def test_least_recently_used_entry_is_evicted(self, fake_timer) -> None:
        cache = StatsCache(maxsize=2, ttl=60, timer=fake_timer)
        cache.put("a", _stats("a"))
        cache.put("b", _stats("b"))
        # Touch "a" so that "b" is the least recently used
        assert cache.get("a") is not None
        cache.put("c", _stats("c"))

        assert cache.get("a") is not None
        assert cache.get("b") is None
        assert cache.get("c") is not None
