"""Tests for the in-memory TTL cache and its namespaces."""

from __future__ import annotations

from mirrorchase.domain.entities.links import DownloadOption
from mirrorchase.infrastructure.cache.ttl_cache import (
    CacheEntry,
    PageCaches,
    TtlCache,
    episode_cache_key,
)


class _Clock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestCacheEntry:
    def test_fresh_strictly_before_ttl(self) -> None:
        entry = CacheEntry("x", timestamp_ms=1000.0)
        assert entry.is_fresh(1000.0 + 599_999, 600_000) is True
        assert entry.is_fresh(1000.0 + 600_000, 600_000) is False


class TestTtlCache:
    def test_miss_returns_none(self) -> None:
        assert TtlCache(1000).get("missing") is None

    def test_ttl_boundary(self) -> None:
        clock = _Clock()
        cache: TtlCache[str] = TtlCache(600_000, clock=clock)
        cache.put("k", "v")

        clock.now = 599_999
        assert cache.get("k") == "v"
        clock.now = 600_000
        assert cache.get("k") is None
        clock.now = 600_001
        assert cache.get("k") is None

    def test_rewrite_refreshes_timestamp(self) -> None:
        clock = _Clock()
        cache: TtlCache[str] = TtlCache(100, clock=clock)
        cache.put("k", "old")
        clock.now = 90
        cache.put("k", "new")
        clock.now = 150
        assert cache.get("k") == "new"

    def test_max_entries_evicts_oldest(self) -> None:
        cache: TtlCache[int] = TtlCache(10_000, clock=_Clock(), max_entries=2)
        cache.put("a", 1)
        cache.put("b", 2)
        cache.put("c", 3)
        assert len(cache) == 2
        assert cache.get("a") is None
        assert cache.get("b") == 2
        assert cache.get("c") == 3

    def test_falsy_values_are_hits(self) -> None:
        cache: TtlCache[list[int]] = TtlCache(1000, clock=_Clock())
        cache.put("empty", [])
        assert cache.get("empty") == []


class TestPageCaches:
    def test_namespaces_are_independent(self) -> None:
        caches = PageCaches.create(1000, clock=_Clock())
        url = "https://filesdl.live/view/1"
        whole = [DownloadOption("1080p", None, "https://a")]
        ep = [DownloadOption("720p - G", None, "https://b")]

        caches.options.put(url, whole)
        caches.episode_options.put(episode_cache_key(url, 2), ep)

        assert caches.options.get(url) == whole
        assert caches.episode_options.get(episode_cache_key(url, 2)) == ep
        assert caches.episode_options.get(url) is None
        assert caches.hops.get(url) is None

    def test_episode_key(self) -> None:
        assert episode_cache_key("https://x/p", 3) == "https://x/p#ep3"
