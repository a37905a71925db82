from __future__ import annotations

from .ttl_cache import CacheEntry, PageCaches, TtlCache, episode_cache_key, monotonic_ms

__all__ = ["CacheEntry", "PageCaches", "TtlCache", "episode_cache_key", "monotonic_ms"]
