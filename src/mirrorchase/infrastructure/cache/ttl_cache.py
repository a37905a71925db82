"""In-memory page/result cache with lazy TTL expiry.

Entries are never swept in the background: a stored entry whose age
reaches the TTL is treated exactly like a miss on the next read.  One
``PageCaches`` instance is scoped to a pipeline, so memory is bounded by
the pipeline lifetime (or by ``max_entries`` when set).
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

import structlog

from mirrorchase.domain.entities.links import (
    DirectPageMeta,
    DownloadOption,
    ResolvedCandidate,
)

log = structlog.get_logger(__name__)

T = TypeVar("T")

Clock = Callable[[], float]


def monotonic_ms() -> float:
    """Default clock: monotonic time in milliseconds."""
    return time.monotonic() * 1000.0


class CacheEntry(Generic[T]):
    """Cached value stamped with its write time (milliseconds)."""

    __slots__ = ("data", "timestamp_ms")

    def __init__(self, data: T, timestamp_ms: float) -> None:
        self.data = data
        self.timestamp_ms = timestamp_ms

    def is_fresh(self, now_ms: float, ttl_ms: float) -> bool:
        return now_ms - self.timestamp_ms < ttl_ms


class TtlCache(Generic[T]):
    """Time-bounded key-value cache.

    Satisfies ``CachePort``.  Duplicate concurrent writes for the same key
    simply overwrite with an equivalent value, so no locking is needed.

    Args:
        ttl_ms: Entry lifetime in milliseconds.
        clock: Millisecond clock (injectable for tests).
        max_entries: Optional size bound; oldest insertions are evicted first.
        name: Namespace label used in log events.
    """

    def __init__(
        self,
        ttl_ms: float,
        *,
        clock: Clock = monotonic_ms,
        max_entries: int | None = None,
        name: str = "cache",
    ) -> None:
        self._ttl_ms = ttl_ms
        self._clock = clock
        self._max_entries = max_entries
        self._name = name
        self._entries: dict[str, CacheEntry[T]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> T | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not entry.is_fresh(self._clock(), self._ttl_ms):
            log.debug("cache_entry_stale", cache=self._name, key=key)
            return None
        log.debug("cache_hit", cache=self._name, key=key)
        return entry.data

    def put(self, key: str, value: T) -> None:
        # Re-insert so that insertion order tracks the latest write
        self._entries.pop(key, None)
        self._entries[key] = CacheEntry(value, self._clock())
        self._enforce_max_size()

    def _enforce_max_size(self) -> None:
        """Evict oldest entries when the cache exceeds ``max_entries``."""
        if self._max_entries is None or len(self._entries) <= self._max_entries:
            return
        # Python dicts preserve insertion order; pop from the front
        excess = len(self._entries) - self._max_entries
        for key in list(self._entries.keys())[:excess]:
            del self._entries[key]
        log.debug("cache_evicted", cache=self._name, evicted=excess)


@dataclass
class PageCaches:
    """Independent cache namespaces shared by one pipeline.

    ``options`` and ``episode_options`` are keyed separately so an
    episode-filtered list never shadows the whole-page list for the same URL.
    """

    options: TtlCache[list[DownloadOption]]
    episode_options: TtlCache[list[DownloadOption]]
    page_meta: TtlCache[DirectPageMeta]
    hops: TtlCache[list[ResolvedCandidate]]

    @classmethod
    def create(
        cls,
        ttl_ms: float,
        *,
        clock: Clock = monotonic_ms,
        max_entries: int | None = None,
    ) -> PageCaches:
        def _make(name: str) -> TtlCache:
            return TtlCache(ttl_ms, clock=clock, max_entries=max_entries, name=name)

        return cls(
            options=_make("options"),
            episode_options=_make("episode_options"),
            page_meta=_make("page_meta"),
            hops=_make("hops"),
        )


def episode_cache_key(page_url: str, episode: int) -> str:
    """Cache key for an episode-filtered option list."""
    return f"{page_url}#ep{episode}"
