"""Title stream resolution use case.

Title id -> metadata -> sequential search queries -> best content page
-> download pages -> options -> bounded resolve/validate fan-out
-> TerminalStream list.
"""

from __future__ import annotations

import asyncio
import re
import unicodedata
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Protocol

import structlog

from mirrorchase.domain.entities.links import (
    ContentPage,
    MediaType,
    PendingOption,
    SearchHit,
    TerminalStream,
    TitleMeta,
)
from mirrorchase.domain.ports.metadata import MetadataPort, TitleFallbackPort
from mirrorchase.domain.ports.search import ContentSearchPort

# ---------------------------------------------------------------------------
# Protocols: what this use case needs from its dependencies.
# Infrastructure components satisfy these via structural subtyping.
# ---------------------------------------------------------------------------


class _ResolutionConfig(Protocol):
    """Configuration values consumed by TitleStreamsUseCase."""

    concurrency_limit: int


class _PageReader(Protocol):
    """Reads download pages into ready streams and pending options."""

    async def collect(
        self,
        content: ContentPage,
        *,
        display_title: str,
        languages: tuple[str, ...],
        episode: int | None = None,
    ) -> tuple[list[TerminalStream], list[PendingOption]]: ...


class _OptionResolver(Protocol):
    """Resolves one pending option to a terminal stream (or drops it)."""

    async def resolve(
        self,
        pending: PendingOption,
        *,
        display_title: str,
        languages: tuple[str, ...] = (),
    ) -> TerminalStream | None: ...


# Type aliases for injected pure functions.
MatchFn = Callable[[list[SearchHit], str], list[SearchHit]]
LanguageFn = Callable[[str | None], tuple[str, ...]]
WrapperFn = Callable[[str], bool]
MapFn = Callable[
    [Sequence[Any], int, Callable[[Any], Awaitable[Any]]],
    Awaitable[list[Any]],
]

log = structlog.get_logger(__name__)


def keep_search_order(hits: list[SearchHit], title: str) -> list[SearchHit]:
    """Default matcher: trust the search engine's ordering."""
    return hits


_IMDB_ID_RE = re.compile(r"^tt\d+$")
_PACK_POST_RE = re.compile(
    r"full web series|full season|all episodes|complete(?:d)? (?:web )?series|full series"
)
_YEAR_SUFFIX_RE = re.compile(r"\s*[(\[]?\b(?:19|20)\d{2}\b[)\]]?\s*$")

# Transliteration table for characters that NFKD does not decompose.
_TRANSLITERATION = str.maketrans(
    {
        "ß": "ss",
        "æ": "ae",
        "Æ": "Ae",
        "œ": "oe",
        "Œ": "Oe",
        "ø": "o",
        "Ø": "O",
        "ł": "l",
        "Ł": "L",
        "đ": "d",
        "Đ": "D",
    }
)


def _build_search_query(title: str) -> str:
    """Build a site search query from a canonical title.

    1. Explicit transliteration (ß→ss, æ→ae, ø→o, ł→l, …)
    2. NFKD decomposition + combining-mark stripping (é→e, ü→u)
    3. Punctuation removal (colons, semicolons, etc.)
    4. Whitespace normalization
    """
    text = title.translate(_TRANSLITERATION)
    decomposed = unicodedata.normalize("NFKD", text)
    ascii_ish = "".join(c for c in decomposed if unicodedata.category(c)[0] != "M")
    cleaned = re.sub(r"[^\w\s\-']", " ", ascii_ish)
    return " ".join(cleaned.split())


def _remove_year(title: str) -> str:
    return _YEAR_SUFFIX_RE.sub("", title).strip()


def build_queries(meta: TitleMeta) -> list[str]:
    """Ordered, de-duplicated search queries for *meta*."""
    raw = [
        meta.name,
        _remove_year(meta.name),
        _build_search_query(meta.name),
        _build_search_query(_remove_year(meta.name)),
    ]
    if meta.original_title:
        raw.append(meta.original_title)
        raw.append(_build_search_query(meta.original_title))

    queries: list[str] = []
    for q in raw:
        q = q.strip()
        if q and q not in queries:
            queries.append(q)
    return queries


def is_pack_post(content_title: str, hit_title: str) -> bool:
    """True for full-season/complete-series posts."""
    return bool(_PACK_POST_RE.search(f"{content_title} {hit_title}".lower()))


def prefer_unwrapped(
    streams: list[TerminalStream],
    is_wrapper: WrapperFn,
) -> list[TerminalStream]:
    """Drop wrapper streams when any non-wrapper exists, then dedupe by URL."""
    direct = [s for s in streams if not is_wrapper(s.url)]
    chosen = direct or streams
    seen: set[str] = set()
    unique: list[TerminalStream] = []
    for stream in chosen:
        if stream.url in seen:
            continue
        seen.add(stream.url)
        unique.append(stream)
    return unique


def _cancelled(cancel: asyncio.Event | None, stage: str) -> bool:
    if cancel is not None and cancel.is_set():
        log.info("title_streams_cancelled", stage=stage)
        return True
    return False


class TitleStreamsUseCase:
    """Resolve a title request into seekable terminal streams.

    Flow:
        1. Resolve the title id to a name (metadata, then IMDb fallback).
        2. Try search queries in order until one yields hits.
        3. Load the best-matching content page.
        4. Gather download options from every download page.
        5. Resolve, validate and label options in parallel (bounded).
        6. Prefer unwrapped streams and dedupe by URL.

    Never raises: every failure is logged and degrades to ``[]``.
    """

    def __init__(
        self,
        *,
        metadata: MetadataPort,
        search: ContentSearchPort,
        page_reader: _PageReader,
        option_resolver: _OptionResolver,
        config: _ResolutionConfig,
        is_wrapper_fn: WrapperFn,
        map_fn: MapFn,
        language_fn: LanguageFn,
        title_fallback: TitleFallbackPort | None = None,
        match_fn: MatchFn = keep_search_order,
    ) -> None:
        self._metadata = metadata
        self._search = search
        self._page_reader = page_reader
        self._option_resolver = option_resolver
        self._is_wrapper = is_wrapper_fn
        self._map_fn = map_fn
        self._language_fn = language_fn
        self._title_fallback = title_fallback
        self._match_fn = match_fn
        self._concurrency_limit = config.concurrency_limit

    async def execute(
        self,
        title_id: str,
        media_type: MediaType,
        season: int | None = None,
        episode: int | None = None,
        *,
        prefetched_meta: TitleMeta | None = None,
        cancel: asyncio.Event | None = None,
    ) -> list[TerminalStream]:
        """Resolve streams for one title (and optionally one episode).

        Args:
            title_id: External title id (IMDb ``tt…`` or provider id).
            media_type: ``"movie"`` or ``"series"``.
            season: Season number for episodic requests.
            episode: Episode number for episodic requests.
            prefetched_meta: Skips the metadata lookup when given.
            cancel: Checked between stages; a set event returns ``[]``.

        Returns:
            Terminal streams, non-wrapper ones preferred, unique by URL.
        """
        try:
            return await self._execute(
                title_id,
                media_type,
                season,
                episode,
                prefetched_meta=prefetched_meta,
                cancel=cancel,
            )
        except Exception:
            log.exception("title_streams_failed", title_id=title_id, media_type=media_type)
            return []

    async def _execute(
        self,
        title_id: str,
        media_type: MediaType,
        season: int | None,
        episode: int | None,
        *,
        prefetched_meta: TitleMeta | None,
        cancel: asyncio.Event | None,
    ) -> list[TerminalStream]:
        meta = await self._resolve_meta(title_id, media_type, prefetched_meta)
        if meta is None:
            log.warning("title_meta_not_found", title_id=title_id)
            return []

        if _cancelled(cancel, "search"):
            return []

        hits = await self._search_first_hit(build_queries(meta))
        if not hits:
            log.info("title_search_empty", title_id=title_id, title=meta.name)
            return []

        ranked = self._match_fn(hits, meta.name)
        if not ranked or not ranked[0].url:
            log.info("title_no_match", title_id=title_id, title=meta.name)
            return []
        best = ranked[0]
        log.info("title_post_selected", title=best.title, url=best.url)

        content = await self._search.load_content_page(best.url)
        if not content.download_pages:
            log.info("title_no_download_pages", url=best.url)
            return []

        episodic = season is not None and episode is not None
        if episodic and is_pack_post(content.title, best.title):
            log.info("title_pack_post_skipped", url=best.url, season=season, episode=episode)
            return []

        display_title = content.title or meta.name
        languages = content.languages or self._language_fn(display_title)

        ready, pending = await self._page_reader.collect(
            content,
            display_title=display_title,
            languages=languages,
            episode=episode if episodic else None,
        )

        if _cancelled(cancel, "fan_out"):
            return []

        async def _step(item: PendingOption) -> TerminalStream | None:
            return await self._option_resolver.resolve(
                item, display_title=display_title, languages=languages
            )

        resolved = await self._map_fn(pending, self._concurrency_limit, _step)
        streams = prefer_unwrapped(
            ready + [s for s in resolved if s is not None],
            self._is_wrapper,
        )
        log.info(
            "title_streams_resolved",
            title_id=title_id,
            options=len(pending),
            streams=len(streams),
        )
        return streams

    async def _resolve_meta(
        self,
        title_id: str,
        media_type: MediaType,
        prefetched: TitleMeta | None,
    ) -> TitleMeta | None:
        meta = prefetched
        if meta is None or not meta.name:
            try:
                meta = await self._metadata.get_meta(media_type, title_id)
            except Exception:  # noqa: BLE001
                log.warning("title_meta_lookup_failed", title_id=title_id, exc_info=True)
                meta = None

        if (meta is None or not meta.name) and self._title_fallback is not None:
            if _IMDB_ID_RE.match(title_id):
                meta = await self._title_fallback.lookup(title_id)

        if meta is None or not meta.name:
            return None
        return meta

    async def _search_first_hit(self, queries: list[str]) -> list[SearchHit]:
        for query in queries:
            hits = await self._search.search(query)
            log.debug("title_search_query", query=query, hits=len(hits))
            if hits:
                return hits
        return []
