"""Turns a content page's download links into queued options."""

from __future__ import annotations

import structlog

from mirrorchase.domain.entities.links import (
    ContentPage,
    DownloadOption,
    PendingOption,
    TerminalStream,
)
from mirrorchase.domain.ports.fetcher import FetchPort
from mirrorchase.infrastructure.cache.ttl_cache import PageCaches, episode_cache_key

from .classifier import WrapperTier, is_direct_download_page, wrapper_tier
from .extractor import extract_episode_options, extract_options
from .filename import DirectPageInspector
from .resolver import IntermediaryResolver

log = structlog.get_logger(__name__)


class DownloadPageReader:
    """Reads every download page of a content page.

    Two kinds of download link exist:

    - hoster pages (hubdrive/hubcloud/gdflix): their forward links are
      queued, or the page itself is surfaced when it has none;
    - listing pages: options are extracted (whole page or one episode),
      and a page whose only link is a link-list wrapper is expanded into
      one option per variant.
    """

    def __init__(
        self,
        fetcher: FetchPort,
        caches: PageCaches,
        resolver: IntermediaryResolver,
        inspector: DirectPageInspector,
    ) -> None:
        self._fetcher = fetcher
        self._caches = caches
        self._resolver = resolver
        self._inspector = inspector

    async def collect(
        self,
        content: ContentPage,
        *,
        display_title: str,
        languages: tuple[str, ...],
        episode: int | None = None,
    ) -> tuple[list[TerminalStream], list[PendingOption]]:
        """Return ``(ready_streams, pending_options)`` for *content*."""
        ready: list[TerminalStream] = []
        pending: list[PendingOption] = []

        for page in content.download_pages:
            if is_direct_download_page(page):
                info = await self._inspector.inspect(page)
                if info.candidates:
                    pending.extend(
                        PendingOption(
                            DownloadOption(
                                quality_label=info.title or display_title,
                                size_hint=info.size,
                                target_url=link,
                            ),
                            page,
                        )
                        for link in info.candidates
                    )
                    continue
                ready.append(
                    TerminalStream(
                        url=page,
                        label=(info.title or display_title).strip(),
                        size_text=info.size,
                        languages=languages,
                    )
                )
                continue

            options = await self.options_for(page, episode)
            unique = {o.target_url for o in options}
            if len(unique) == 1:
                sole = next(iter(unique))
                if wrapper_tier(sole) is WrapperTier.FIRST:
                    expanded = await self._resolver.expand_variants(sole, page)
                    if expanded:
                        options = expanded

            if not options:
                log.info("download_page_no_options", page=page)
                continue
            pending.extend(PendingOption(o, page) for o in options)

        log.debug(
            "download_pages_read",
            pages=len(content.download_pages),
            ready=len(ready),
            pending=len(pending),
        )
        return ready, pending

    async def options_for(self, page_url: str, episode: int | None = None) -> list[DownloadOption]:
        """Download options on *page_url*, optionally for one episode (cached)."""
        if episode is None:
            cache = self._caches.options
            key = page_url
        else:
            cache = self._caches.episode_options
            key = episode_cache_key(page_url, episode)

        cached = cache.get(key)
        if cached is not None:
            return cached

        response = await self._fetcher.fetch(page_url, parse_html=True)
        if response is None or response.document is None:
            return []

        if episode is None:
            options = extract_options(response.document, page_url)
        else:
            options = extract_episode_options(response.document, page_url, episode)
        cache.put(key, options)
        return options
