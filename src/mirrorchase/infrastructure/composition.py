"""Composition root: wires the link-resolution pipeline."""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

import httpx
import structlog

from mirrorchase.application.use_cases.title_streams import (
    MatchFn,
    TitleStreamsUseCase,
    keep_search_order,
)
from mirrorchase.domain.ports.metadata import MetadataPort
from mirrorchase.domain.ports.search import ContentSearchPort
from mirrorchase.infrastructure.cache.ttl_cache import PageCaches
from mirrorchase.infrastructure.concurrency import map_bounded
from mirrorchase.infrastructure.config.schema import AppConfig
from mirrorchase.infrastructure.fetch.httpx_fetcher import HttpxFetcher, create_http_client
from mirrorchase.infrastructure.links.classifier import is_wrapper
from mirrorchase.infrastructure.links.filename import DirectPageInspector, FilenameRecoverer
from mirrorchase.infrastructure.links.option_resolver import OptionResolver
from mirrorchase.infrastructure.links.pages import DownloadPageReader
from mirrorchase.infrastructure.links.resolver import IntermediaryResolver
from mirrorchase.infrastructure.metadata.imdb_fallback import ImdbTitleFallback
from mirrorchase.infrastructure.stremio.stream_formatter import detect_languages
from mirrorchase.infrastructure.validation.seekable_validator import SeekableValidator

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class LinkComponents:
    """Infrastructure pieces shared by one pipeline."""

    fetcher: HttpxFetcher
    caches: PageCaches
    page_reader: DownloadPageReader
    option_resolver: OptionResolver


def build_link_components(config: AppConfig, http_client: httpx.AsyncClient) -> LinkComponents:
    """Fetcher, caches, resolver, validator, recoverer and readers over *http_client*."""
    fetcher = HttpxFetcher(http_client)
    caches = PageCaches.create(
        config.cache.page_ttl_ms,
        max_entries=config.cache.max_entries,
    )

    res = config.resolution
    resolver = IntermediaryResolver(fetcher, caches.hops, max_hops=res.max_hops)
    validator = SeekableValidator(http_client)
    recoverer = FilenameRecoverer(fetcher, timeout_ms=res.filename_timeout_ms)
    inspector = DirectPageInspector(fetcher, caches.page_meta)

    return LinkComponents(
        fetcher=fetcher,
        caches=caches,
        page_reader=DownloadPageReader(fetcher, caches, resolver, inspector),
        option_resolver=OptionResolver(
            resolver,
            validator,
            recoverer,
            require_partial_content=res.require_partial_content,
            seek_timeout_ms=res.seek_timeout_ms,
        ),
    )


def build_pipeline(
    config: AppConfig,
    *,
    search: ContentSearchPort,
    metadata: MetadataPort,
    http_client: httpx.AsyncClient | None = None,
    match_fn: MatchFn | None = None,
) -> TitleStreamsUseCase:
    """Build a ``TitleStreamsUseCase`` with its own cache namespaces.

    Order matters:
        1. HTTP client (shared by every component)
        2. Link components (fetcher, caches, resolver, readers)
        3. Use case

    Without *http_client* a client is created from *config* and the
    caller becomes responsible for closing it; ``open_pipeline`` does
    that automatically.
    """
    # ========== 1) HTTP ==========
    client = http_client if http_client is not None else create_http_client(config)

    # ========== 2) Link components ==========
    parts = build_link_components(config, client)

    # ========== 3) Use case ==========
    res = config.resolution
    use_case = TitleStreamsUseCase(
        metadata=metadata,
        search=search,
        page_reader=parts.page_reader,
        option_resolver=parts.option_resolver,
        config=res,
        is_wrapper_fn=is_wrapper,
        map_fn=map_bounded,
        language_fn=detect_languages,
        title_fallback=ImdbTitleFallback(parts.fetcher),
        match_fn=match_fn or keep_search_order,
    )
    log.info(
        "pipeline_initialized",
        provider=res.provider_name,
        concurrency_limit=res.concurrency_limit,
        max_hops=res.max_hops,
        page_ttl_ms=config.cache.page_ttl_ms,
    )
    return use_case


@asynccontextmanager
async def open_pipeline(
    config: AppConfig,
    *,
    search: ContentSearchPort,
    metadata: MetadataPort,
    match_fn: MatchFn | None = None,
) -> AsyncIterator[TitleStreamsUseCase]:
    """Pipeline with a managed HTTP client (closed on exit)."""
    client = create_http_client(config)
    try:
        yield build_pipeline(
            config,
            search=search,
            metadata=metadata,
            http_client=client,
            match_fn=match_fn,
        )
    finally:
        await client.aclose()
        log.info("http_client_closed")
