"""Intermediary wrapper resolution.

Follows a download option through its wrapper pages until a URL is
reached that no scan rules exist for.  Each hop is one state of a small
machine keyed by ``WrapperTier``:

    FIRST  --select-->  tier(selected)
    SECOND --select-->  tier(selected)
    NONE   -> terminal, return URL

A failed hop (no response, no document, no candidates) stops the walk
and returns the URL reached so far.  Exceeding ``max_hops`` abandons the
walk and returns the original request URL.
"""

from __future__ import annotations

import re

import structlog
from bs4 import BeautifulSoup

from mirrorchase.domain.entities.links import (
    DownloadOption,
    ResolutionRequest,
    ResolvedCandidate,
)
from mirrorchase.domain.ports.cache import CachePort
from mirrorchase.domain.ports.fetcher import FetchPort
from mirrorchase.infrastructure.common.html_selectors import to_absolute_url
from mirrorchase.infrastructure.common.parsers import extract_quality_token

from .classifier import (
    FIRST_TIER_PRIORITIES,
    SECOND_TIER_DOWNLOAD_LINK_WEIGHT,
    SECOND_TIER_PRIORITIES,
    SECOND_TIER_TEXT_RE,
    SECOND_TIER_TEXT_WEIGHT,
    WrapperTier,
    wrapper_tier,
)

log = structlog.get_logger(__name__)

_VARIANT_HREF_RE = re.compile(r"filesdl|gdflix", re.IGNORECASE)
_VARIANT_QUALITY_RE = re.compile(r"(2160|1080|720|480)p?")
_VARIANT_SIZE_RE = re.compile(r"\b\d+(?:\.\d+)?\s*(?:gb|mb)\b", re.IGNORECASE)


def _weight_by_table(
    href: str,
    table: tuple[tuple[re.Pattern[str], int], ...],
) -> int | None:
    for pattern, weight in table:
        if pattern.search(href):
            return weight
    return None


def scan_first_tier(document: BeautifulSoup, page_url: str) -> list[ResolvedCandidate]:
    """Candidates on a link-list page (gdflix / watch / cloud links)."""
    candidates: list[ResolvedCandidate] = []
    for anchor in document.select("a[href]"):
        href = to_absolute_url(str(anchor["href"]), page_url)
        if href is None:
            continue
        weight = _weight_by_table(href, FIRST_TIER_PRIORITIES)
        if weight is None:
            continue
        text = anchor.get_text(" ", strip=True).lower()
        candidates.append(ResolvedCandidate(href=href, display_text=text, weight=weight))
    return candidates


def scan_second_tier(document: BeautifulSoup, page_url: str) -> list[ResolvedCandidate]:
    """Candidates on a per-file mirror page."""
    candidates: list[ResolvedCandidate] = []

    for anchor in document.select(".download-link[href]"):
        href = to_absolute_url(str(anchor["href"]), page_url)
        if href is None:
            continue
        candidates.append(
            ResolvedCandidate(
                href=href,
                display_text=anchor.get_text(" ", strip=True).lower(),
                weight=SECOND_TIER_DOWNLOAD_LINK_WEIGHT,
            )
        )

    for anchor in document.select("a[href]"):
        href = to_absolute_url(str(anchor["href"]), page_url)
        if href is None:
            continue
        text = anchor.get_text(" ", strip=True).lower()
        weight = _weight_by_table(href, SECOND_TIER_PRIORITIES)
        if weight is None and SECOND_TIER_TEXT_RE.search(text):
            weight = SECOND_TIER_TEXT_WEIGHT
        if weight is None:
            continue
        candidates.append(ResolvedCandidate(href=href, display_text=text, weight=weight))

    return candidates


def rank_candidates(candidates: list[ResolvedCandidate]) -> list[ResolvedCandidate]:
    """Sort by weight (descending) and keep the best entry per URL."""
    ordered = sorted(candidates, key=lambda c: c.weight, reverse=True)
    seen: set[str] = set()
    ranked: list[ResolvedCandidate] = []
    for cand in ordered:
        if cand.href in seen:
            continue
        seen.add(cand.href)
        ranked.append(cand)
    return ranked


def select_candidate(
    ranked: list[ResolvedCandidate],
    quality_token: str | None,
) -> ResolvedCandidate:
    """A quality-token text match beats weight; otherwise the top entry."""
    if quality_token:
        for cand in ranked:
            if quality_token in cand.display_text:
                return cand
    return ranked[0]


_SCANNERS = {
    WrapperTier.FIRST: scan_first_tier,
    WrapperTier.SECOND: scan_second_tier,
}


class IntermediaryResolver:
    """Resolves wrapper URLs to the next non-wrapper hop.

    Args:
        fetcher: Fetch-and-parse adapter.
        hop_cache: Per-page candidate scans, keyed by page URL.
        max_hops: Wrapper pages visited before giving up.
    """

    def __init__(
        self,
        fetcher: FetchPort,
        hop_cache: CachePort[list[ResolvedCandidate]],
        *,
        max_hops: int = 5,
    ) -> None:
        self._fetcher = fetcher
        self._hop_cache = hop_cache
        self._max_hops = max_hops

    async def resolve(self, request: ResolutionRequest) -> str | None:
        """Walk the wrapper chain for *request*.

        Returns ``None`` only when the target cannot be made absolute.
        """
        start = to_absolute_url(request.target_url, request.source_page_url)
        if start is None:
            log.debug("resolve_unusable_target", target=request.target_url)
            return None

        quality_token = extract_quality_token(request.quality_hint)
        current = start
        hops = 0

        while True:
            tier = wrapper_tier(current)
            if tier is WrapperTier.NONE:
                if hops:
                    log.debug("resolve_terminal", start=start, url=current, hops=hops)
                return current

            hops += 1
            if hops > self._max_hops:
                log.warning("resolve_hop_limit", start=start, last=current, max_hops=self._max_hops)
                return start

            ranked = await self._candidates(current, tier)
            if not ranked:
                log.info("resolve_partial", start=start, url=current, tier=tier.value)
                return current

            selected = select_candidate(ranked, quality_token)
            log.debug(
                "resolve_hop",
                tier=tier.value,
                page=current,
                selected=selected.href,
                weight=selected.weight,
                candidates=len(ranked),
            )
            current = selected.href

    async def _candidates(self, page_url: str, tier: WrapperTier) -> list[ResolvedCandidate]:
        cached = self._hop_cache.get(page_url)
        if cached is not None:
            return cached

        response = await self._fetcher.fetch(page_url, parse_html=True)
        if response is None or response.document is None:
            return []

        ranked = rank_candidates(_SCANNERS[tier](response.document, page_url))
        self._hop_cache.put(page_url, ranked)
        return ranked

    async def expand_variants(self, url: str, base_url: str) -> list[DownloadOption]:
        """Split a single link-list wrapper into one option per variant.

        Every ``filesdl``/``gdflix`` anchor on the page becomes an option
        labelled ``"<height>P DOWNLOAD"``.  Returns ``[]`` on any failure.
        """
        normalized = to_absolute_url(url, base_url)
        if normalized is None:
            return []

        response = await self._fetcher.fetch(normalized, parse_html=True)
        if response is None or response.document is None:
            return []

        variants: list[DownloadOption] = []
        seen: set[str] = set()
        for anchor in response.document.select("a[href]"):
            href = to_absolute_url(str(anchor["href"]), normalized)
            if href is None or href in seen or not _VARIANT_HREF_RE.search(href):
                continue
            seen.add(href)
            text = anchor.get_text(" ", strip=True)
            quality = _VARIANT_QUALITY_RE.search(text.lower())
            size = _VARIANT_SIZE_RE.search(text)
            variants.append(
                DownloadOption(
                    quality_label=f"{quality.group(1)}P DOWNLOAD" if quality else text or "Download",
                    size_hint=size.group(0) if size else None,
                    target_url=href,
                )
            )

        log.debug("variants_expanded", url=normalized, count=len(variants))
        return variants
