"""Human-readable names and metadata from hoster landing pages."""

from __future__ import annotations

import re

import structlog

from mirrorchase.domain.entities.links import DirectPageMeta
from mirrorchase.domain.ports.cache import CachePort
from mirrorchase.domain.ports.fetcher import FetchPort
from mirrorchase.infrastructure.common.html_selectors import extract_text, to_absolute_url

log = structlog.get_logger(__name__)

# Placeholder titles served by hosters and challenge pages
_GENERIC_TITLE_RE = re.compile(
    r"^(?:file information|download|untitled|page not found|error|404|403"
    r"|just a moment|attention required|cloudflare)$",
    re.IGNORECASE,
)
_BRAND_PREFIX_RE = re.compile(r"^[^|]*\|\s*")
_VCLOUD_PREFIX_RE = re.compile(r"^vcloud\s*[-–—]\s*", re.IGNORECASE)
_MEDIA_EXTENSION_RE = re.compile(r"\.(?:mkv|mp4|webm|avi|mov|ts)$", re.IGNORECASE)

_FILE_SIZE_RE = re.compile(
    r"file size[:\s]*([0-9]+(?:\.[0-9]+)?\s*(?:TB|GB|MB|KB))", re.IGNORECASE
)
_WHITESPACE_RE = re.compile(r"\s+")
_FORWARD_HREF_RE = re.compile(r"gdflix|filesdl\.site/cloud|filesdl\.in/watch", re.IGNORECASE)
_FORWARD_TEXT_RE = re.compile(r"hub cloud|hub drive|cloud download|drive download")


def clean_hoster_title(raw: str | None) -> str | None:
    """Strip branding and extension from a hoster page title.

    Returns ``None`` for empty or generic placeholder titles.

    Examples:
        "GDFlix | Show.S01E02.1080p.mkv" -> "Show.S01E02.1080p"
        "VCloud - Movie.2024.720p.mp4"   -> "Movie.2024.720p"
        "Just a moment"                  -> None
    """
    if not raw:
        return None
    name = raw.strip()
    if not name or _GENERIC_TITLE_RE.match(name):
        return None
    name = _BRAND_PREFIX_RE.sub("", name).strip()
    name = _VCLOUD_PREFIX_RE.sub("", name).strip()
    name = _MEDIA_EXTENSION_RE.sub("", name).strip()
    return name or None


class FilenameRecoverer:
    """Recovers a display filename from an ID-based hoster page.

    Never raises; any failure yields ``None``.
    """

    def __init__(self, fetcher: FetchPort, *, timeout_ms: int = 5000) -> None:
        self._fetcher = fetcher
        self._timeout_ms = timeout_ms

    async def recover(self, url: str) -> str | None:
        try:
            response = await self._fetcher.fetch(
                url, parse_html=True, timeout_ms=self._timeout_ms
            )
            if response is None or response.document is None:
                return None
            document = response.document
            card_header = extract_text(document, ".card-header")
            title = extract_text(document, "title")
        except Exception:  # noqa: BLE001
            log.debug("filename_recover_failed", url=url, exc_info=True)
            return None

        # Card header first; a generic one falls through to <title>
        for raw in (card_header, title):
            if raw and not _GENERIC_TITLE_RE.match(raw.strip()):
                return clean_hoster_title(raw)
        return None


class DirectPageInspector:
    """Reads title, size and forward links from a hoster download page.

    Results are cached per URL.  Never raises; a failed fetch yields an
    empty ``DirectPageMeta`` that is not cached.
    """

    def __init__(self, fetcher: FetchPort, cache: CachePort[DirectPageMeta]) -> None:
        self._fetcher = fetcher
        self._cache = cache

    async def inspect(self, url: str) -> DirectPageMeta:
        cached = self._cache.get(url)
        if cached is not None:
            return cached

        try:
            response = await self._fetcher.fetch(url, parse_html=True)
            if response is None or response.document is None:
                return DirectPageMeta()
            meta = self._read(response.document, response.body, url)
        except Exception:  # noqa: BLE001
            log.warning("direct_page_inspect_failed", url=url, exc_info=True)
            return DirectPageMeta()

        self._cache.put(url, meta)
        log.debug(
            "direct_page_inspected",
            url=url,
            title=meta.title,
            size=meta.size,
            candidates=len(meta.candidates),
        )
        return meta

    @staticmethod
    def _read(document, body: str, url: str) -> DirectPageMeta:
        title = extract_text(document, "title") or None
        size_match = _FILE_SIZE_RE.search(_WHITESPACE_RE.sub(" ", body or ""))
        size = size_match.group(1).upper() if size_match else None

        candidates: list[str] = []
        for anchor in document.select("a[href]"):
            href = str(anchor["href"])
            text = anchor.get_text(" ", strip=True).lower()
            if not (_FORWARD_HREF_RE.search(href) or _FORWARD_TEXT_RE.search(text)):
                continue
            absolute = to_absolute_url(href, url)
            if absolute is not None and absolute not in candidates:
                candidates.append(absolute)

        return DirectPageMeta(title=title, size=size, candidates=tuple(candidates))
