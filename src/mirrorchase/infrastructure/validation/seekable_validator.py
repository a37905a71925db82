"""Byte-range probe for direct media URLs.

A stream that cannot answer a range request cannot be seeked in a
player, so direct candidates are probed with ``Range: bytes=0-1``
before they are surfaced.  The body is never read.
"""

from __future__ import annotations

import re
import time
from collections.abc import Callable
from urllib.parse import unquote

import httpx
import structlog

from mirrorchase.domain.entities.links import SeekCheck

log = structlog.get_logger(__name__)

# Cache TTLs for probe results (seconds)
_CACHE_TTL_VALID = 1800
_CACHE_TTL_INVALID = 300

_CONTENT_RANGE_TOTAL_RE = re.compile(r"/\s*(\d+)\s*$")
_FILENAME_STAR_RE = re.compile(r"filename\*\s*=\s*(?:UTF-8|utf-8)?''([^;]+)", re.IGNORECASE)
_FILENAME_RE = re.compile(r'filename\s*=\s*"?([^";]+)"?', re.IGNORECASE)


class _SeekCacheEntry:
    """Time-bounded cache entry for probe results."""

    __slots__ = ("check", "expires_at")

    def __init__(self, check: SeekCheck, ttl: float, now: float) -> None:
        self.check = check
        self.expires_at = now + ttl

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


def parse_content_length(headers: httpx.Headers, status_code: int) -> int | None:
    """Total resource size from ``Content-Range``, else ``Content-Length``.

    ``Content-Length`` of a 206 is the size of the slice, so it is only
    trusted on a full 200 response.
    """
    content_range = headers.get("content-range")
    if content_range:
        match = _CONTENT_RANGE_TOTAL_RE.search(content_range)
        if match:
            return int(match.group(1))
    if status_code == 200:
        raw = headers.get("content-length")
        if raw and raw.strip().isdigit():
            return int(raw.strip())
    return None


def parse_disposition_filename(header: str | None) -> str | None:
    """Filename from a ``Content-Disposition`` header (RFC 5987 form first)."""
    if not header:
        return None
    match = _FILENAME_STAR_RE.search(header)
    if match:
        return unquote(match.group(1).strip().strip('"')) or None
    match = _FILENAME_RE.search(header)
    if match:
        return match.group(1).strip() or None
    return None


class SeekableValidator:
    """Confirms a direct URL honours byte-range requests.

    Satisfies ``SeekValidatorPort``.  Outcomes are cached in-memory with
    a longer TTL for valid URLs than for rejected ones.

    Args:
        http_client: Shared httpx.AsyncClient (injected).
        clock: Seconds clock for cache expiry (injectable for tests).
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._http = http_client
        self._clock = clock
        self._cache: dict[tuple[str, bool], _SeekCacheEntry] = {}

    async def validate(
        self,
        url: str,
        *,
        require_partial_content: bool = True,
        timeout_ms: int = 4000,
    ) -> SeekCheck:
        key = (url, require_partial_content)
        cached = self._cache.get(key)
        if cached is not None and not cached.is_expired(self._clock()):
            return cached.check

        check = await self._probe(url, require_partial_content, timeout_ms)
        ttl = _CACHE_TTL_VALID if check.is_valid else _CACHE_TTL_INVALID
        self._cache[key] = _SeekCacheEntry(check, ttl, self._clock())
        return check

    async def _probe(self, url: str, require_partial_content: bool, timeout_ms: int) -> SeekCheck:
        try:
            async with self._http.stream(
                "GET",
                url,
                headers={"Range": "bytes=0-1"},
                timeout=timeout_ms / 1000.0,
                follow_redirects=True,
            ) as response:
                status = response.status_code
                headers = response.headers
        except httpx.TimeoutException:
            log.info("seek_probe_timeout", url=url, timeout_ms=timeout_ms)
            return SeekCheck(is_valid=False)
        except httpx.HTTPError as exc:
            log.info("seek_probe_http_error", url=url, error=str(exc))
            return SeekCheck(is_valid=False)
        except Exception as exc:  # noqa: BLE001
            log.info("seek_probe_failed", url=url, error=str(exc))
            return SeekCheck(is_valid=False)

        if require_partial_content:
            is_valid = status == 206
        else:
            is_valid = status in (200, 206)

        check = SeekCheck(
            is_valid=is_valid,
            status_code=status,
            filename=parse_disposition_filename(headers.get("content-disposition")),
            content_length=parse_content_length(headers, status),
        )
        log.debug(
            "seek_probe_result",
            url=url,
            status_code=status,
            valid=is_valid,
            content_length=check.content_length,
        )
        return check
