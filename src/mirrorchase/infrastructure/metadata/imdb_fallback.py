"""IMDb title fallback for ids the metadata service cannot name.

Scrapes the public title page first and falls back to the IMDb Suggest
API (free, no key) when the page is blocked or unparseable.
"""

from __future__ import annotations

import json
import re
from typing import Any

import structlog

from mirrorchase.domain.entities.links import TitleMeta
from mirrorchase.domain.ports.fetcher import FetchPort
from mirrorchase.infrastructure.common.html_selectors import extract_text

log = structlog.get_logger(__name__)

_TITLE_PAGE_URL = "https://www.imdb.com/title/{imdb_id}/"
_SUGGEST_URL = "https://v2.sg.media-imdb.com/suggestion/t/{imdb_id}.json"
_IMDB_ID_RE = re.compile(r"^tt\d+$")
_TITLE_SUFFIX_RE = re.compile(r"\s*-\s*IMDb.*$", re.IGNORECASE)
_YEAR_RE = re.compile(r"\b(?:19|20)\d{2}\b")

_IMDB_HEADERS = {"Accept-Language": "en-US,en;q=0.9"}


def is_imdb_id(title_id: str) -> bool:
    return bool(_IMDB_ID_RE.match(title_id or ""))


class ImdbTitleFallback:
    """Resolves an IMDb id to a name and year.

    Satisfies ``TitleFallbackPort``.  Never raises; ``None`` means the
    title could not be resolved.
    """

    def __init__(self, fetcher: FetchPort) -> None:
        self._fetcher = fetcher

    async def lookup(self, imdb_id: str) -> TitleMeta | None:
        if not is_imdb_id(imdb_id):
            return None

        meta = await self._from_title_page(imdb_id)
        if meta is None:
            meta = await self._from_suggest(imdb_id)

        if meta is None:
            log.info("imdb_fallback_unresolved", imdb_id=imdb_id)
        else:
            log.info("imdb_fallback_resolved", imdb_id=imdb_id, name=meta.name, year=meta.year)
        return meta

    async def _from_title_page(self, imdb_id: str) -> TitleMeta | None:
        response = await self._fetcher.fetch(
            _TITLE_PAGE_URL.format(imdb_id=imdb_id),
            headers=_IMDB_HEADERS,
            parse_html=True,
        )
        if response is None or response.document is None:
            return None

        document = response.document
        name = extract_text(document, 'h1[data-testid="hero__pageTitle"] span')
        if not name:
            name = _TITLE_SUFFIX_RE.sub("", extract_text(document, "title")).strip()
        if not name:
            return None

        release = extract_text(document, 'a[data-testid="title-details-releasedate"]')
        year_match = _YEAR_RE.search(release)
        return TitleMeta(name=name, year=int(year_match.group(0)) if year_match else None)

    async def _from_suggest(self, imdb_id: str) -> TitleMeta | None:
        response = await self._fetcher.fetch(_SUGGEST_URL.format(imdb_id=imdb_id))
        if response is None:
            return None
        try:
            data: dict[str, Any] = json.loads(response.body)
        except ValueError:
            log.warning("imdb_suggest_invalid_json", imdb_id=imdb_id)
            return None

        entries = data.get("d") or []
        entry = next((e for e in entries if e.get("id") == imdb_id), None)
        if entry is None or not entry.get("l"):
            return None
        year = entry.get("y") if isinstance(entry.get("y"), int) else None
        return TitleMeta(name=entry["l"], year=year)
