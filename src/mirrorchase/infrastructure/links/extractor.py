"""Download option extraction from content and download pages.

A page is run through a prioritized chain of rules.  Each rule turns a
parsed document into ``DownloadOption`` records; the chain merges them
with dedupe by absolute URL, so an earlier rule wins a shared link.

Supported page shapes:
    .download-box containers   quality in <h2>, size in .filesize
    episode sections           <h3|h4|h5>EPISODE N</..> followed by a box
    loose hosting anchors      anything that looks like a mirror link
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from typing import Protocol

import structlog
from bs4 import BeautifulSoup, Tag

from mirrorchase.domain.entities.links import DownloadOption
from mirrorchase.infrastructure.common.html_selectors import (
    extract_text,
    to_absolute_url,
)
from mirrorchase.infrastructure.common.parsers import extract_size_from_text

log = structlog.get_logger(__name__)

_EPISODE_HEADING_RE = re.compile(r"EPISODE\s*(\d+)")
_EPISODE_HEADINGS = "h3, h4, h5"
_BOX_QUALITY_CLASS_RE = re.compile(r"^q(\d+)$")

# How many non-box siblings may sit between an episode heading and its box
_MAX_SIBLING_WALK = 5

_HOSTING_HREF_RE = re.compile(r"gdflix|vcloud|filesdl\.site/cloud|filesdl\.in/watch", re.IGNORECASE)
_VIEW_HREF_RE = re.compile(r"filesdl\.live/view/\d+", re.IGNORECASE)
_DOWNLOAD_WORD_RE = re.compile(r"download", re.IGNORECASE)
_HOSTING_TEXT_RE = re.compile(r"gdflix|direct download|fast cloud|download", re.IGNORECASE)

_DEFAULT_QUALITY = "Download"


class ExtractionRule(Protocol):
    """One independently testable extraction strategy."""

    name: str

    def apply(self, document: BeautifulSoup | Tag, base_url: str) -> list[DownloadOption]: ...


def _anchor_text(anchor: Tag) -> str:
    return anchor.get_text(" ", strip=True)


def dedupe_options(options: Iterable[DownloadOption]) -> list[DownloadOption]:
    """Drop repeated target URLs, keeping the first occurrence."""
    seen: set[str] = set()
    unique: list[DownloadOption] = []
    for opt in options:
        if opt.target_url in seen:
            continue
        seen.add(opt.target_url)
        unique.append(opt)
    return unique


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


class DownloadBoxRule:
    """``.download-box`` containers with a primary GDFlix button."""

    name = "download_box"

    def apply(self, document: BeautifulSoup | Tag, base_url: str) -> list[DownloadOption]:
        options: list[DownloadOption] = []
        for box in document.select(".download-box"):
            target = self._primary_target(box, base_url)
            if target is None:
                continue
            quality = extract_text(box, "h2")
            size = extract_text(box, ".filesize")
            options.append(
                DownloadOption(
                    quality_label=quality or _DEFAULT_QUALITY,
                    size_hint=size or None,
                    target_url=target,
                )
            )
        return options

    @staticmethod
    def _primary_target(box: Tag, base_url: str) -> str | None:
        button = box.select_one("a.btn-gdflix[href]")
        if button is not None:
            target = to_absolute_url(str(button["href"]), base_url)
            if target is not None:
                return target
        # Last usable matching anchor wins
        found: str | None = None
        for anchor in box.select("a[href]"):
            href = str(anchor["href"])
            text = _anchor_text(anchor).lower()
            if "vcloud" in href or "gdflix" in href or "gdflix" in text:
                found = to_absolute_url(href, base_url) or found
        return found


class EpisodeSectionRule:
    """Heading-introduced episode blocks.

    Without *episode* every episode section on the page contributes; with
    it, only the section whose heading carries that number does.
    """

    name = "episode_section"

    def __init__(self, episode: int | None = None) -> None:
        self._episode = episode

    def apply(self, document: BeautifulSoup | Tag, base_url: str) -> list[DownloadOption]:
        options: list[DownloadOption] = []
        for number, heading in find_episode_headings(document):
            if self._episode is not None and number != self._episode:
                continue
            box = _next_download_box(heading)
            if box is None:
                log.debug("episode_box_missing", episode=number)
                continue
            options.extend(_box_anchor_options(box, base_url))
        return options


class HostingAnchorRule:
    """Whole-page scan for anchors that look like hosting links."""

    name = "hosting_anchor"

    def apply(self, document: BeautifulSoup | Tag, base_url: str) -> list[DownloadOption]:
        options: list[DownloadOption] = []
        for anchor in document.select("a[href]"):
            href = str(anchor["href"])
            text = _anchor_text(anchor)
            if not self._looks_like_hosting(href, text):
                continue
            target = to_absolute_url(href, base_url)
            if target is None:
                continue
            options.append(
                DownloadOption(
                    quality_label=text or _DEFAULT_QUALITY,
                    size_hint=extract_size_from_text(text),
                    target_url=target,
                )
            )
        return options

    @staticmethod
    def _looks_like_hosting(href: str, text: str) -> bool:
        if _HOSTING_HREF_RE.search(href):
            return True
        if _VIEW_HREF_RE.search(href) and _DOWNLOAD_WORD_RE.search(text):
            return True
        return bool(_HOSTING_TEXT_RE.search(text))


DEFAULT_RULES: tuple[ExtractionRule, ...] = (
    DownloadBoxRule(),
    EpisodeSectionRule(),
    HostingAnchorRule(),
)


# ---------------------------------------------------------------------------
# Episode helpers
# ---------------------------------------------------------------------------


def find_episode_headings(document: BeautifulSoup | Tag) -> list[tuple[int, Tag]]:
    """All ``(episode_number, heading)`` pairs in document order."""
    found: list[tuple[int, Tag]] = []
    for heading in document.select(_EPISODE_HEADINGS):
        match = _EPISODE_HEADING_RE.search(heading.get_text(" ", strip=True).upper())
        if match:
            found.append((int(match.group(1)), heading))
    return found


def _is_episode_heading(tag: Tag) -> bool:
    return tag.name in ("h3", "h4", "h5") and bool(
        _EPISODE_HEADING_RE.search(tag.get_text(" ", strip=True).upper())
    )


def _next_download_box(heading: Tag) -> Tag | None:
    """Walk forward past at most five siblings to the next download box.

    The walk ends at the next episode heading so a heading without a box
    never borrows the following episode's links.
    """
    sibling = heading.find_next_sibling()
    for _ in range(_MAX_SIBLING_WALK + 1):
        if sibling is None or _is_episode_heading(sibling):
            return None
        if "download-box" in (sibling.get("class") or []):
            return sibling
        sibling = sibling.find_next_sibling()
    return None


def _box_quality(box: Tag) -> str:
    for cls in box.get("class") or []:
        match = _BOX_QUALITY_CLASS_RE.match(cls)
        if match:
            return f"{match.group(1)}p"
    return _DEFAULT_QUALITY


def _box_anchor_options(box: Tag, base_url: str) -> list[DownloadOption]:
    quality = _box_quality(box)
    options: list[DownloadOption] = []
    for anchor in box.select("a[href]"):
        target = to_absolute_url(str(anchor["href"]), base_url)
        if target is None:
            continue
        text = _anchor_text(anchor)
        options.append(
            DownloadOption(
                quality_label=f"{quality} - {text}" if text else quality,
                size_hint=extract_size_from_text(text),
                target_url=target,
            )
        )
    return options


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------


def extract_options(
    document: BeautifulSoup | Tag,
    base_url: str,
    rules: Sequence[ExtractionRule] = DEFAULT_RULES,
) -> list[DownloadOption]:
    """Run *rules* in priority order and merge with dedupe by URL."""
    collected: list[DownloadOption] = []
    for rule in rules:
        found = rule.apply(document, base_url)
        if found:
            log.debug("extraction_rule_matched", rule=rule.name, count=len(found), page=base_url)
        collected.extend(found)
    return dedupe_options(collected)


def extract_episode_options(
    document: BeautifulSoup | Tag,
    base_url: str,
    episode: int,
) -> list[DownloadOption]:
    """Options for one episode of a season download page.

    Pages without any episode headings degrade to the whole-page list;
    pages with headings but none for *episode* yield ``[]``.
    """
    headings = find_episode_headings(document)
    if not headings:
        log.debug("episode_headings_missing", page=base_url, episode=episode)
        return extract_options(document, base_url)

    if not any(number == episode for number, _ in headings):
        log.info("episode_not_on_page", page=base_url, episode=episode)
        return []

    return dedupe_options(EpisodeSectionRule(episode).apply(document, base_url))
