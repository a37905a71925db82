"""URL shape classification for wrapper, ID-hoster and direct links.

Pure regex matching over static pattern tables; no network access.

Wrapper pages come in two tiers:
    FIRST   linkmake.in/view/...              (link lists per quality)
    SECOND  filesdl.(site|in|live)/cloud/...  (per-file mirror pages)

Everything else that looks like a wrapper (gdflix file pages,
filesdl watch/view pages) is still a wrapper for exemption purposes but
has no known scan rules, so the resolver treats it as terminal.
"""

from __future__ import annotations

import enum
import re

from mirrorchase.domain.entities.links import LinkClass

# ---------------------------------------------------------------------------
# Pattern tables
# ---------------------------------------------------------------------------

WRAPPER_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"gdflix\.net/file", re.IGNORECASE),
    re.compile(r"gdflix\.filesdl\.in", re.IGNORECASE),
    re.compile(r"filesdl\.(?:live|site|in)/(?:view|cloud|watch)", re.IGNORECASE),
    re.compile(r"linkmake\.in/view", re.IGNORECASE),
)

ID_HOSTER_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"hubcloud\.(?:fyi|foo|lol)", re.IGNORECASE),
    re.compile(r"fast-dl\.lol", re.IGNORECASE),
    re.compile(r"vcloud\.zip", re.IGNORECASE),
    re.compile(r"hubdrive\.space", re.IGNORECASE),
    re.compile(r"filebee\.xyz", re.IGNORECASE),
    re.compile(r"gdlink\.dev", re.IGNORECASE),
    re.compile(r"gdflix\.\w+/file", re.IGNORECASE),
)

DIRECT_EXTENSIONS_RE = re.compile(r"\.(?:mp4|mkv|webm|mov|m4v|ts)(?:\?|$)", re.IGNORECASE)

DIRECT_HOST_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"pixeldrain", re.IGNORECASE),
    re.compile(r"workers\.dev", re.IGNORECASE),
    re.compile(r"hubcdn\.fans", re.IGNORECASE),
    re.compile(r"r2\.dev", re.IGNORECASE),
    re.compile(r"googleusercontent\.com", re.IGNORECASE),
    re.compile(r"photos\.google", re.IGNORECASE),
    re.compile(r"drive\.google", re.IGNORECASE),
    re.compile(r"awsstorage", re.IGNORECASE),
    re.compile(r"bbdownload\.filesdl\.in", re.IGNORECASE),
)

FIRST_TIER_RE = re.compile(r"linkmake\.in/view", re.IGNORECASE)
SECOND_TIER_RE = re.compile(r"filesdl\.(?:site|in|live)/cloud", re.IGNORECASE)

# Download links on content pages that are hoster pages already
_DIRECT_DOWNLOAD_PAGE_RE = re.compile(r"hubdrive|hubcloud|gdflix", re.IGNORECASE)


class WrapperTier(enum.Enum):
    """Resolver state for one hop."""

    FIRST = "first"
    SECOND = "second"
    NONE = "none"


# ---------------------------------------------------------------------------
# Tier priority tables: (href pattern, weight), first match wins
# ---------------------------------------------------------------------------

FIRST_TIER_PRIORITIES: tuple[tuple[re.Pattern[str], int], ...] = (
    (re.compile(r"gdflix\.filesdl\.in", re.IGNORECASE), 100),
    (re.compile(r"filesdl\.in/watch", re.IGNORECASE), 90),
    (SECOND_TIER_RE, 80),
)

SECOND_TIER_DOWNLOAD_LINK_WEIGHT = 120

SECOND_TIER_PRIORITIES: tuple[tuple[re.Pattern[str], int], ...] = (
    (
        re.compile(
            r"awsstorage|bbdownload\.filesdl\.in|filesdl\.in/fdownload|workers\.dev"
            r"|googleusercontent|photos\.google|drive\.google|pixeldrain|r2\.dev|hubcdn",
            re.IGNORECASE,
        ),
        110,
    ),
    (re.compile(r"gdflix\.filesdl\.in", re.IGNORECASE), 90),
    (re.compile(r"filesdl\.in/watch", re.IGNORECASE), 80),
)

SECOND_TIER_TEXT_RE = re.compile(
    r"fast cloud|direct download|watch online|slowcloud|cloud", re.IGNORECASE
)
SECOND_TIER_TEXT_WEIGHT = 70


def _any_match(patterns: tuple[re.Pattern[str], ...], url: str) -> bool:
    return any(p.search(url) for p in patterns)


def is_wrapper(url: str) -> bool:
    return _any_match(WRAPPER_PATTERNS, url)


def is_id_based_hoster(url: str) -> bool:
    return _any_match(ID_HOSTER_PATTERNS, url)


def is_direct_candidate(url: str) -> bool:
    """Media file extension or a known direct-file host."""
    if DIRECT_EXTENSIONS_RE.search(url):
        return True
    return _any_match(DIRECT_HOST_PATTERNS, url)


def classify(url: str) -> LinkClass:
    """Classify *url* by shape.  The three flags are independent."""
    if not url:
        return LinkClass()
    return LinkClass(
        is_wrapper=is_wrapper(url),
        is_id_based_hoster=is_id_based_hoster(url),
        is_direct_candidate=is_direct_candidate(url),
    )


def wrapper_tier(url: str) -> WrapperTier:
    """Map *url* to the resolver state that handles it."""
    if FIRST_TIER_RE.search(url):
        return WrapperTier.FIRST
    if SECOND_TIER_RE.search(url):
        return WrapperTier.SECOND
    return WrapperTier.NONE


def is_direct_download_page(url: str) -> bool:
    """True for content-page download links that point at a hoster page."""
    return bool(_DIRECT_DOWNLOAD_PAGE_RE.search(url))
