"""Domain entities for the link-resolution pipeline.

Pure value objects without framework dependencies or I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

MediaType = Literal["movie", "series"]
LinkKind = Literal["wrapper", "id_hoster", "direct", "unknown"]


@dataclass(frozen=True)
class DownloadOption:
    """One download entry scraped from a content/download page."""

    quality_label: str  # "1080p", "720p - GDFlix", "Download"
    size_hint: str | None
    target_url: str  # Always absolute


@dataclass(frozen=True)
class ResolutionRequest:
    """Input to the intermediary resolver."""

    target_url: str
    source_page_url: str  # Base for relative-URL resolution
    quality_hint: str | None = None


@dataclass(frozen=True)
class ResolvedCandidate:
    """A same-level alternative found while scanning one wrapper page.

    ``weight`` is a heuristic priority (higher = more trusted), never
    persisted beyond a single scan.
    """

    href: str
    display_text: str  # Lower-cased anchor text
    weight: int = 0


@dataclass(frozen=True)
class LinkClass:
    """Result of classifying a URL by shape."""

    is_wrapper: bool = False
    is_id_based_hoster: bool = False
    is_direct_candidate: bool = False

    @property
    def kind(self) -> LinkKind:
        """Ordered decision: wrapper, then ID-hoster, then direct, else unknown."""
        if self.is_wrapper:
            return "wrapper"
        if self.is_id_based_hoster:
            return "id_hoster"
        if self.is_direct_candidate:
            return "direct"
        return "unknown"


@dataclass(frozen=True)
class SeekCheck:
    """Outcome of a byte-range probe against a direct media URL."""

    is_valid: bool
    status_code: int | None = None
    filename: str | None = None
    content_length: int | None = None


@dataclass(frozen=True)
class TerminalStream:
    """The externally visible unit handed to the formatting layer."""

    url: str
    label: str
    size_text: str | None = None
    languages: tuple[str, ...] = ()


@dataclass(frozen=True)
class TitleMeta:
    """Canonical title information for a requested title id."""

    name: str
    original_title: str | None = None
    year: int | None = None


@dataclass(frozen=True)
class SearchHit:
    """A single search result from the content site."""

    title: str
    url: str


@dataclass(frozen=True)
class ContentPage:
    """A loaded content detail page."""

    title: str
    download_pages: tuple[str, ...] = ()
    languages: tuple[str, ...] = ()


@dataclass(frozen=True)
class DirectPageMeta:
    """Metadata read from a download link that is already a hoster page."""

    title: str | None = None
    size: str | None = None
    candidates: tuple[str, ...] = ()


@dataclass(frozen=True)
class StremioStream:
    """Stremio protocol Stream object (JSON-serializable)."""

    name: str  # Bold title in Stremio UI, e.g. "MKVCinemas"
    title: str  # Multi-line description below the name
    url: str
    behavior_hints: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "title": self.title, "url": self.url}
        if self.behavior_hints:
            data["behaviorHints"] = self.behavior_hints
        return data


@dataclass(frozen=True)
class PendingOption:
    """A download option queued for resolution, with the page it came from."""

    option: DownloadOption
    source_page_url: str
