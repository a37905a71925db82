"""Parsing utilities for size, quality and filename extraction."""

from __future__ import annotations

import math
import re
from urllib.parse import unquote, urlparse

_SIZE_IN_TEXT_RE = re.compile(r"([0-9]+(?:\.[0-9]+)?)\s*(TB|GB|MB)", re.IGNORECASE)
_QUALITY_TOKEN_RE = re.compile(r"(2160|1080|720|480)")
_EXTENSION_RE = re.compile(r"\.[^.]+$")

_UNITS: tuple[str, ...] = ("B", "KB", "MB", "GB", "TB")


def extract_size_from_text(text: str | None) -> str | None:
    """Find the first ``<number> TB|GB|MB`` in free text.

    Examples:
        "720p [1.4 gb]" -> "1.4 GB"
        "no size here" -> None
    """
    if not text:
        return None
    match = _SIZE_IN_TEXT_RE.search(text)
    if not match:
        return None
    return f"{match.group(1)} {match.group(2).upper()}"


def extract_quality_token(label: str | None) -> str | None:
    """Return the pixel-height token (``"2160"``, ``"1080"``, …) in *label*."""
    if not label:
        return None
    match = _QUALITY_TOKEN_RE.search(label.lower())
    return match.group(1) if match else None


def format_bytes(num_bytes: int | None) -> str | None:
    """Render a byte count for display.

    Values of 10 or more in the chosen unit (and plain bytes) are shown
    without decimals, smaller ones with two.
    """
    if not num_bytes or num_bytes <= 0:
        return None
    i = min(len(_UNITS) - 1, int(math.floor(math.log(num_bytes) / math.log(1024))))
    value = num_bytes / (1024**i)
    if value >= 10 or i == 0:
        return f"{value:.0f} {_UNITS[i]}"
    return f"{value:.2f} {_UNITS[i]}"


def filename_from_url(url: str) -> str | None:
    """Last path segment of *url*, URL-decoded, extension stripped."""
    try:
        path = urlparse(url).path
    except ValueError:
        return None
    last = path.rsplit("/", 1)[-1]
    if not last:
        return None
    name = _EXTENSION_RE.sub("", unquote(last))
    return name or None
