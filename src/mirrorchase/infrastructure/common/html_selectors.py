"""BeautifulSoup helpers shared by the extractor, resolver and scrapers.

``extract_text`` accepts a primary selector plus optional fallbacks; the
first selector whose match has non-empty text wins.
"""

from __future__ import annotations

from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, Tag

# Hrefs that never point at a fetchable page.
_SKIP_SCHEMES: tuple[str, ...] = ("javascript:", "mailto:", "tel:", "data:")


def parse_html(html: str) -> BeautifulSoup:
    """Parse an HTML string into a BeautifulSoup tree (``lxml`` parser)."""
    return BeautifulSoup(html, "lxml")


def to_absolute_url(href: str | None, base_url: str) -> str | None:
    """Resolve *href* against *base_url*.

    Returns ``None`` for empty, fragment-only, non-http(s) or otherwise
    malformed hrefs (pages routinely carry decorative anchors).
    """
    if not href:
        return None
    href = href.strip()
    if not href or href.startswith("#") or href.lower().startswith(_SKIP_SCHEMES):
        return None
    try:
        absolute = urljoin(base_url, href)
        parsed = urlparse(absolute)
    except ValueError:
        return None
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    return absolute


def extract_text(
    element: Tag,
    selector: str,
    *fallback_selectors: str,
    default: str = "",
    strip: bool = True,
) -> str:
    """Extract text from the first matching child element.

    With ``selector=""`` the element's own text is returned.
    """
    if selector == "":
        text = element.get_text(strip=strip)
        return text if text else default

    for sel in (selector, *fallback_selectors):
        match = element.select_one(sel)
        if match:
            text = match.get_text(strip=strip)
            if text:
                return text
    return default

