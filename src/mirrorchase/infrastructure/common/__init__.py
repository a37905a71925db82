"""Common infrastructure utilities for HTML extraction and parsing."""

from __future__ import annotations

from .html_selectors import (
    extract_text,
    parse_html,
    to_absolute_url,
)
from .parsers import (
    extract_quality_token,
    extract_size_from_text,
    filename_from_url,
    format_bytes,
)

__all__ = [
    "extract_quality_token",
    "extract_size_from_text",
    "extract_text",
    "filename_from_url",
    "format_bytes",
    "parse_html",
    "to_absolute_url",
]
