"""Terminal streams to Stremio protocol stream objects.

Pure transformation logic plus guessit-based language detection.
"""

from __future__ import annotations

import re
from urllib.parse import quote, urlsplit, urlunsplit

import structlog
from guessit import guessit

from mirrorchase.domain.entities.links import StremioStream, TerminalStream

log = structlog.get_logger(__name__)

BINGE_GROUP = "mkvcinemas-streams"

_FLAGS: dict[str, str] = {
    "en": "🇬🇧",
    "hi": "🇮🇳",
    "ta": "🇮🇳",
    "te": "🇮🇳",
    "ml": "🇮🇳",
    "kn": "🇮🇳",
    "bn": "🇮🇳",
    "ko": "🇰🇷",
    "ja": "🇯🇵",
    "zh": "🇨🇳",
    "es": "🇪🇸",
    "fr": "🇫🇷",
    "de": "🇩🇪",
    "it": "🇮🇹",
    "ru": "🇷🇺",
    "pt": "🇵🇹",
}

# Release-title markers guessit does not map to a language
_DUAL_AUDIO_RE = re.compile(r"\bdual[\s.-]?audio\b", re.IGNORECASE)
_HINDI_RE = re.compile(r"\bhindi\b", re.IGNORECASE)


def _language_code(lang_obj: object) -> str | None:
    """Extract a 2-letter language code from a guessit Language object."""
    alpha2 = getattr(lang_obj, "alpha2", None)
    if alpha2:
        return str(alpha2)
    return None


def detect_languages(title: str | None) -> tuple[str, ...]:
    """Audio languages named in a release/content title, in order.

    Examples:
        "Movie 2024 Hindi English 1080p" -> ("hi", "en")
        "Movie 2024 Dual Audio 720p"     -> ("hi", "en")
    """
    if not title:
        return ()

    codes: list[str] = []
    try:
        guess = guessit(title)
    except Exception:  # noqa: BLE001
        log.debug("language_detect_failed", title=title, exc_info=True)
        guess = {}

    langs = guess.get("language") or []
    if not isinstance(langs, list):
        langs = [langs]
    for lang in langs:
        code = _language_code(lang)
        if code and code not in codes:
            codes.append(code)

    if _HINDI_RE.search(title) and "hi" not in codes:
        codes.append("hi")
    if _DUAL_AUDIO_RE.search(title):
        for code in ("hi", "en"):
            if code not in codes:
                codes.append(code)
    return tuple(codes)


def render_language_flags(languages: tuple[str, ...] | list[str]) -> str:
    """Flag emojis for known language codes, deduplicated."""
    flags: list[str] = []
    for code in languages:
        flag = _FLAGS.get(code.lower())
        if flag and flag not in flags:
            flags.append(flag)
    return " ".join(flags)


def encode_stream_url(url: str) -> str:
    """Percent-encode unsafe path/query characters, keep existing escapes."""
    parts = urlsplit(url)
    path = quote(parts.path, safe="/%:@!$&'()*+,;=-._~")
    query = quote(parts.query, safe="=&%:@!$'()*+,;/?-._~")
    return urlunsplit((parts.scheme, parts.netloc, path, query, parts.fragment))


def _format_single(stream: TerminalStream, provider: str) -> StremioStream:
    lines = [stream.label]
    meta_parts: list[str] = []
    if stream.size_text:
        meta_parts.append(f"💾 {stream.size_text}")
    meta_parts.append(provider)
    lines.append(" | ".join(meta_parts))
    flags = render_language_flags(stream.languages)
    if flags:
        lines.append(flags)

    return StremioStream(
        name=provider,
        title="\n".join(lines),
        url=encode_stream_url(stream.url),
        behavior_hints={"bingeGroup": BINGE_GROUP},
    )


def format_streams(streams: list[TerminalStream], *, provider: str) -> list[StremioStream]:
    """Convert terminal streams into Stremio stream objects (order kept)."""
    return [_format_single(s, provider) for s in streams]
