from .links import (
    ContentPage,
    DirectPageMeta,
    DownloadOption,
    LinkClass,
    MediaType,
    PendingOption,
    ResolutionRequest,
    ResolvedCandidate,
    SearchHit,
    SeekCheck,
    StremioStream,
    TerminalStream,
    TitleMeta,
)

__all__ = [
    "ContentPage",
    "DirectPageMeta",
    "DownloadOption",
    "LinkClass",
    "MediaType",
    "PendingOption",
    "ResolutionRequest",
    "ResolvedCandidate",
    "SearchHit",
    "SeekCheck",
    "StremioStream",
    "TerminalStream",
    "TitleMeta",
]
