from .classifier import (
    WrapperTier,
    classify,
    is_direct_download_page,
    is_wrapper,
    wrapper_tier,
)
from .extractor import (
    DownloadBoxRule,
    EpisodeSectionRule,
    HostingAnchorRule,
    dedupe_options,
    extract_episode_options,
    extract_options,
)
from .filename import DirectPageInspector, FilenameRecoverer, clean_hoster_title
from .option_resolver import OptionResolver
from .pages import DownloadPageReader
from .resolver import IntermediaryResolver

__all__ = [
    "DirectPageInspector",
    "DownloadBoxRule",
    "DownloadPageReader",
    "EpisodeSectionRule",
    "FilenameRecoverer",
    "HostingAnchorRule",
    "IntermediaryResolver",
    "OptionResolver",
    "WrapperTier",
    "classify",
    "clean_hoster_title",
    "dedupe_options",
    "extract_episode_options",
    "extract_options",
    "is_direct_download_page",
    "is_wrapper",
    "wrapper_tier",
]
