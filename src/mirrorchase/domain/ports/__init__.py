from .cache import CachePort
from .fetcher import FetchPort, FetchResponse
from .metadata import MetadataPort, TitleFallbackPort
from .search import ContentSearchPort
from .validator import SeekValidatorPort

__all__ = [
    "CachePort",
    "ContentSearchPort",
    "FetchPort",
    "FetchResponse",
    "MetadataPort",
    "SeekValidatorPort",
    "TitleFallbackPort",
]
