from __future__ import annotations

from .load import load_config
from .schema import AppConfig, CacheConfig, EnvOverrides, ResolutionConfig

__all__ = ["AppConfig", "CacheConfig", "EnvOverrides", "ResolutionConfig", "load_config"]
