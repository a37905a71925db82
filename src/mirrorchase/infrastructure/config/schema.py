"""Pydantic configuration models with validation."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36"
)


class CacheConfig(BaseModel):
    """Page/result cache configuration (in-memory only)."""

    page_ttl_ms: int = Field(
        default=10 * 60 * 1000,
        description="TTL for cached page scans and option lists (milliseconds).",
    )
    max_entries: Optional[int] = Field(
        default=None,
        description="Optional per-namespace size bound. None = unbounded.",
    )

    @field_validator("page_ttl_ms")
    @classmethod
    def _validate_ttl(cls, v: int) -> int:
        if v < 0:
            raise ValueError("page_ttl_ms must be >= 0")
        return v

    @field_validator("max_entries")
    @classmethod
    def _validate_max_entries(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v <= 0:
            raise ValueError("max_entries must be > 0")
        return v


class ResolutionConfig(BaseModel):
    """Configuration for the link-resolution fan-out and validation."""

    provider_name: str = Field(
        default="MKVCinemas",
        description="Provider label shown on formatted streams.",
    )
    concurrency_limit: int = Field(
        default=4,
        description="Max parallel option resolutions per title request.",
    )
    max_hops: int = Field(
        default=5,
        description="Upper bound on wrapper hops per resolution.",
    )
    seek_timeout_ms: int = Field(
        default=4000,
        description="Timeout for the byte-range seekability probe.",
    )
    filename_timeout_ms: int = Field(
        default=5000,
        description="Timeout for hoster filename recovery fetches.",
    )
    require_partial_content: bool = Field(
        default=True,
        description="Only accept 206 Partial Content as seekable.",
    )

    @field_validator(
        "concurrency_limit", "max_hops", "seek_timeout_ms", "filename_timeout_ms"
    )
    @classmethod
    def _validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("value must be > 0")
        return v


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (http/logging/cache/resolution).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="mirrorchase", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # HTTP (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=15.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="Default HTTP timeout in seconds for page fetches.",
    )
    http_follow_redirects: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "http_follow_redirects",
            AliasPath("http", "follow_redirects"),
        ),
        description="Whether the HTTP client follows redirects.",
    )
    http_user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="User-Agent for outgoing HTTP requests.",
    )
    http_max_retries: int = Field(
        default=2,
        validation_alias=AliasChoices(
            "http_max_retries",
            AliasPath("http", "max_retries"),
        ),
        description="Retries on 429/503 responses (fetch adapter only).",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    # Cache (YAML section: cache.*)
    cache: CacheConfig = Field(default_factory=CacheConfig)

    # Resolution (YAML section: resolution.*)
    resolution: ResolutionConfig = Field(default_factory=ResolutionConfig)

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @field_validator("http_max_retries")
    @classmethod
    def _validate_retries(cls, v: int) -> int:
        if v < 0:
            raise ValueError("http_max_retries must be >= 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "follow_redirects": self.http_follow_redirects,
                "user_agent": self.http_user_agent,
                "max_retries": self.http_max_retries,
            },
            "logging": {"level": self.log_level, "format": self.log_format},
            "cache": self.cache.model_dump(),
            "resolution": self.resolution.model_dump(),
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Intended usage:
    - load.py creates EnvOverrides() to read MIRRORCHASE_* variables,
      converts to dict of set values, merges into YAML/defaults,
      then validates AppConfig.

    Supported env var examples (flat, explicit):
    - MIRRORCHASE_HTTP_TIMEOUT_SECONDS
    - MIRRORCHASE_LOG_LEVEL
    - MIRRORCHASE_PAGE_CACHE_TTL_MS
    - MIRRORCHASE_CONCURRENCY_LIMIT
    """

    model_config = SettingsConfigDict(
        env_prefix="MIRRORCHASE_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_follow_redirects: Optional[bool] = None
    http_user_agent: Optional[str] = None
    http_max_retries: Optional[int] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    page_cache_ttl_ms: Optional[int] = None
    cache_max_entries: Optional[int] = None

    provider_name: Optional[str] = None
    concurrency_limit: Optional[int] = None
    max_hops: Optional[int] = None
    seek_timeout_ms: Optional[int] = None
    filename_timeout_ms: Optional[int] = None
    require_partial_content: Optional[bool] = None

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
