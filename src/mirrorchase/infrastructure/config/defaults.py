"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "mirrorchase",
    "environment": "dev",
    "http": {
        "timeout_seconds": 15.0,
        "follow_redirects": True,
        "max_retries": 2,
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "cache": {
        "page_ttl_ms": 10 * 60 * 1000,
        "max_entries": None,
    },
    "resolution": {
        "provider_name": "MKVCinemas",
        "concurrency_limit": 4,
        "max_hops": 5,
        "seek_timeout_ms": 4000,
        "filename_timeout_ms": 5000,
        "require_partial_content": True,
    },
}
