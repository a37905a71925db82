"""Shared test fixtures for the mirrorchase test suite."""

from __future__ import annotations

from dataclasses import dataclass, field
from unittest.mock import AsyncMock

import pytest

from mirrorchase.domain.entities.links import SeekCheck
from mirrorchase.domain.ports.fetcher import FetchResponse
from mirrorchase.infrastructure.cache.ttl_cache import PageCaches
from mirrorchase.infrastructure.common import html_selectors

# ---------------------------------------------------------------------------
# Fake ports
# ---------------------------------------------------------------------------


@dataclass
class FakeFetcher:
    """In-memory FetchPort: URL -> HTML body, missing URL -> None."""

    pages: dict[str, str] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)

    async def fetch(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: dict[str, str] | None = None,
        parse_html: bool = False,
        timeout_ms: int | None = None,
    ) -> FetchResponse | None:
        self.calls.append(url)
        body = self.pages.get(url)
        if body is None:
            return None
        return FetchResponse(
            status_code=200,
            url=url,
            body=body,
            document=html_selectors.parse_html(body) if parse_html else None,
        )


class ManualClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture()
def caches(clock: ManualClock) -> PageCaches:
    """Fresh cache namespaces with a 10 minute TTL on a manual clock."""
    return PageCaches.create(600_000, clock=clock)


@pytest.fixture()
def seekable_validator() -> AsyncMock:
    """SeekValidatorPort that accepts every URL."""
    validator = AsyncMock()
    validator.validate = AsyncMock(
        return_value=SeekCheck(is_valid=True, status_code=206, content_length=1_500_000_000)
    )
    return validator
