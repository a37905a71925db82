"""Port for the generic fetch-and-parse primitive."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True)
class FetchResponse:
    """A successful (2xx) response, optionally with a parsed document tree."""

    status_code: int
    url: str  # Final URL after redirects
    body: str
    headers: dict[str, str] = field(default_factory=dict)
    document: Any = None  # BeautifulSoup tree when parse_html=True


@runtime_checkable
class FetchPort(Protocol):
    """Performs one HTTP request.

    Implementations MUST catch transport errors, timeouts and non-2xx
    statuses themselves and return ``None``; callers treat ``None`` as
    "no data from this hop" and never see an exception.
    """

    async def fetch(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: dict[str, str] | None = None,
        parse_html: bool = False,
        timeout_ms: int | None = None,
    ) -> FetchResponse | None: ...
