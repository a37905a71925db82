"""httpx + BeautifulSoup implementation of ``FetchPort``.

Every component fetches through this adapter.  Transport failures are
logged and flattened to ``None`` here so nothing above the fetch
boundary has to handle httpx exceptions.
"""

from __future__ import annotations

import httpx
import structlog

from mirrorchase.domain.ports.fetcher import FetchResponse
from mirrorchase.infrastructure.common import html_selectors
from mirrorchase.infrastructure.config.schema import AppConfig

from .retry_transport import RetryTransport

log = structlog.get_logger(__name__)

_BROWSER_ACCEPT = (
    "text/html,application/xhtml+xml,application/xml;q=0.9,"
    "image/avif,image/webp,*/*;q=0.8"
)


def create_http_client(config: AppConfig) -> httpx.AsyncClient:
    """Build the shared AsyncClient (retrying transport, browser headers)."""
    transport = RetryTransport(
        httpx.AsyncHTTPTransport(),
        max_retries=config.http_max_retries,
    )
    return httpx.AsyncClient(
        transport=transport,
        timeout=config.http_timeout_seconds,
        follow_redirects=config.http_follow_redirects,
        headers={
            "User-Agent": config.http_user_agent,
            "Accept": _BROWSER_ACCEPT,
            "Accept-Language": "en-US,en;q=0.9",
        },
    )


class HttpxFetcher:
    """Fetch-and-parse adapter over a shared ``httpx.AsyncClient``.

    Satisfies ``FetchPort``.
    """

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self._http = http_client

    async def fetch(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: dict[str, str] | None = None,
        parse_html: bool = False,
        timeout_ms: int | None = None,
    ) -> FetchResponse | None:
        """Fetch *url*; ``None`` on timeout, transport error, non-2xx or a URL
        httpx cannot encode.
        """
        kwargs: dict[str, object] = {"headers": headers}
        if timeout_ms is not None:
            kwargs["timeout"] = timeout_ms / 1000.0
        try:
            resp = await self._http.request(method.upper(), url, **kwargs)
            resp.raise_for_status()
        except httpx.TimeoutException:
            log.warning("fetch_timeout", url=url, timeout_ms=timeout_ms)
            return None
        except httpx.HTTPStatusError as exc:
            log.warning("fetch_http_error", url=url, status=exc.response.status_code)
            return None
        except httpx.HTTPError as exc:
            log.warning("fetch_transport_error", url=url, error=str(exc))
            return None
        except Exception as exc:  # noqa: BLE001
            log.warning("fetch_unexpected_error", url=url, error=str(exc))
            return None

        body = resp.text
        document = None
        if parse_html:
            document = html_selectors.parse_html(body)

        log.debug("fetch_ok", url=url, status=resp.status_code, final_url=str(resp.url))
        return FetchResponse(
            status_code=resp.status_code,
            url=str(resp.url),
            body=body,
            headers=dict(resp.headers),
            document=document,
        )
