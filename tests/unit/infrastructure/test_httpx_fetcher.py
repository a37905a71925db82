"""Tests for HttpxFetcher and the shared client factory."""

from __future__ import annotations

import httpx
import pytest
import respx

from mirrorchase.infrastructure.config.schema import AppConfig
from mirrorchase.infrastructure.fetch.httpx_fetcher import HttpxFetcher, create_http_client
from mirrorchase.infrastructure.fetch.retry_transport import RetryTransport

_URL = "https://filesdl.live/view/42"


@pytest.fixture()
def http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient()


class TestHttpxFetcher:
    @respx.mock
    @pytest.mark.asyncio
    async def test_ok_with_document(self, http_client: httpx.AsyncClient) -> None:
        respx.get(_URL).respond(200, html="<html><h1>Title</h1></html>")

        resp = await HttpxFetcher(http_client).fetch(_URL, parse_html=True)

        assert resp is not None
        assert resp.status_code == 200
        assert resp.url == _URL
        assert resp.document is not None
        assert resp.document.select_one("h1").get_text() == "Title"

    @respx.mock
    @pytest.mark.asyncio
    async def test_no_document_unless_requested(self, http_client: httpx.AsyncClient) -> None:
        respx.get(_URL).respond(200, text="plain")

        resp = await HttpxFetcher(http_client).fetch(_URL)

        assert resp is not None
        assert resp.body == "plain"
        assert resp.document is None

    @respx.mock
    @pytest.mark.asyncio
    async def test_forwards_method_and_headers(self, http_client: httpx.AsyncClient) -> None:
        route = respx.post(_URL).respond(200, text="ok")

        await HttpxFetcher(http_client).fetch(
            _URL, method="post", headers={"Referer": "https://filesdl.live/"}
        )

        assert route.called
        assert route.calls.last.request.headers["Referer"] == "https://filesdl.live/"

    @respx.mock
    @pytest.mark.asyncio
    async def test_non_2xx_returns_none(self, http_client: httpx.AsyncClient) -> None:
        respx.get(_URL).respond(404)
        assert await HttpxFetcher(http_client).fetch(_URL) is None

    @respx.mock
    @pytest.mark.asyncio
    async def test_transport_error_returns_none(self, http_client: httpx.AsyncClient) -> None:
        respx.get(_URL).mock(side_effect=httpx.ConnectError("refused"))
        assert await HttpxFetcher(http_client).fetch(_URL) is None

    @respx.mock
    @pytest.mark.asyncio
    async def test_timeout_returns_none(self, http_client: httpx.AsyncClient) -> None:
        respx.get(_URL).mock(side_effect=httpx.ReadTimeout("slow"))
        assert await HttpxFetcher(http_client).fetch(_URL, timeout_ms=500) is None

    @respx.mock
    @pytest.mark.asyncio
    async def test_unencodable_host_returns_none(self, http_client: httpx.AsyncClient) -> None:
        # Invalid IDNA label: httpx fails before any request is sent
        resp = await HttpxFetcher(http_client).fetch("https://xn--a.filesdl.site/cloud/1080")
        assert resp is None


class TestCreateHttpClient:
    @pytest.mark.asyncio
    async def test_client_uses_config(self) -> None:
        config = AppConfig.model_validate(
            {"http": {"timeout_seconds": 7.5, "user_agent": "test-agent/1.0"}}
        )
        client = create_http_client(config)
        try:
            assert client.timeout.read == 7.5
            assert client.headers["User-Agent"] == "test-agent/1.0"
            assert client.follow_redirects is True
            assert isinstance(client._transport, RetryTransport)
        finally:
            await client.aclose()
