"""Tests for the intermediary wrapper resolver."""

from __future__ import annotations

import httpx
import pytest
import respx

from mirrorchase.domain.entities.links import ResolutionRequest, ResolvedCandidate
from mirrorchase.infrastructure.fetch.httpx_fetcher import HttpxFetcher
from mirrorchase.infrastructure.links.resolver import (
    IntermediaryResolver,
    rank_candidates,
    select_candidate,
)

_SOURCE = "https://filesdl.live/view/100"
_LINKMAKE = "https://linkmake.in/view/abc"
_CLOUD = "https://filesdl.site/cloud/1080"
_PIXELDRAIN = "https://pixeldrain.com/api/file/abc123?download"

_LINKMAKE_PAGE = """\
<html><body>
<a href="https://gdflix.filesdl.in/file/720">GDFlix 720p</a>
<a href="https://filesdl.site/cloud/1080">1080p Cloud</a>
<a href="https://example.com/ads">Ads</a>
</body></html>
"""

_CLOUD_PAGE = f"""\
<html><body>
<a class="download-link" href="{_PIXELDRAIN}">Download [1.4 GB]</a>
<a href="https://gdflix.filesdl.in/file/x">GDFlix</a>
<a href="https://filesdl.in/watch/x">Watch</a>
</body></html>
"""


def _resolver(fetcher, caches, max_hops: int = 5) -> IntermediaryResolver:
    return IntermediaryResolver(fetcher, caches.hops, max_hops=max_hops)


# ---------------------------------------------------------------------------
# Ranking / selection
# ---------------------------------------------------------------------------


class TestRanking:
    def test_sorted_by_weight_descending(self) -> None:
        ranked = rank_candidates(
            [
                ResolvedCandidate("https://a", "a", 70),
                ResolvedCandidate("https://b", "b", 120),
                ResolvedCandidate("https://c", "c", 90),
            ]
        )
        assert [c.weight for c in ranked] == [120, 90, 70]

    def test_dedupe_keeps_highest_weight(self) -> None:
        ranked = rank_candidates(
            [
                ResolvedCandidate("https://a", "a", 90),
                ResolvedCandidate("https://a", "a", 120),
            ]
        )
        assert ranked == [ResolvedCandidate("https://a", "a", 120)]

    def test_quality_token_beats_weight(self) -> None:
        ranked = [
            ResolvedCandidate("https://top", "gdflix 720p", 100),
            ResolvedCandidate("https://low", "1080p cloud", 80),
        ]
        assert select_candidate(ranked, "1080").href == "https://low"

    def test_no_token_match_takes_top(self) -> None:
        ranked = [
            ResolvedCandidate("https://top", "gdflix", 100),
            ResolvedCandidate("https://low", "cloud", 80),
        ]
        assert select_candidate(ranked, "2160").href == "https://top"
        assert select_candidate(ranked, None).href == "https://top"


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------


class TestResolve:
    @pytest.mark.asyncio
    async def test_non_wrapper_returned_absolute(self, fetcher, caches) -> None:
        result = await _resolver(fetcher, caches).resolve(
            ResolutionRequest(target_url="/files/movie.mkv", source_page_url=_SOURCE)
        )
        assert result == "https://filesdl.live/files/movie.mkv"
        assert fetcher.calls == []

    @pytest.mark.asyncio
    async def test_unusable_target(self, fetcher, caches) -> None:
        result = await _resolver(fetcher, caches).resolve(
            ResolutionRequest(target_url="javascript:void(0)", source_page_url=_SOURCE)
        )
        assert result is None

    @pytest.mark.asyncio
    async def test_two_tier_chain_with_quality_hint(self, fetcher, caches) -> None:
        fetcher.pages = {_LINKMAKE: _LINKMAKE_PAGE, _CLOUD: _CLOUD_PAGE}
        result = await _resolver(fetcher, caches).resolve(
            ResolutionRequest(_LINKMAKE, _SOURCE, quality_hint="1080p")
        )
        assert result == _PIXELDRAIN
        assert fetcher.calls == [_LINKMAKE, _CLOUD]

    @pytest.mark.asyncio
    async def test_without_hint_takes_highest_weight(self, fetcher, caches) -> None:
        fetcher.pages = {_LINKMAKE: _LINKMAKE_PAGE, _CLOUD: _CLOUD_PAGE}
        result = await _resolver(fetcher, caches).resolve(ResolutionRequest(_LINKMAKE, _SOURCE))
        assert result == "https://gdflix.filesdl.in/file/720"

    @pytest.mark.asyncio
    async def test_failed_hop_returns_current_url(self, fetcher, caches) -> None:
        fetcher.pages = {_LINKMAKE: _LINKMAKE_PAGE}
        result = await _resolver(fetcher, caches).resolve(
            ResolutionRequest(_LINKMAKE, _SOURCE, quality_hint="1080p")
        )
        assert result == _CLOUD

    @pytest.mark.asyncio
    async def test_empty_candidates_returns_current_url(self, fetcher, caches) -> None:
        fetcher.pages = {_LINKMAKE: "<html><body><p>nothing</p></body></html>"}
        result = await _resolver(fetcher, caches).resolve(ResolutionRequest(_LINKMAKE, _SOURCE))
        assert result == _LINKMAKE

    @pytest.mark.asyncio
    async def test_cycle_hits_hop_bound(self, fetcher, caches) -> None:
        cycle_cloud = "https://filesdl.site/cloud/loop"
        fetcher.pages = {
            _LINKMAKE: f'<a href="{cycle_cloud}">Cloud</a>',
            cycle_cloud: f'<a href="{_LINKMAKE}">Cloud mirror</a>',
        }
        result = await _resolver(fetcher, caches, max_hops=5).resolve(
            ResolutionRequest(_LINKMAKE, _SOURCE)
        )
        assert result == _LINKMAKE
        # Candidate scans are cached, so each page is fetched once
        assert fetcher.calls == [_LINKMAKE, cycle_cloud]

    @pytest.mark.asyncio
    async def test_hop_scans_cached(self, fetcher, caches) -> None:
        fetcher.pages = {_LINKMAKE: _LINKMAKE_PAGE, _CLOUD: _CLOUD_PAGE}
        resolver = _resolver(fetcher, caches)
        request = ResolutionRequest(_LINKMAKE, _SOURCE, quality_hint="1080p")
        first = await resolver.resolve(request)
        second = await resolver.resolve(request)
        assert first == second == _PIXELDRAIN
        assert fetcher.calls == [_LINKMAKE, _CLOUD]

    @pytest.mark.asyncio
    async def test_second_tier_text_weight(self, fetcher, caches) -> None:
        fetcher.pages = {
            _CLOUD: '<a href="https://mirror.example.com/f/1">Slowcloud</a>',
        }
        result = await _resolver(fetcher, caches).resolve(ResolutionRequest(_CLOUD, _SOURCE))
        assert result == "https://mirror.example.com/f/1"

    @respx.mock
    @pytest.mark.asyncio
    async def test_unencodable_hop_falls_back_to_hop_url(self, caches) -> None:
        bad_cloud = "https://xn--a.filesdl.site/cloud/1080"
        respx.get(_LINKMAKE).respond(200, html=f'<a href="{bad_cloud}">1080p Cloud</a>')

        async with httpx.AsyncClient() as client:
            resolver = IntermediaryResolver(HttpxFetcher(client), caches.hops)
            result = await resolver.resolve(
                ResolutionRequest(_LINKMAKE, _SOURCE, quality_hint="1080p")
            )

        assert result == bad_cloud


# ---------------------------------------------------------------------------
# Variant expansion
# ---------------------------------------------------------------------------


class TestExpandVariants:
    @pytest.mark.asyncio
    async def test_one_option_per_variant(self, fetcher, caches) -> None:
        fetcher.pages = {
            _LINKMAKE: """
            <a href="https://filesdl.site/cloud/480">480p [400 MB]</a>
            <a href="https://filesdl.site/cloud/1080">1080p x264 [2.2 GB]</a>
            <a href="https://filesdl.site/cloud/1080">1080p again</a>
            <a href="https://example.com/other">720p elsewhere</a>
            """,
        }
        variants = await _resolver(fetcher, caches).expand_variants(_LINKMAKE, _SOURCE)
        assert [(v.quality_label, v.size_hint, v.target_url) for v in variants] == [
            ("480P DOWNLOAD", "400 MB", "https://filesdl.site/cloud/480"),
            ("1080P DOWNLOAD", "2.2 GB", "https://filesdl.site/cloud/1080"),
        ]

    @pytest.mark.asyncio
    async def test_fetch_failure(self, fetcher, caches) -> None:
        assert await _resolver(fetcher, caches).expand_variants(_LINKMAKE, _SOURCE) == []
