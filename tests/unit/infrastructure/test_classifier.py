"""Tests for URL shape classification."""

from __future__ import annotations

import pytest

from mirrorchase.infrastructure.links.classifier import (
    WrapperTier,
    classify,
    is_direct_candidate,
    is_direct_download_page,
    wrapper_tier,
)


class TestClassify:
    @pytest.mark.parametrize(
        "url",
        [
            "https://linkmake.in/view/abc123",
            "https://filesdl.site/cloud/xyz",
            "https://filesdl.live/view/42",
            "https://filesdl.in/watch/9",
            "https://gdflix.filesdl.in/file/abc",
            "https://new.gdflix.net/file/abc",
        ],
    )
    def test_wrappers(self, url: str) -> None:
        assert classify(url).is_wrapper is True
        assert classify(url).kind == "wrapper"

    @pytest.mark.parametrize(
        "url",
        [
            "https://hubcloud.fyi/drive/abc",
            "https://vcloud.zip/xyz",
            "https://hubdrive.space/file/1",
            "https://gdlink.dev/file/2",
            "https://fast-dl.lol/dl/3",
        ],
    )
    def test_id_hosters(self, url: str) -> None:
        result = classify(url)
        assert result.is_id_based_hoster is True
        assert result.is_wrapper is False
        assert result.kind == "id_hoster"

    def test_gdflix_file_is_wrapper_and_id_hoster(self) -> None:
        result = classify("https://gdflix.net/file/abc")
        assert result.is_wrapper is True
        assert result.is_id_based_hoster is True
        assert result.kind == "wrapper"

    @pytest.mark.parametrize(
        "url",
        [
            "https://cdn.example.com/movie.mkv",
            "https://cdn.example.com/movie.MP4?token=1",
            "https://pixeldrain.com/api/file/abc123?download",
            "https://bucket.r2.dev/x",
            "https://drive.google.com/uc?id=1",
            "https://video.workers.dev/abc",
            "https://bbdownload.filesdl.in/file/1",
        ],
    )
    def test_direct_candidates(self, url: str) -> None:
        result = classify(url)
        assert result.is_direct_candidate is True
        assert result.kind == "direct"

    def test_unknown_shape(self) -> None:
        result = classify("https://example.com/page")
        assert result.is_wrapper is False
        assert result.is_id_based_hoster is False
        assert result.is_direct_candidate is False
        assert result.kind == "unknown"

    def test_empty_url(self) -> None:
        assert classify("").kind == "unknown"

    def test_extension_must_end_path(self) -> None:
        assert is_direct_candidate("https://example.com/movie.mkv/page") is False


class TestWrapperTier:
    def test_first_tier(self) -> None:
        assert wrapper_tier("https://linkmake.in/view/abc") is WrapperTier.FIRST

    @pytest.mark.parametrize(
        "url",
        [
            "https://filesdl.site/cloud/a",
            "https://filesdl.in/cloud/a",
            "https://filesdl.live/cloud/a",
        ],
    )
    def test_second_tier(self, url: str) -> None:
        assert wrapper_tier(url) is WrapperTier.SECOND

    def test_other_wrappers_have_no_scan_rules(self) -> None:
        assert wrapper_tier("https://gdflix.filesdl.in/file/abc") is WrapperTier.NONE
        assert wrapper_tier("https://pixeldrain.com/u/abc") is WrapperTier.NONE


class TestDirectDownloadPage:
    def test_hoster_pages(self) -> None:
        assert is_direct_download_page("https://hubdrive.space/file/1")
        assert is_direct_download_page("https://hubcloud.fyi/drive/1")
        assert is_direct_download_page("https://new.gdflix.net/file/1")

    def test_listing_page(self) -> None:
        assert not is_direct_download_page("https://filesdl.live/view/123")
