"""Unit tests for the share link lookup providers."""

import hashlib
import json
from unittest.mock import MagicMock, patch

import httpx
import pytest
import yt_dlp

from clipflow.domain.value_objects import SourceFamily
from clipflow.infrastructure.resolvers import (
    ExtractorApiResolver,
    ShareLookupError,
    YtDlpResolver,
    pick_progressive_format,
    sign_request,
)

API_URL = "https://api.extract.test/v1/extract"
LEGACY_URL = "https://legacy.extract.test/extract"

VIDEO_PAYLOAD = {
    "text": "Desk tour @maker.jo",
    "medias": [
        {"media_type": "image", "resource_url": "https://cdn.test/cover.jpg"},
        {
            "media_type": "video",
            "resource_url": "https://cdn.test/fallback.mp4",
            "preview_url": "https://cdn.test/preview.jpg",
            "formats": [
                {"quality": 540, "video_url": "https://cdn.test/540.mp4"},
                {
                    "quality": 1080,
                    "quality_note": "1080p HD",
                    "video_url": "https://cdn.test/1080.mp4",
                    "video_size": 4096,
                },
            ],
        },
    ],
}


def _resolver(handler) -> ExtractorApiResolver:
    return ExtractorApiResolver(
        api_url=API_URL,
        api_key="current-key",
        legacy_api_url=LEGACY_URL,
        legacy_api_key="legacy-key",
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        clock=lambda: 1_700_000_000.0,
    )


class TestSignRequest:
    """Tests for request signing."""

    def test_signature(self):
        expected = hashlib.md5(b"https://x.test/aen1700000000000key").hexdigest()
        assert sign_request("https://x.test/a", "en", "1700000000000", "key") == (
            expected
        )


class TestExtractorApiResolver:
    """Tests for ExtractorApiResolver."""

    async def test_current_api_request(self):
        captured = []

        def handler(request):
            captured.append(request)
            return httpx.Response(200, json=VIDEO_PAYLOAD)

        await _resolver(handler).resolve_share_input(
            "https://v.douyin.com/abc/", SourceFamily.DOUYIN
        )

        request = captured[0]
        assert str(request.url) == API_URL
        assert request.headers["G-Timestamp"] == "1700000000000"
        assert request.headers["Accept-Language"] == "zh"
        assert request.headers["G-Footer"] == sign_request(
            "https://v.douyin.com/abc/", "zh", "1700000000000", "current-key"
        )
        assert json.loads(request.content) == {"link": "https://v.douyin.com/abc/"}

    async def test_legacy_api_request(self):
        captured = []

        def handler(request):
            captured.append(request)
            return httpx.Response(200, json=VIDEO_PAYLOAD)

        await _resolver(handler).resolve_share_input(
            "https://www.instagram.com/reel/abc/", SourceFamily.INSTAGRAM
        )

        request = captured[0]
        assert str(request.url) == LEGACY_URL
        assert "Accept-Language" not in request.headers
        assert request.headers["G-Footer"] == sign_request(
            "https://www.instagram.com/reel/abc/",
            "instagram",
            "1700000000000",
            "legacy-key",
        )
        assert json.loads(request.content) == {
            "url": "https://www.instagram.com/reel/abc/",
            "site": "instagram",
        }

    async def test_picks_highest_quality(self):
        lookup = await _resolver(
            lambda request: httpx.Response(200, json=VIDEO_PAYLOAD)
        ).resolve_share_input("https://vm.tiktok.com/abc/", SourceFamily.TIKTOK)

        assert lookup.media_url == "https://cdn.test/1080.mp4"
        assert lookup.title == "Desk tour @maker.jo"
        assert lookup.cover_url == "https://cdn.test/preview.jpg"
        assert [f.quality for f in lookup.formats] == ["540p", "1080p HD"]
        assert lookup.formats[1].size_bytes == 4096

    async def test_video_without_formats_uses_resource_url(self):
        payload = {
            "medias": [
                {"media_type": "video", "resource_url": "https://cdn.test/v.mp4"}
            ]
        }
        lookup = await _resolver(
            lambda request: httpx.Response(200, json=payload)
        ).resolve_share_input("https://youtu.be/abc", SourceFamily.YOUTUBE)

        assert lookup.media_url == "https://cdn.test/v.mp4"
        assert lookup.title is None

    async def test_audio_only(self):
        payload = {
            "medias": [
                {"media_type": "audio", "resource_url": "https://cdn.test/a.m4a"}
            ]
        }
        lookup = await _resolver(
            lambda request: httpx.Response(200, json=payload)
        ).resolve_share_input("https://youtu.be/abc", SourceFamily.YOUTUBE)

        assert lookup.media_url == "https://cdn.test/a.m4a"

    async def test_no_media(self):
        payload = {"text": "photo post", "medias": [{"media_type": "image"}]}
        lookup = await _resolver(
            lambda request: httpx.Response(200, json=payload)
        ).resolve_share_input("https://youtu.be/abc", SourceFamily.YOUTUBE)

        assert lookup.media_url is None

    async def test_api_error_field(self):
        resolver = _resolver(
            lambda request: httpx.Response(200, json={"error": "link expired"})
        )
        with pytest.raises(ShareLookupError, match="link expired"):
            await resolver.resolve_share_input(
                "https://youtu.be/abc", SourceFamily.YOUTUBE
            )

    async def test_http_error_status(self):
        resolver = _resolver(lambda request: httpx.Response(503))
        with pytest.raises(ShareLookupError) as exc_info:
            await resolver.resolve_share_input(
                "https://youtu.be/abc", SourceFamily.YOUTUBE
            )
        assert "503" in exc_info.value.reason

    async def test_invalid_json(self):
        resolver = _resolver(lambda request: httpx.Response(200, content=b"<html>"))
        with pytest.raises(ShareLookupError, match="invalid JSON"):
            await resolver.resolve_share_input(
                "https://youtu.be/abc", SourceFamily.YOUTUBE
            )

    async def test_unknown_family_has_no_route(self):
        resolver = _resolver(lambda request: httpx.Response(200, json=VIDEO_PAYLOAD))
        with pytest.raises(ShareLookupError, match="no extraction route"):
            await resolver.resolve_share_input(
                "https://example.com/v", SourceFamily.UNKNOWN
            )

    async def test_close_keeps_shared_client(self):
        client = httpx.AsyncClient()
        resolver = ExtractorApiResolver(API_URL, "k", LEGACY_URL, "k", client=client)
        await resolver.close()
        assert not client.is_closed
        await client.aclose()


class TestPickProgressiveFormat:
    """Tests for yt-dlp format selection."""

    def test_prefers_highest_progressive(self):
        formats = [
            {"url": "a", "vcodec": "avc1", "acodec": "mp4a", "height": 360},
            {"url": "b", "vcodec": "avc1", "acodec": "none", "height": 1080},
            {"url": "c", "vcodec": "avc1", "acodec": "mp4a", "height": 720},
        ]
        assert pick_progressive_format(formats)["url"] == "c"

    def test_none_when_no_progressive(self):
        formats = [{"url": "b", "vcodec": "none", "acodec": "mp4a"}]
        assert pick_progressive_format(formats) is None


class TestYtDlpResolver:
    """Tests for YtDlpResolver."""

    @pytest.fixture
    def ydl(self):
        target = "clipflow.infrastructure.resolvers.ytdlp_resolver.yt_dlp.YoutubeDL"
        with patch(target) as cls:
            instance = MagicMock()
            cls.return_value.__enter__.return_value = instance
            yield cls, instance

    async def test_maps_info(self, ydl):
        cls, instance = ydl
        instance.extract_info.return_value = {
            "id": "abc",
            "title": "Desk tour",
            "uploader": "Maker Jo",
            "duration": 42,
            "thumbnail": "https://i.ytimg.com/abc.jpg",
            "formats": [
                {
                    "url": "https://rr.googlevideo.com/720.mp4",
                    "vcodec": "avc1",
                    "acodec": "mp4a",
                    "height": 720,
                    "format_note": "720p",
                    "filesize": 1000,
                }
            ],
        }

        lookup = await YtDlpResolver(proxy="http://proxy:8080").resolve_share_input(
            "https://youtu.be/abc", SourceFamily.YOUTUBE
        )

        opts = cls.call_args.args[0]
        assert opts["skip_download"] is True
        assert opts["proxy"] == "http://proxy:8080"
        instance.extract_info.assert_called_once_with(
            "https://youtu.be/abc", download=False
        )
        assert lookup.media_url == "https://rr.googlevideo.com/720.mp4"
        assert lookup.author == "Maker Jo"
        assert lookup.video_id == "abc"
        assert lookup.duration_seconds == 42.0
        assert lookup.formats[0].quality == "720p"

    async def test_download_error(self, ydl):
        _, instance = ydl
        instance.extract_info.side_effect = yt_dlp.DownloadError("Video unavailable")

        with pytest.raises(ShareLookupError, match="Video unavailable"):
            await YtDlpResolver().resolve_share_input(
                "https://youtu.be/abc", SourceFamily.YOUTUBE
            )
