"""yt-dlp implementation of share link lookup."""

import asyncio
from pathlib import Path
from typing import Any

import yt_dlp

from clipflow.domain.value_objects import SourceFamily
from clipflow.infrastructure.resolvers.base import (
    MediaFormat,
    ShareLookup,
    ShareLookupError,
    ShareResolverBase,
)


def pick_progressive_format(formats: list[dict[str, Any]]) -> dict[str, Any] | None:
    """Best format carrying both audio and video in one file."""
    progressive = [
        f
        for f in formats
        if f.get("url")
        and f.get("vcodec") not in (None, "none")
        and f.get("acodec") not in (None, "none")
    ]
    if not progressive:
        return None
    return max(progressive, key=lambda f: ((f.get("height") or 0), (f.get("tbr") or 0)))


class YtDlpResolver(ShareResolverBase):
    """Resolve share links with yt-dlp's metadata extraction."""

    def __init__(
        self,
        cookies_file: Path | None = None,
        proxy: str | None = None,
    ) -> None:
        """Initialize yt-dlp resolver.

        Args:
            cookies_file: Path to cookies file for authenticated lookups.
            proxy: Proxy URL.
        """
        self._cookies_file = cookies_file
        self._proxy = proxy

    def _get_base_opts(self) -> dict[str, Any]:
        """Get base yt-dlp options."""
        opts: dict[str, Any] = {
            "quiet": True,
            "no_warnings": True,
            "skip_download": True,
        }
        if self._cookies_file:
            opts["cookiefile"] = str(self._cookies_file)
        if self._proxy:
            opts["proxy"] = self._proxy
        return opts

    async def resolve_share_input(
        self,
        url: str,
        family: SourceFamily,
    ) -> ShareLookup:
        """Look up media info without downloading."""
        loop = asyncio.get_event_loop()
        opts = self._get_base_opts()

        def _extract() -> dict[str, Any]:
            with yt_dlp.YoutubeDL(opts) as ydl:
                info = ydl.extract_info(url, download=False)
                if info is None:
                    raise ShareLookupError(url, "no media information")
                return dict(info)

        try:
            info = await loop.run_in_executor(None, _extract)
        except yt_dlp.DownloadError as e:
            raise ShareLookupError(url, str(e)) from e

        formats = info.get("formats") or []
        best = pick_progressive_format(formats)
        media_url = best.get("url") if best else info.get("url")

        duration = info.get("duration")
        return ShareLookup(
            media_url=media_url,
            title=info.get("title"),
            author=info.get("uploader") or info.get("channel"),
            video_id=info.get("id"),
            duration_seconds=float(duration) if duration else None,
            cover_url=info.get("thumbnail"),
            formats=[
                MediaFormat(
                    quality=best.get("format_note") or f"{best.get('height')}p",
                    url=best["url"],
                    size_bytes=best.get("filesize"),
                )
            ]
            if best
            else [],
        )
