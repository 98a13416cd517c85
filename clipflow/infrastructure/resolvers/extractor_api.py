"""Hosted link-extraction API implementation of share link lookup."""

import hashlib
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, ClassVar

import httpx

from clipflow.domain.value_objects import SourceFamily
from clipflow.infrastructure.resolvers.base import (
    MediaFormat,
    ShareLookup,
    ShareLookupError,
    ShareResolverBase,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Route:
    """Which API serves a family and the token folded into its signature."""

    legacy: bool
    token: str


def sign_request(url: str, token: str, timestamp: str, key: str) -> str:
    """Signature expected in the G-Footer header."""
    return hashlib.md5(
        f"{url}{token}{timestamp}{key}".encode(), usedforsecurity=False
    ).hexdigest()


class ExtractorApiResolver(ShareResolverBase):
    """Resolve share links through a signed link-extraction HTTP API.

    Short-video platforms go to the current API, which takes the link and
    a language hint. Social platforms go to the legacy API, which takes
    the link and a site name.
    """

    _ROUTES: ClassVar[dict[SourceFamily, _Route]] = {
        SourceFamily.TIKTOK: _Route(legacy=False, token="en"),
        SourceFamily.DOUYIN: _Route(legacy=False, token="zh"),
        SourceFamily.YOUTUBE: _Route(legacy=False, token="en"),
        SourceFamily.BILIBILI: _Route(legacy=False, token="zh"),
        SourceFamily.FACEBOOK: _Route(legacy=True, token="facebook"),
        SourceFamily.INSTAGRAM: _Route(legacy=True, token="instagram"),
        SourceFamily.TWITTER: _Route(legacy=True, token="twitter"),
    }

    def __init__(
        self,
        api_url: str,
        api_key: str,
        legacy_api_url: str,
        legacy_api_key: str,
        timeout_seconds: float = 30.0,
        client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the extraction API client.

        Args:
            api_url: Endpoint of the current API.
            api_key: Signing key of the current API.
            legacy_api_url: Endpoint of the legacy API.
            legacy_api_key: Signing key of the legacy API.
            timeout_seconds: Per-request timeout.
            client: Shared HTTP client. One is created when omitted.
            clock: Wall clock in seconds, used for the signed timestamp.
        """
        self._api_url = api_url
        self._api_key = api_key
        self._legacy_api_url = legacy_api_url
        self._legacy_api_key = legacy_api_key
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)
        self._clock = clock

    def _build_request(
        self, url: str, route: _Route
    ) -> tuple[str, dict[str, str], dict[str, str]]:
        timestamp = str(int(self._clock() * 1000))
        key = self._legacy_api_key if route.legacy else self._api_key
        headers = {
            "G-Timestamp": timestamp,
            "G-Footer": sign_request(url, route.token, timestamp, key),
            "Content-Type": "application/json",
        }
        if route.legacy:
            return self._legacy_api_url, headers, {"url": url, "site": route.token}
        headers["Accept-Language"] = route.token
        return self._api_url, headers, {"link": url}

    async def resolve_share_input(
        self,
        url: str,
        family: SourceFamily,
    ) -> ShareLookup:
        """Resolve a share URL through the extraction API."""
        route = self._ROUTES.get(family)
        if route is None:
            raise ShareLookupError(url, f"no extraction route for {family.value}")

        endpoint, headers, body = self._build_request(url, route)
        logger.debug(
            "Calling extraction API",
            extra={"family": family.value, "legacy": route.legacy},
        )

        try:
            response = await self._client.post(endpoint, headers=headers, json=body)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            raise ShareLookupError(
                url, f"extraction API returned {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise ShareLookupError(url, f"extraction API unreachable: {e}") from e
        except ValueError as e:
            raise ShareLookupError(url, "extraction API returned invalid JSON") from e

        if not isinstance(payload, dict):
            raise ShareLookupError(url, "extraction API returned an unexpected body")
        if payload.get("error"):
            raise ShareLookupError(url, str(payload["error"]))

        return self._to_lookup(payload)

    def _to_lookup(self, payload: dict[str, Any]) -> ShareLookup:
        title = payload.get("text") or None
        medias = payload.get("medias") or []

        video = next((m for m in medias if m.get("media_type") == "video"), None)
        if video is not None:
            formats = video.get("formats") or []
            media_url = video.get("resource_url")
            if formats:
                best = max(formats, key=lambda f: f.get("quality") or 0)
                media_url = best.get("video_url") or media_url
            return ShareLookup(
                media_url=media_url,
                title=title,
                cover_url=video.get("preview_url"),
                formats=[
                    MediaFormat(
                        quality=f.get("quality_note") or f"{f.get('quality')}p",
                        url=f.get("video_url", ""),
                        size_bytes=f.get("video_size"),
                    )
                    for f in formats
                ],
            )

        audio = next((m for m in medias if m.get("media_type") == "audio"), None)
        if audio is not None:
            return ShareLookup(media_url=audio.get("resource_url"), title=title)

        return ShareLookup(media_url=None, title=title)

    async def close(self) -> None:
        """Close the HTTP client when this resolver created it."""
        if self._owns_client:
            await self._client.aclose()
