"""Abstract base class for share link lookup services."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from clipflow.domain.value_objects import SourceFamily


@dataclass
class MediaFormat:
    """One downloadable rendition of a video."""

    quality: str
    url: str
    size_bytes: int | None = None


@dataclass
class ShareLookup:
    """What a lookup service found behind a share link."""

    media_url: str | None
    title: str | None = None
    author: str | None = None
    video_id: str | None = None
    duration_seconds: float | None = None
    cover_url: str | None = None
    formats: list[MediaFormat] = field(default_factory=list)


class ShareLookupError(Exception):
    """Raised when a lookup service cannot resolve a link."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Lookup failed for {url}: {reason}")


class ShareResolverBase(ABC):
    """Abstract base class for share link lookup services.

    Implementations should handle:
    - Hosted link-extraction APIs
    - yt-dlp metadata extraction
    """

    @abstractmethod
    async def resolve_share_input(
        self,
        url: str,
        family: SourceFamily,
    ) -> ShareLookup:
        """Resolve a share URL into a directly fetchable media URL.

        Args:
            url: Cleaned share URL.
            family: Platform the URL belongs to.

        Returns:
            Lookup result. ``media_url`` is None when the page holds no
            downloadable media.

        Raises:
            ShareLookupError: If the lookup itself fails.
        """

    async def close(self) -> None:
        """Release network resources."""
