"""Share input resolution service."""

from clipflow.application.dtos.pipeline import FormatOption, ResolvedMedia
from clipflow.commons.telemetry import get_logger
from clipflow.domain.exceptions import ParseError, ParseFailureReason
from clipflow.domain.models import MediaMetadata
from clipflow.domain.value_objects import (
    SourceFamily,
    classify_source,
    extract_author_handle,
    extract_url,
)
from clipflow.infrastructure.resolvers.base import ShareLookupError, ShareResolverBase


class ShareInputResolver:
    """Turns pasted share text into a directly fetchable media locator.

    Steps:
    1. Find the first link in the text
    2. Classify the link's platform
    3. Ask the lookup service for the media URL and metadata
    4. Fill in the author from an @handle in the title where platforms use them

    Lookups are not retried here; a failed lookup fails the run.
    """

    def __init__(
        self,
        lookup: ShareResolverBase,
        allow_unknown_sources: bool = False,
    ) -> None:
        """Initialize the resolver.

        Args:
            lookup: Service that resolves share URLs.
            allow_unknown_sources: Pass links from unrecognized platforms to
                the lookup service instead of rejecting them.
        """
        self._lookup = lookup
        self._allow_unknown = allow_unknown_sources
        self._logger = get_logger(__name__)

    async def resolve(self, raw_input: str) -> ResolvedMedia:
        """Resolve share input.

        Args:
            raw_input: Bare URL or share blurb as the user pasted it.

        Returns:
            The media locator with whatever metadata the source exposed.

        Raises:
            ParseError: With reason no link found, unsupported source or
                lookup failed.
        """
        url = extract_url(raw_input)
        if url is None:
            raise ParseError(ParseFailureReason.NO_LINK, raw_input)

        family = classify_source(url)
        if family == SourceFamily.UNKNOWN and not self._allow_unknown:
            raise ParseError(ParseFailureReason.UNSUPPORTED_SOURCE, raw_input, url)

        self._logger.info(
            "Resolving share link", extra={"url": url, "family": family.value}
        )

        try:
            lookup = await self._lookup.resolve_share_input(url, family)
        except ShareLookupError as e:
            raise ParseError(
                ParseFailureReason.LOOKUP_FAILED, raw_input, e.reason
            ) from e

        if not lookup.media_url:
            raise ParseError(
                ParseFailureReason.LOOKUP_FAILED,
                raw_input,
                "no downloadable media behind the link",
            )

        author = lookup.author
        if author is None and family.uses_author_handles:
            author = extract_author_handle(lookup.title)

        return ResolvedMedia(
            locator=lookup.media_url,
            source_url=url,
            metadata=MediaMetadata(
                title=lookup.title,
                author=author,
                video_id=lookup.video_id,
                duration_seconds=lookup.duration_seconds,
                cover_url=lookup.cover_url,
                source_family=family,
            ),
            formats=[
                FormatOption(quality=f.quality, url=f.url, size_bytes=f.size_bytes)
                for f in lookup.formats
            ],
        )
