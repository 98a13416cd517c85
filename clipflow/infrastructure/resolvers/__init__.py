"""Share link lookup services."""

from clipflow.infrastructure.resolvers.base import (
    MediaFormat,
    ShareLookup,
    ShareLookupError,
    ShareResolverBase,
)
from clipflow.infrastructure.resolvers.extractor_api import (
    ExtractorApiResolver,
    sign_request,
)
from clipflow.infrastructure.resolvers.ytdlp_resolver import (
    YtDlpResolver,
    pick_progressive_format,
)

__all__ = [
    # Base classes
    "ShareResolverBase",
    "ShareLookup",
    "MediaFormat",
    # Implementations
    "ExtractorApiResolver",
    "YtDlpResolver",
    "sign_request",
    "pick_progressive_format",
    # Exceptions
    "ShareLookupError",
]
