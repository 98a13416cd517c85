"""Domain value objects."""

from clipflow.domain.value_objects.content_address import ContentAddress
from clipflow.domain.value_objects.retry_policy import RetryPolicy
from clipflow.domain.value_objects.share_link import (
    SourceFamily,
    classify_source,
    extract_author_handle,
    extract_url,
)

__all__ = [
    "ContentAddress",
    "RetryPolicy",
    "SourceFamily",
    "classify_source",
    "extract_author_handle",
    "extract_url",
]
