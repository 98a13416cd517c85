"""Blob storage abstractions and implementations."""

from clipflow.commons.infrastructure.blob.base import (
    BlobMetadata,
    BlobStorageBase,
    HealthStatus,
)
from clipflow.commons.infrastructure.blob.minio_provider import (
    CONTENT_ADDRESS_KEY,
    BlobNotFoundError,
    MinioBlobStorage,
)

__all__ = [
    # Base classes
    "BlobMetadata",
    "BlobStorageBase",
    "HealthStatus",
    # Implementations
    "MinioBlobStorage",
    "CONTENT_ADDRESS_KEY",
    # Exceptions
    "BlobNotFoundError",
]
