"""Abstract base class for blob storage operations."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import BinaryIO


@dataclass
class BlobMetadata:
    """Metadata for a stored blob."""

    path: str
    size_bytes: int
    content_type: str
    created_at: datetime
    etag: str
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class HealthStatus:
    """Health check result."""

    healthy: bool
    latency_ms: float
    message: str | None = None
    details: dict[str, str] | None = None


class BlobStorageBase(ABC):
    """Abstract base class for object storage holding published videos.

    Implementations should handle:
    - MinIO (local development)
    - AWS S3
    """

    @abstractmethod
    async def upload(
        self,
        bucket: str,
        path: str,
        data: BinaryIO | bytes,
        content_type: str = "application/octet-stream",
        metadata: dict[str, str] | None = None,
    ) -> BlobMetadata:
        """Upload a blob to storage.

        Args:
            bucket: Target bucket name.
            path: Path within the bucket.
            data: File-like object or bytes to upload.
            content_type: MIME type of the content.
            metadata: Optional key-value annotations. Values may be any
                unicode text; providers encode them as needed.

        Returns:
            Metadata of the uploaded blob.
        """

    @abstractmethod
    async def exists(self, bucket: str, path: str) -> bool:
        """Check if a blob exists."""

    @abstractmethod
    async def get_metadata(self, bucket: str, path: str) -> BlobMetadata:
        """Get blob metadata without downloading.

        Raises:
            BlobNotFoundError: If blob doesn't exist.
        """

    @abstractmethod
    async def find_by_content_address(
        self,
        bucket: str,
        content_address: str,
        prefix: str = "",
        max_results: int = 1000,
    ) -> BlobMetadata | None:
        """Find a blob annotated with the given content address.

        Args:
            bucket: Bucket name.
            content_address: Hex digest stored in the "content-address"
                annotation.
            prefix: Only consider blobs under this prefix.
            max_results: Upper bound on blobs inspected.

        Returns:
            Metadata of the first match, or None.
        """

    @abstractmethod
    async def make_public(self, bucket: str, prefix: str = "") -> None:
        """Allow anonymous reads of every blob under a prefix."""

    @abstractmethod
    def public_url(self, bucket: str, path: str) -> str:
        """Stable public URL for a blob."""

    @abstractmethod
    async def create_bucket(self, bucket: str) -> bool:
        """Create a new bucket.

        Returns:
            True if created, False if already exists.
        """

    @abstractmethod
    async def bucket_exists(self, bucket: str) -> bool:
        """Check if a bucket exists."""

    @abstractmethod
    async def health_check(self) -> HealthStatus:
        """Check service health.

        Returns:
            Health status with latency info.
        """
