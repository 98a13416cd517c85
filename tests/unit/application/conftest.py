"""Shared fixtures for application service tests."""

import asyncio
from datetime import UTC, datetime
from typing import BinaryIO

import pytest

from clipflow.commons.infrastructure.blob import (
    CONTENT_ADDRESS_KEY,
    BlobMetadata,
    BlobNotFoundError,
    BlobStorageBase,
    HealthStatus,
)


class InMemoryBlobStorage(BlobStorageBase):
    """Blob storage double keeping objects in a dict."""

    def __init__(self) -> None:
        self.objects: dict[tuple[str, str], BlobMetadata] = {}
        self.buckets: set[str] = set()
        self.public: list[tuple[str, str]] = []
        self.upload_count = 0
        self.fail_uploads = False

    async def upload(
        self,
        bucket: str,
        path: str,
        data: BinaryIO | bytes,
        content_type: str = "application/octet-stream",
        metadata: dict[str, str] | None = None,
    ) -> BlobMetadata:
        await asyncio.sleep(0)
        if self.fail_uploads:
            raise ConnectionError("storage unreachable")
        payload = data if isinstance(data, bytes) else data.read()
        self.upload_count += 1
        blob = BlobMetadata(
            path=path,
            size_bytes=len(payload),
            content_type=content_type,
            created_at=datetime.now(UTC),
            etag="etag",
            metadata=dict(metadata or {}),
        )
        self.objects[(bucket, path)] = blob
        return blob

    async def exists(self, bucket: str, path: str) -> bool:
        await asyncio.sleep(0)
        return (bucket, path) in self.objects

    async def get_metadata(self, bucket: str, path: str) -> BlobMetadata:
        try:
            return self.objects[(bucket, path)]
        except KeyError as e:
            raise BlobNotFoundError(bucket, path) from e

    async def find_by_content_address(
        self,
        bucket: str,
        content_address: str,
        prefix: str = "",
        max_results: int = 1000,
    ) -> BlobMetadata | None:
        candidates = [
            blob
            for (b, path), blob in self.objects.items()
            if b == bucket and path.startswith(prefix)
        ][:max_results]
        for blob in candidates:
            if blob.metadata.get(CONTENT_ADDRESS_KEY) == content_address:
                return blob
        return None

    async def make_public(self, bucket: str, prefix: str = "") -> None:
        self.public.append((bucket, prefix))

    def public_url(self, bucket: str, path: str) -> str:
        return f"http://cdn.test/{bucket}/{path}"

    async def create_bucket(self, bucket: str) -> bool:
        if bucket in self.buckets:
            return False
        self.buckets.add(bucket)
        return True

    async def bucket_exists(self, bucket: str) -> bool:
        return bucket in self.buckets

    async def health_check(self) -> HealthStatus:
        return HealthStatus(healthy=True, latency_ms=0.0)


@pytest.fixture
def blob():
    return InMemoryBlobStorage()
