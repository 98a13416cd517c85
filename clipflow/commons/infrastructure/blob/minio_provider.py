"""MinIO implementation of blob storage."""

import asyncio
import io
import json
import logging
import time
from datetime import UTC, datetime
from typing import Any, BinaryIO
from urllib.parse import quote, unquote

from minio import Minio
from minio.error import S3Error

from clipflow.commons.infrastructure.blob.base import (
    BlobMetadata,
    BlobStorageBase,
    HealthStatus,
)

logger = logging.getLogger(__name__)

_META_PREFIX = "x-amz-meta-"
CONTENT_ADDRESS_KEY = "content-address"


class BlobNotFoundError(Exception):
    """Raised when a blob is not found."""

    def __init__(self, bucket: str, path: str) -> None:
        self.bucket = bucket
        self.path = path
        super().__init__(f"Blob not found: {bucket}/{path}")


def encode_metadata(metadata: dict[str, str] | None) -> dict[str, str] | None:
    """Percent-encode annotation values; S3 headers only carry ASCII."""
    if not metadata:
        return None
    return {key: quote(str(value), safe="") for key, value in metadata.items()}


def decode_metadata(headers: Any) -> dict[str, str]:
    """Extract and decode x-amz-meta-* annotations from object headers."""
    if not headers:
        return {}
    decoded: dict[str, str] = {}
    for key, value in headers.items():
        lower = key.lower()
        if lower.startswith(_META_PREFIX):
            decoded[lower[len(_META_PREFIX) :]] = unquote(value)
    return decoded


def public_read_policy(bucket: str, prefix: str = "") -> str:
    """Bucket policy document granting anonymous GetObject under a prefix."""
    resource = f"arn:aws:s3:::{bucket}/{prefix.strip('/') + '/' if prefix else ''}*"
    return json.dumps(
        {
            "Version": "2012-10-17",
            "Statement": [
                {
                    "Effect": "Allow",
                    "Principal": {"AWS": ["*"]},
                    "Action": ["s3:GetObject"],
                    "Resource": [resource],
                }
            ],
        }
    )


class MinioBlobStorage(BlobStorageBase):
    """MinIO implementation of blob storage.

    Works with both MinIO (local development) and AWS S3 (production).
    """

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        secure: bool = False,
        region: str | None = None,
        public_base_url: str | None = None,
        client: Minio | None = None,
    ) -> None:
        """Initialize MinIO client.

        Args:
            endpoint: MinIO/S3 endpoint (e.g., "localhost:9000").
            access_key: Access key ID.
            secret_key: Secret access key.
            secure: Use HTTPS connection.
            region: AWS region (optional, for S3).
            public_base_url: Base of public URLs when a CDN or gateway
                fronts the bucket. Defaults to the endpoint itself.
            client: Pre-built client, mainly for tests.
        """
        self._client = client or Minio(
            endpoint=endpoint,
            access_key=access_key,
            secret_key=secret_key,
            secure=secure,
            region=region,
        )
        self._endpoint = endpoint
        self._secure = secure
        self._public_base_url = public_base_url
        self._public_prefixes: set[tuple[str, str]] = set()

    async def upload(
        self,
        bucket: str,
        path: str,
        data: BinaryIO | bytes,
        content_type: str = "application/octet-stream",
        metadata: dict[str, str] | None = None,
    ) -> BlobMetadata:
        """Upload a blob to storage."""
        loop = asyncio.get_event_loop()

        if isinstance(data, bytes):
            data_io: BinaryIO = io.BytesIO(data)
            length = len(data)
        else:
            data.seek(0, io.SEEK_END)
            length = data.tell()
            data.seek(0)
            data_io = data

        def _upload() -> None:
            self._client.put_object(
                bucket_name=bucket,
                object_name=path,
                data=data_io,
                length=length,
                content_type=content_type,
                metadata=encode_metadata(metadata),
            )

        await loop.run_in_executor(None, _upload)
        return await self.get_metadata(bucket, path)

    async def exists(self, bucket: str, path: str) -> bool:
        """Check if a blob exists."""
        loop = asyncio.get_event_loop()

        def _stat() -> bool:
            try:
                self._client.stat_object(bucket, path)
                return True
            except S3Error as e:
                if e.code == "NoSuchKey":
                    return False
                raise

        return await loop.run_in_executor(None, _stat)

    async def get_metadata(self, bucket: str, path: str) -> BlobMetadata:
        """Get blob metadata without downloading."""
        loop = asyncio.get_event_loop()

        def _stat() -> BlobMetadata:
            try:
                stat = self._client.stat_object(bucket, path)
            except S3Error as e:
                if e.code == "NoSuchKey":
                    raise BlobNotFoundError(bucket, path) from e
                raise
            return BlobMetadata(
                path=path,
                size_bytes=stat.size or 0,
                content_type=stat.content_type or "application/octet-stream",
                created_at=stat.last_modified or datetime.now(UTC),
                etag=stat.etag or "",
                metadata=decode_metadata(stat.metadata),
            )

        return await loop.run_in_executor(None, _stat)

    async def find_by_content_address(
        self,
        bucket: str,
        content_address: str,
        prefix: str = "",
        max_results: int = 1000,
    ) -> BlobMetadata | None:
        """Scan object annotations for a content address."""
        loop = asyncio.get_event_loop()

        def _scan() -> BlobMetadata | None:
            objects = self._client.list_objects(
                bucket_name=bucket,
                prefix=prefix,
                recursive=True,
                include_user_meta=True,
            )
            for inspected, obj in enumerate(objects):
                if inspected >= max_results:
                    break
                annotations = decode_metadata(obj.metadata)
                if annotations.get(CONTENT_ADDRESS_KEY) == content_address:
                    return BlobMetadata(
                        path=obj.object_name or "",
                        size_bytes=obj.size or 0,
                        content_type=obj.content_type or "application/octet-stream",
                        created_at=obj.last_modified or datetime.now(UTC),
                        etag=obj.etag or "",
                        metadata=annotations,
                    )
            return None

        return await loop.run_in_executor(None, _scan)

    async def make_public(self, bucket: str, prefix: str = "") -> None:
        """Apply an anonymous-read policy, once per bucket and prefix."""
        key = (bucket, prefix)
        if key in self._public_prefixes:
            return

        loop = asyncio.get_event_loop()
        policy = public_read_policy(bucket, prefix)
        await loop.run_in_executor(
            None, self._client.set_bucket_policy, bucket, policy
        )
        self._public_prefixes.add(key)
        logger.info(
            "Bucket prefix made public", extra={"bucket": bucket, "prefix": prefix}
        )

    def public_url(self, bucket: str, path: str) -> str:
        """Stable public URL for a blob."""
        if self._public_base_url:
            base = self._public_base_url.rstrip("/")
        else:
            scheme = "https" if self._secure else "http"
            base = f"{scheme}://{self._endpoint}"
        return f"{base}/{bucket}/{quote(path)}"

    async def create_bucket(self, bucket: str) -> bool:
        """Create a new bucket."""
        loop = asyncio.get_event_loop()

        def _create() -> bool:
            if self._client.bucket_exists(bucket):
                return False
            self._client.make_bucket(bucket)
            return True

        return await loop.run_in_executor(None, _create)

    async def bucket_exists(self, bucket: str) -> bool:
        """Check if a bucket exists."""
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, self._client.bucket_exists, bucket)

    async def health_check(self) -> HealthStatus:
        """Check service health."""
        start = time.perf_counter()
        try:
            loop = asyncio.get_event_loop()
            await loop.run_in_executor(None, self._client.list_buckets)
            latency_ms = (time.perf_counter() - start) * 1000
            return HealthStatus(
                healthy=True,
                latency_ms=latency_ms,
                message="MinIO is healthy",
                details={"endpoint": self._endpoint},
            )
        except Exception as e:
            latency_ms = (time.perf_counter() - start) * 1000
            return HealthStatus(
                healthy=False,
                latency_ms=latency_ms,
                message=f"MinIO health check failed: {e}",
                details={"endpoint": self._endpoint, "error": str(e)},
            )
