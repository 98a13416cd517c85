"""Content-addressed video storage with deduplication."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from pathlib import Path

from clipflow.application.dtos.pipeline import StoredObject
from clipflow.commons.infrastructure.blob import CONTENT_ADDRESS_KEY, BlobStorageBase
from clipflow.commons.telemetry import get_logger, timed
from clipflow.domain.exceptions import StoreError
from clipflow.domain.models import MediaMetadata
from clipflow.domain.value_objects import ContentAddress


class ContentAddressedStore:
    """Stores each distinct video exactly once.

    Videos are keyed by the SHA-256 of their bytes. Storing bytes that are
    already present returns the existing object instead of uploading.
    Concurrent stores of the same content inside this process are
    serialized on a per-address lock, so only one of them uploads.
    """

    def __init__(
        self,
        blob_storage: BlobStorageBase,
        bucket: str,
        key_prefix: str = "videos",
        scan_limit: int = 1000,
    ) -> None:
        """Initialize the store.

        Args:
            blob_storage: Object storage backend.
            bucket: Bucket holding the videos.
            key_prefix: Key prefix of stored videos.
            scan_limit: Max objects inspected when looking for content stored
                under a non-derived key. Zero disables the scan.
        """
        self._blob = blob_storage
        self._bucket = bucket
        self._prefix = key_prefix.strip("/")
        self._scan_limit = scan_limit
        self._locks: dict[str, tuple[asyncio.Lock, int]] = {}
        self._bucket_ready = False
        self._logger = get_logger(__name__)

    @asynccontextmanager
    async def _address_lock(self, digest: str) -> AsyncIterator[None]:
        lock, users = self._locks.get(digest, (asyncio.Lock(), 0))
        self._locks[digest] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            lock, users = self._locks[digest]
            if users <= 1:
                del self._locks[digest]
            else:
                self._locks[digest] = (lock, users - 1)

    async def _ensure_bucket(self) -> None:
        if self._bucket_ready:
            return
        if await self._blob.create_bucket(self._bucket):
            self._logger.info("Created bucket", extra={"bucket": self._bucket})
        await self._blob.make_public(self._bucket, self._prefix)
        self._bucket_ready = True

    @timed
    async def store(
        self,
        staged_path: Path,
        metadata: MediaMetadata,
        source_url: str = "",
    ) -> StoredObject:
        """Store a staged video unless identical bytes are already stored.

        Args:
            staged_path: Complete local file.
            metadata: Descriptive metadata to annotate the object with.
            source_url: Share URL the video came from.

        Returns:
            Where the content lives and whether an upload happened.

        Raises:
            StoreError: If hashing or the storage backend fails.
        """
        loop = asyncio.get_event_loop()
        try:
            address = await loop.run_in_executor(
                None, ContentAddress.from_file, staged_path
            )
            size = staged_path.stat().st_size
        except OSError as e:
            raise StoreError(f"could not read staged file: {e}") from e

        digest = address.value
        key = address.storage_key(self._prefix)

        async with self._address_lock(digest):
            try:
                await self._ensure_bucket()
                existing_key = await self._find_existing(digest, key)
                if existing_key is not None:
                    self._logger.info(
                        "Duplicate content, skipping upload",
                        extra={"content_address": digest, "key": existing_key},
                    )
                    return StoredObject(
                        address=self._blob.public_url(self._bucket, existing_key),
                        content_address=digest,
                        key=existing_key,
                        is_duplicate=True,
                        size_bytes=size,
                    )

                with staged_path.open("rb") as f:
                    await self._blob.upload(
                        self._bucket,
                        key,
                        f,
                        content_type="video/mp4",
                        metadata=self._annotations(metadata, source_url, digest),
                    )
            except StoreError:
                raise
            except Exception as e:
                raise StoreError(str(e), content_address=digest) from e

        self._logger.info(
            "Video stored",
            extra={"content_address": digest, "key": key, "size_bytes": size},
        )
        return StoredObject(
            address=self._blob.public_url(self._bucket, key),
            content_address=digest,
            key=key,
            is_duplicate=False,
            size_bytes=size,
        )

    async def _find_existing(self, digest: str, key: str) -> str | None:
        if await self._blob.exists(self._bucket, key):
            return key
        if self._scan_limit <= 0:
            return None
        found = await self._blob.find_by_content_address(
            self._bucket,
            digest,
            prefix=f"{self._prefix}/",
            max_results=self._scan_limit,
        )
        return found.path if found else None

    @staticmethod
    def _annotations(
        metadata: MediaMetadata, source_url: str, digest: str
    ) -> dict[str, str]:
        annotations = {
            "title": metadata.title or "",
            "author": metadata.author or "",
            "video-id": metadata.video_id or "",
            "source-url": source_url,
            CONTENT_ADDRESS_KEY: digest,
            "uploaded-at": datetime.now(UTC).isoformat(),
        }
        return {k: v for k, v in annotations.items() if v}
