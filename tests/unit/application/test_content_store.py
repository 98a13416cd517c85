"""Unit tests for ContentAddressedStore."""

import asyncio
import hashlib

import pytest

from clipflow.application.services import ContentAddressedStore
from clipflow.commons.infrastructure.blob import CONTENT_ADDRESS_KEY
from clipflow.domain.exceptions import StoreError
from clipflow.domain.models import MediaMetadata

BUCKET = "clipflow-videos"


@pytest.fixture
def store(blob):
    return ContentAddressedStore(blob, BUCKET)


@pytest.fixture
def metadata():
    return MediaMetadata(title="Desk tour", author="@maker.jo", video_id="7301")


def _staged(tmp_path, name: str, content: bytes):
    path = tmp_path / name
    path.write_bytes(content)
    return path


class TestStore:
    """Tests for storing and deduplicating videos."""

    async def test_first_store_uploads(self, store, blob, metadata, tmp_path):
        content = b"video-bytes"
        digest = hashlib.sha256(content).hexdigest()

        stored = await store.store(
            _staged(tmp_path, "a.mp4", content),
            metadata,
            source_url="https://v.douyin.com/x/",
        )

        assert not stored.is_duplicate
        assert stored.content_address == digest
        assert stored.key == f"videos/{digest}.mp4"
        assert stored.address == f"http://cdn.test/{BUCKET}/videos/{digest}.mp4"
        assert stored.size_bytes == len(content)
        annotations = blob.objects[(BUCKET, stored.key)].metadata
        assert annotations[CONTENT_ADDRESS_KEY] == digest
        assert annotations["title"] == "Desk tour"
        assert annotations["source-url"] == "https://v.douyin.com/x/"
        assert "uploaded-at" in annotations

    async def test_empty_annotations_are_dropped(self, store, blob, tmp_path):
        stored = await store.store(_staged(tmp_path, "a.mp4", b"x"), MediaMetadata())
        annotations = blob.objects[(BUCKET, stored.key)].metadata
        assert "title" not in annotations
        assert "source-url" not in annotations

    async def test_same_bytes_are_not_uploaded_twice(
        self, store, blob, metadata, tmp_path
    ):
        first = await store.store(_staged(tmp_path, "a.mp4", b"same"), metadata)
        second = await store.store(_staged(tmp_path, "b.mp4", b"same"), metadata)

        assert blob.upload_count == 1
        assert second.is_duplicate
        assert second.address == first.address

    async def test_different_bytes_get_different_keys(
        self, store, blob, metadata, tmp_path
    ):
        first = await store.store(_staged(tmp_path, "a.mp4", b"one"), metadata)
        second = await store.store(_staged(tmp_path, "b.mp4", b"two"), metadata)

        assert first.key != second.key
        assert blob.upload_count == 2

    async def test_finds_content_under_foreign_key(self, store, blob, tmp_path):
        content = b"legacy"
        digest = hashlib.sha256(content).hexdigest()
        await blob.upload(
            BUCKET,
            "videos/1700000000000_legacy.mp4",
            b"legacy",
            metadata={CONTENT_ADDRESS_KEY: digest},
        )

        stored = await store.store(
            _staged(tmp_path, "a.mp4", content), MediaMetadata()
        )

        assert stored.is_duplicate
        assert stored.key == "videos/1700000000000_legacy.mp4"
        assert blob.upload_count == 1

    async def test_scan_disabled(self, blob, tmp_path):
        content = b"legacy"
        digest = hashlib.sha256(content).hexdigest()
        await blob.upload(
            BUCKET,
            "videos/old.mp4",
            content,
            metadata={CONTENT_ADDRESS_KEY: digest},
        )
        store = ContentAddressedStore(blob, BUCKET, scan_limit=0)

        stored = await store.store(
            _staged(tmp_path, "a.mp4", content), MediaMetadata()
        )

        assert not stored.is_duplicate

    async def test_concurrent_identical_stores_upload_once(
        self, store, blob, metadata, tmp_path
    ):
        paths = [_staged(tmp_path, f"{i}.mp4", b"racing") for i in range(5)]

        results = await asyncio.gather(*(store.store(p, metadata) for p in paths))

        assert blob.upload_count == 1
        assert sum(not r.is_duplicate for r in results) == 1
        assert len({r.address for r in results}) == 1
        assert store._locks == {}

    async def test_bucket_prepared_once(self, store, blob, metadata, tmp_path):
        await store.store(_staged(tmp_path, "a.mp4", b"one"), metadata)
        await store.store(_staged(tmp_path, "b.mp4", b"two"), metadata)

        assert BUCKET in blob.buckets
        assert blob.public == [(BUCKET, "videos")]

    async def test_backend_failure(self, store, blob, metadata, tmp_path):
        blob.fail_uploads = True

        with pytest.raises(StoreError) as exc_info:
            await store.store(_staged(tmp_path, "a.mp4", b"x"), metadata)

        assert exc_info.value.content_address == hashlib.sha256(b"x").hexdigest()
        assert "storage unreachable" in str(exc_info.value)

    async def test_missing_staged_file(self, store, metadata, tmp_path):
        with pytest.raises(StoreError, match="could not read staged file"):
            await store.store(tmp_path / "missing.mp4", metadata)
