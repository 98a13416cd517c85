"""Content address value object."""

from __future__ import annotations

import hashlib
import re
from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Lowercase hex SHA-256 digest
DIGEST_PATTERN = re.compile(r"^[0-9a-f]{64}$")

_READ_CHUNK_BYTES = 1024 * 1024


class ContentAddress(BaseModel):
    """Digest of a video's full byte content.

    Two files share an address exactly when their bytes are identical,
    so the address doubles as the deduplication key in blob storage.

    Examples:
        >>> addr = ContentAddress.from_bytes(b"abc")
        >>> addr.storage_key()
        'videos/ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad.mp4'
    """

    model_config = ConfigDict(frozen=True)

    value: Annotated[
        str,
        Field(
            min_length=64,
            max_length=64,
            description="Lowercase hex SHA-256 digest",
        ),
    ]

    @field_validator("value")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate that the value is a lowercase hex digest."""
        if not DIGEST_PATTERN.match(v):
            msg = f"Invalid content address: '{v}'. Must be 64 lowercase hex chars."
            raise ValueError(msg)
        return v

    @classmethod
    def from_bytes(cls, data: bytes) -> ContentAddress:
        """Compute the address of an in-memory payload."""
        return cls(value=hashlib.sha256(data).hexdigest())

    @classmethod
    def from_file(
        cls, path: Path, chunk_size: int = _READ_CHUNK_BYTES
    ) -> ContentAddress:
        """Compute the address of a file without loading it whole.

        Args:
            path: File to hash.
            chunk_size: Read size in bytes.

        Returns:
            The file's content address.
        """
        digest = hashlib.sha256()
        with path.open("rb") as f:
            for block in iter(lambda: f.read(chunk_size), b""):
                digest.update(block)
        return cls(value=digest.hexdigest())

    def storage_key(self, prefix: str = "videos", extension: str = ".mp4") -> str:
        """Object key under which this content is stored."""
        return f"{prefix.strip('/')}/{self.value}{extension}"

    def __str__(self) -> str:
        return self.value
