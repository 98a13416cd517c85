"""DTOs passed between pipeline stages."""

from pathlib import Path

from pydantic import BaseModel, Field

from clipflow.domain.models import MediaMetadata


class FormatOption(BaseModel):
    """A downloadable rendition offered by the source."""

    quality: str
    url: str
    size_bytes: int | None = None


class ResolvedMedia(BaseModel):
    """Output of the parsing stage."""

    locator: str = Field(description="Directly fetchable media URL")
    source_url: str = Field(description="Share URL the locator was resolved from")
    metadata: MediaMetadata
    formats: list[FormatOption] = Field(default_factory=list)


class StagedMedia(BaseModel):
    """A complete download sitting in local staging."""

    path: Path
    size_bytes: int = Field(ge=0)


class StoredObject(BaseModel):
    """Where the content-addressed store put (or found) a video."""

    address: str = Field(description="Public URL of the stored object")
    content_address: str = Field(description="Hex digest of the content")
    key: str = Field(description="Object key within the bucket")
    is_duplicate: bool = Field(description="True when no upload happened")
    size_bytes: int = Field(ge=0)
