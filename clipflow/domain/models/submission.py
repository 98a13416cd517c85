"""Submission, stage and video description domain models."""

from datetime import UTC, datetime
from enum import Enum
from typing import Self
from uuid import uuid4

from pydantic import BaseModel, Field

from clipflow.domain.value_objects.share_link import SourceFamily


class PipelineStage(str, Enum):
    """Stage of a submission's pipeline run."""

    IDLE = "idle"  # Created, nothing started yet
    PARSING = "parsing"  # Resolving share input to a media locator
    DOWNLOADING = "downloading"  # Fetching media bytes into staging
    UPLOADING = "uploading"  # Hashing and storing in blob storage
    VIDEO_READY = "video_ready"  # Stored, public address known
    ANALYZING = "analyzing"  # AI analysis in flight
    COMPLETED = "completed"  # Terminal: result available
    ERROR = "error"  # Terminal: run failed

    @property
    def is_terminal(self) -> bool:
        """Whether no further transition is possible."""
        return self in {PipelineStage.COMPLETED, PipelineStage.ERROR}


def new_submission_id() -> str:
    """Generate an opaque submission id."""
    return f"sub_{uuid4().hex}"


class MediaMetadata(BaseModel):
    """Descriptive metadata gathered while resolving a share link."""

    title: str | None = Field(default=None, description="Post title or caption")
    author: str | None = Field(default=None, description="Author name or @handle")
    video_id: str | None = Field(default=None, description="Platform video id")
    duration_seconds: float | None = Field(
        default=None,
        description="Duration in seconds, when known",
    )
    cover_url: str | None = Field(default=None, description="Cover image URL")
    source_family: SourceFamily = Field(
        default=SourceFamily.UNKNOWN,
        description="Platform the link belongs to",
    )


class VideoInfo(BaseModel):
    """Stored video description emitted when the video is ready."""

    id: str = Field(description="Platform video id, or a content address prefix")
    original_input: str = Field(description="Share input the user submitted")
    title: str = Field(description="Video title")
    author: str | None = Field(default=None, description="Author name or @handle")
    duration_seconds: float | None = Field(
        default=None,
        description="Measured or declared duration in seconds",
    )
    source_family: SourceFamily = Field(description="Platform the link belongs to")
    stored_address: str = Field(description="Public URL of the stored video")
    content_address: str = Field(description="SHA-256 digest of the video bytes")
    size_bytes: int = Field(ge=0, description="Stored size in bytes")
    is_duplicate: bool = Field(
        description="True when identical bytes were already stored",
    )
    cover_url: str | None = Field(default=None, description="Cover image URL")
    downloaded_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="When the bytes were fetched",
    )


class Submission(BaseModel):
    """One user request to process one piece of share input."""

    id: str = Field(default_factory=new_submission_id, description="Submission id")
    raw_input: str = Field(description="Share input as the user pasted it")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="When the submission was created",
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="Last time the submission's run made progress",
    )

    def touch(self) -> Self:
        """Create a new instance with a refreshed update timestamp."""
        return self.model_copy(update={"updated_at": datetime.now(UTC)})
