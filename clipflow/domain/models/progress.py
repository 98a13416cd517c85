"""Progress event domain models."""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

from clipflow.domain.models.analysis import AnalysisResult
from clipflow.domain.models.submission import PipelineStage, VideoInfo


class DownloadProgress(BaseModel):
    """Byte-level progress of a media download."""

    model_config = ConfigDict(frozen=True)

    downloaded: int = Field(ge=0, description="Bytes received so far")
    total: int | None = Field(default=None, description="Expected bytes, if known")
    percentage: int = Field(ge=0, le=100, description="Completion percentage")


class ProgressEvent(BaseModel):
    """One progress notification for a submission.

    Events for a submission carry strictly increasing sequence numbers
    and exactly one of them is terminal.
    """

    model_config = ConfigDict(frozen=True)

    sequence: int = Field(ge=1, description="Position in the submission's stream")
    submission_id: str = Field(description="Owning submission id")
    stage: PipelineStage = Field(description="Stage the pipeline is in")
    progress: int = Field(ge=0, le=100, description="Overall progress")
    stage_progress: int = Field(
        default=0,
        ge=0,
        le=100,
        description="Progress within the current stage",
    )
    message: str | None = Field(default=None, description="Human-readable status")
    parsed_locator: str | None = Field(
        default=None,
        description="Resolved media URL, once parsing succeeds",
    )
    download: DownloadProgress | None = Field(
        default=None,
        description="Byte progress while downloading",
    )
    video_info: VideoInfo | None = Field(
        default=None,
        description="Stored video, once ready",
    )
    result: AnalysisResult | None = Field(
        default=None,
        description="Final result on completion",
    )
    warning: str | None = Field(default=None, description="Non-fatal notice")
    error: str | None = Field(default=None, description="Failure description")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_terminal(self) -> bool:
        """Check if this event ends the stream."""
        return self.stage.is_terminal

    def to_sse(self) -> str:
        """Render as a server-sent events frame."""
        return f"data: {self.model_dump_json(exclude_none=True)}\n\n"
