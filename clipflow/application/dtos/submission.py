"""DTOs for submission and resolution endpoints."""

from pydantic import BaseModel, Field

from clipflow.application.dtos.pipeline import FormatOption
from clipflow.domain.models import AnalysisContext


class AnalyzeRequest(BaseModel):
    """Request to run a share input through the pipeline."""

    input: str = Field(
        min_length=1,
        description="Bare video URL or pasted share text",
    )
    context: AnalysisContext | None = Field(
        default=None,
        description="Creator context for the analysis prompt",
    )


class SubmissionAccepted(BaseModel):
    """Response for a submission started in the background."""

    submission_id: str
    status_url: str = Field(description="Where to poll the pipeline state")


class ResolveRequest(BaseModel):
    """Request to resolve a share input without downloading it."""

    input: str = Field(min_length=1, description="Bare video URL or share text")


class ResolvedShareData(BaseModel):
    """What a share input resolved to."""

    url: str = Field(description="Directly fetchable media URL")
    platform: str
    title: str | None = None
    author: str | None = None
    cover: str | None = None
    duration_seconds: float | None = None
    formats: list[FormatOption] = Field(default_factory=list)


class ResolveResponse(BaseModel):
    """Envelope for the resolve endpoint. Failures still return HTTP 200."""

    success: bool
    data: ResolvedShareData | None = None
    error: str | None = None
