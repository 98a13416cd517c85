"""Domain models."""

from clipflow.domain.models.analysis import (
    AnalysisContext,
    AnalysisKind,
    AnalysisResult,
    Insights,
    VideoAnalysis,
)
from clipflow.domain.models.progress import DownloadProgress, ProgressEvent
from clipflow.domain.models.state import PipelineState, can_transition
from clipflow.domain.models.submission import (
    MediaMetadata,
    PipelineStage,
    Submission,
    VideoInfo,
    new_submission_id,
)

__all__ = [
    # Submission
    "Submission",
    "PipelineStage",
    "PipelineState",
    "MediaMetadata",
    "VideoInfo",
    "can_transition",
    "new_submission_id",
    # Analysis
    "AnalysisContext",
    "AnalysisKind",
    "AnalysisResult",
    "Insights",
    "VideoAnalysis",
    # Progress
    "DownloadProgress",
    "ProgressEvent",
]
