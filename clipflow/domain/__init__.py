"""Domain layer - pipeline models, value objects and policies."""

from clipflow.domain.exceptions import (
    AnalysisError,
    DomainException,
    DownloadError,
    DurationLimitExceededError,
    InvalidStageTransitionException,
    ParseError,
    ParseFailureReason,
    PipelineError,
    StoreError,
    SubmissionNotFoundException,
)
from clipflow.domain.models import (
    AnalysisContext,
    AnalysisKind,
    AnalysisResult,
    DownloadProgress,
    Insights,
    MediaMetadata,
    PipelineStage,
    PipelineState,
    ProgressEvent,
    Submission,
    VideoAnalysis,
    VideoInfo,
)
from clipflow.domain.policies import (
    download_filename,
    exceeds_limit,
    format_duration,
    format_file_size,
)
from clipflow.domain.value_objects import ContentAddress, RetryPolicy, SourceFamily

__all__ = [
    # Exceptions
    "DomainException",
    "PipelineError",
    "ParseError",
    "ParseFailureReason",
    "DownloadError",
    "StoreError",
    "AnalysisError",
    "DurationLimitExceededError",
    "SubmissionNotFoundException",
    "InvalidStageTransitionException",
    # Models
    "Submission",
    "PipelineStage",
    "PipelineState",
    "MediaMetadata",
    "VideoInfo",
    "AnalysisContext",
    "AnalysisKind",
    "AnalysisResult",
    "Insights",
    "VideoAnalysis",
    "DownloadProgress",
    "ProgressEvent",
    # Policies
    "download_filename",
    "exceeds_limit",
    "format_duration",
    "format_file_size",
    # Value Objects
    "ContentAddress",
    "RetryPolicy",
    "SourceFamily",
]
