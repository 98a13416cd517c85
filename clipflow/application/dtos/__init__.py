"""Data Transfer Objects for application layer."""

from clipflow.application.dtos.pipeline import (
    FormatOption,
    ResolvedMedia,
    StagedMedia,
    StoredObject,
)
from clipflow.application.dtos.submission import (
    AnalyzeRequest,
    ResolvedShareData,
    ResolveRequest,
    ResolveResponse,
    SubmissionAccepted,
)

__all__ = [
    # Pipeline DTOs
    "FormatOption",
    "ResolvedMedia",
    "StagedMedia",
    "StoredObject",
    # Endpoint DTOs
    "AnalyzeRequest",
    "SubmissionAccepted",
    "ResolveRequest",
    "ResolveResponse",
    "ResolvedShareData",
]
