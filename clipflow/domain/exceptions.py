"""Domain exceptions for the clipflow pipeline."""

from __future__ import annotations

from enum import Enum


class DomainException(Exception):
    """Base exception for domain errors."""


class PipelineError(DomainException):
    """Raised when a pipeline stage fails and the run must stop.

    Attributes:
        stage: Value of the pipeline stage that failed.
    """

    stage: str = "unknown"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ParseFailureReason(str, Enum):
    """Why a share input could not be resolved."""

    NO_LINK = "no link found"
    UNSUPPORTED_SOURCE = "unsupported source"
    LOOKUP_FAILED = "lookup failed"


class ParseError(PipelineError):
    """Raised when share input cannot be turned into a media locator."""

    stage = "parsing"

    def __init__(
        self,
        reason: ParseFailureReason,
        raw_input: str,
        detail: str | None = None,
    ) -> None:
        self.reason = reason
        self.raw_input = raw_input
        self.detail = detail
        message = f"Could not parse share input: {reason.value}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class DownloadError(PipelineError):
    """Raised when media bytes cannot be fetched into staging."""

    stage = "downloading"

    def __init__(self, locator: str, reason: str, attempts: int = 1) -> None:
        self.locator = locator
        self.reason = reason
        self.attempts = attempts
        suffix = f" after {attempts} attempts" if attempts > 1 else ""
        super().__init__(f"Download failed{suffix}: {reason}")


class StoreError(PipelineError):
    """Raised when the content-addressed store rejects an operation."""

    stage = "uploading"

    def __init__(self, reason: str, content_address: str | None = None) -> None:
        self.reason = reason
        self.content_address = content_address
        super().__init__(f"Storage failed: {reason}")


class AnalysisError(PipelineError):
    """Raised by analysis backends. Never surfaces as a failed run."""

    stage = "analyzing"

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Analysis failed: {reason}")


class DurationLimitExceededError(AnalysisError):
    """Raised by an analysis backend asked to analyze an over-long video."""

    def __init__(self, duration_seconds: float, limit_minutes: float) -> None:
        self.duration_seconds = duration_seconds
        self.limit_minutes = limit_minutes
        super().__init__(
            f"video duration {duration_seconds:.0f}s exceeds "
            f"the {limit_minutes:g}-minute limit"
        )


class SubmissionNotFoundException(DomainException):
    """Raised when a submission id is unknown or has expired."""

    def __init__(self, submission_id: str) -> None:
        self.submission_id = submission_id
        super().__init__(f"Submission not found: {submission_id}")


class InvalidStageTransitionException(DomainException):
    """Raised when a pipeline state would move to a disallowed stage."""

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Cannot move pipeline from '{current}' to '{target}'")
