"""Pipeline state machine and per-submission state snapshot."""

from datetime import UTC, datetime
from typing import Self

from pydantic import BaseModel, Field

from clipflow.domain.exceptions import InvalidStageTransitionException
from clipflow.domain.models.analysis import AnalysisResult
from clipflow.domain.models.submission import MediaMetadata, PipelineStage, VideoInfo


_ALLOWED_TRANSITIONS: dict[PipelineStage, frozenset[PipelineStage]] = {
    PipelineStage.IDLE: frozenset({PipelineStage.PARSING}),
    PipelineStage.PARSING: frozenset({PipelineStage.DOWNLOADING}),
    PipelineStage.DOWNLOADING: frozenset({PipelineStage.UPLOADING}),
    PipelineStage.UPLOADING: frozenset({PipelineStage.VIDEO_READY}),
    PipelineStage.VIDEO_READY: frozenset(
        {PipelineStage.ANALYZING, PipelineStage.COMPLETED}
    ),
    PipelineStage.ANALYZING: frozenset({PipelineStage.COMPLETED}),
    PipelineStage.COMPLETED: frozenset(),
    PipelineStage.ERROR: frozenset(),
}


def can_transition(current: PipelineStage, target: PipelineStage) -> bool:
    """Check whether the state machine allows moving from current to target.

    Every non-terminal stage may fail into ERROR.
    """
    if target == PipelineStage.ERROR:
        return not current.is_terminal
    return target in _ALLOWED_TRANSITIONS[current]


class PipelineState(BaseModel):
    """Snapshot of where a submission's run stands.

    Instances are replaced, never mutated: every helper returns a copy.
    """

    submission_id: str = Field(description="Owning submission id")
    stage: PipelineStage = Field(
        default=PipelineStage.IDLE,
        description="Current stage",
    )
    progress_percent: int = Field(
        default=0,
        ge=0,
        le=100,
        description="Progress within the current stage",
    )
    overall_progress: int = Field(
        default=0,
        ge=0,
        le=100,
        description="Progress across the whole run",
    )
    media_locator: str | None = Field(
        default=None,
        description="Resolved, directly fetchable media URL",
    )
    metadata: MediaMetadata = Field(
        default_factory=MediaMetadata,
        description="Metadata known so far",
    )
    stored_address: str | None = Field(
        default=None,
        description="Public URL once stored",
    )
    video_info: VideoInfo | None = Field(default=None, description="Stored video")
    analysis_result: AnalysisResult | None = Field(
        default=None,
        description="Final result when completed",
    )
    warning: str | None = Field(default=None, description="Non-fatal notice")
    error_message: str | None = Field(
        default=None,
        description="Failure details when in error",
    )
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_terminal(self) -> bool:
        """Check if the run has finished, successfully or not."""
        return self.stage.is_terminal

    def transition_to(self, new_stage: PipelineStage, **updates: object) -> Self:
        """Create a new instance in the given stage.

        Stage progress restarts at zero; overall progress is kept.

        Args:
            new_stage: Stage to move to.
            **updates: Additional fields to set on the copy.

        Returns:
            A new PipelineState in ``new_stage``.

        Raises:
            InvalidStageTransitionException: If the move is not allowed.
        """
        if new_stage == self.stage:
            return self.model_copy(
                update={**updates, "updated_at": datetime.now(UTC)}
            )
        if not can_transition(self.stage, new_stage):
            raise InvalidStageTransitionException(self.stage.value, new_stage.value)
        return self.model_copy(
            update={
                **updates,
                "stage": new_stage,
                "progress_percent": 0,
                "updated_at": datetime.now(UTC),
            }
        )

    def with_progress(self, stage_progress: int, overall_progress: int) -> Self:
        """Create a new instance with advanced progress.

        Neither value is allowed to move backwards.
        """
        return self.model_copy(
            update={
                "progress_percent": max(
                    self.progress_percent, min(100, max(0, stage_progress))
                ),
                "overall_progress": max(
                    self.overall_progress, min(100, max(0, overall_progress))
                ),
                "updated_at": datetime.now(UTC),
            }
        )

    def mark_failed(self, error_message: str) -> Self:
        """Create a new instance in the error stage.

        Raises:
            InvalidStageTransitionException: If the run already finished.
        """
        failed = self.transition_to(PipelineStage.ERROR, error_message=error_message)
        return failed.model_copy(update={"analysis_result": None})

    def mark_completed(
        self,
        result: AnalysisResult,
        warning: str | None = None,
    ) -> Self:
        """Create a new, completed instance carrying the final result."""
        completed = self.transition_to(
            PipelineStage.COMPLETED,
            analysis_result=result,
            warning=warning,
            error_message=None,
        )
        return completed.model_copy(
            update={"progress_percent": 100, "overall_progress": 100}
        )
