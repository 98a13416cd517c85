"""Unit tests for the pipeline state machine."""

import pytest

from clipflow.domain.exceptions import InvalidStageTransitionException
from clipflow.domain.models import (
    AnalysisResult,
    PipelineStage,
    PipelineState,
    VideoInfo,
    can_transition,
)
from clipflow.domain.value_objects import SourceFamily


def _video_info() -> VideoInfo:
    return VideoInfo(
        id="v1",
        original_input="https://youtu.be/v1",
        title="Title",
        source_family=SourceFamily.YOUTUBE,
        stored_address="http://minio/bucket/videos/abc.mp4",
        content_address="a" * 64,
        size_bytes=10,
        is_duplicate=False,
    )


class TestCanTransition:
    """Tests for allowed stage moves."""

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (PipelineStage.IDLE, PipelineStage.PARSING),
            (PipelineStage.PARSING, PipelineStage.DOWNLOADING),
            (PipelineStage.DOWNLOADING, PipelineStage.UPLOADING),
            (PipelineStage.UPLOADING, PipelineStage.VIDEO_READY),
            (PipelineStage.VIDEO_READY, PipelineStage.ANALYZING),
            (PipelineStage.VIDEO_READY, PipelineStage.COMPLETED),
            (PipelineStage.ANALYZING, PipelineStage.COMPLETED),
        ],
    )
    def test_forward_moves(self, current, target):
        assert can_transition(current, target)

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (PipelineStage.IDLE, PipelineStage.DOWNLOADING),
            (PipelineStage.DOWNLOADING, PipelineStage.PARSING),
            (PipelineStage.UPLOADING, PipelineStage.COMPLETED),
            (PipelineStage.COMPLETED, PipelineStage.PARSING),
        ],
    )
    def test_disallowed_moves(self, current, target):
        assert not can_transition(current, target)

    def test_any_running_stage_can_fail(self):
        for stage in PipelineStage:
            if stage.is_terminal:
                assert not can_transition(stage, PipelineStage.ERROR)
            else:
                assert can_transition(stage, PipelineStage.ERROR)


class TestPipelineState:
    """Tests for PipelineState helpers."""

    def test_defaults(self):
        state = PipelineState(submission_id="sub_1")
        assert state.stage == PipelineStage.IDLE
        assert state.progress_percent == 0
        assert state.overall_progress == 0
        assert not state.is_terminal

    def test_transition_returns_copy(self):
        state = PipelineState(submission_id="sub_1")
        parsing = state.transition_to(PipelineStage.PARSING, media_locator="u")
        assert state.stage == PipelineStage.IDLE
        assert parsing.stage == PipelineStage.PARSING
        assert parsing.media_locator == "u"

    def test_transition_resets_stage_progress(self):
        state = (
            PipelineState(submission_id="sub_1")
            .transition_to(PipelineStage.PARSING)
            .with_progress(100, 25)
            .transition_to(PipelineStage.DOWNLOADING)
        )
        assert state.progress_percent == 0
        assert state.overall_progress == 25

    def test_same_stage_keeps_progress(self):
        state = (
            PipelineState(submission_id="sub_1")
            .transition_to(PipelineStage.PARSING)
            .with_progress(50, 10)
            .transition_to(PipelineStage.PARSING)
        )
        assert state.progress_percent == 50

    def test_invalid_transition_raises(self):
        state = PipelineState(submission_id="sub_1")
        with pytest.raises(InvalidStageTransitionException):
            state.transition_to(PipelineStage.UPLOADING)

    def test_progress_never_decreases(self):
        state = PipelineState(submission_id="sub_1").with_progress(60, 40)
        state = state.with_progress(30, 20)
        assert state.progress_percent == 60
        assert state.overall_progress == 40

    def test_progress_is_clamped(self):
        state = PipelineState(submission_id="sub_1").with_progress(150, 120)
        assert state.progress_percent == 100
        assert state.overall_progress == 100

    def test_mark_failed(self):
        state = PipelineState(submission_id="sub_1").transition_to(
            PipelineStage.PARSING
        )
        failed = state.mark_failed("boom")
        assert failed.stage == PipelineStage.ERROR
        assert failed.error_message == "boom"
        assert failed.is_terminal

    def test_cannot_fail_after_completion(self):
        state = (
            PipelineState(submission_id="sub_1")
            .transition_to(PipelineStage.PARSING)
            .transition_to(PipelineStage.DOWNLOADING)
            .transition_to(PipelineStage.UPLOADING)
            .transition_to(PipelineStage.VIDEO_READY)
        )
        completed = state.mark_completed(
            AnalysisResult.degraded(_video_info(), "unavailable")
        )
        with pytest.raises(InvalidStageTransitionException):
            completed.mark_failed("late")

    def test_mark_completed(self):
        state = (
            PipelineState(submission_id="sub_1")
            .transition_to(PipelineStage.PARSING)
            .transition_to(PipelineStage.DOWNLOADING)
            .transition_to(PipelineStage.UPLOADING)
            .transition_to(PipelineStage.VIDEO_READY)
            .transition_to(PipelineStage.ANALYZING)
        )
        result = AnalysisResult.degraded(_video_info(), "unavailable")
        completed = state.mark_completed(result, warning="careful")
        assert completed.stage == PipelineStage.COMPLETED
        assert completed.analysis_result == result
        assert completed.warning == "careful"
        assert completed.progress_percent == 100
        assert completed.overall_progress == 100
