"""Unit tests for AnalyzerDispatcher."""

from unittest.mock import AsyncMock

import pytest

from clipflow.application.services import AnalyzerDispatcher
from clipflow.application.services.analyzer import GATED_RECOMMENDATIONS
from clipflow.domain.exceptions import AnalysisError, DurationLimitExceededError
from clipflow.domain.models import (
    AnalysisContext,
    AnalysisKind,
    VideoAnalysis,
    VideoInfo,
)
from clipflow.domain.value_objects import RetryPolicy, SourceFamily


def _video_info(duration: float | None = 42.0) -> VideoInfo:
    return VideoInfo(
        id="7301",
        original_input="https://vm.tiktok.com/abc/",
        title="Desk tour",
        duration_seconds=duration,
        source_family=SourceFamily.TIKTOK,
        stored_address="http://cdn.test/clipflow-videos/videos/x.mp4",
        content_address="d" * 64,
        size_bytes=100,
        is_duplicate=False,
    )


def _analysis() -> VideoAnalysis:
    return VideoAnalysis.model_validate(
        {
            "metrics_estimated": {},
            "copywriting": {"hook_type": ["question"]},
            "visual": {},
            "emotion_value": {},
            "scorecard": {"priority_fixes": ["Cut the intro"]},
        }
    )


@pytest.fixture
def analyzer():
    backend = AsyncMock()
    backend.analyze.return_value = _analysis()
    return backend


@pytest.fixture
def sleep():
    return AsyncMock()


class TestGate:
    """Tests for the duration gate."""

    def test_is_gated(self, analyzer):
        dispatcher = AnalyzerDispatcher(analyzer)
        assert dispatcher.is_gated(301)
        assert not dispatcher.is_gated(300)
        assert not dispatcher.is_gated(None)

    def test_gate_warning(self, analyzer):
        warning = AnalyzerDispatcher(analyzer).gate_warning(400)
        assert "6:40" in warning
        assert "5-minute" in warning

    async def test_gated_video_skips_backend(self, analyzer, sleep):
        dispatcher = AnalyzerDispatcher(analyzer, sleep=sleep)

        result, warning = await dispatcher.dispatch(
            _video_info(duration=900), AnalysisContext()
        )

        analyzer.analyze.assert_not_awaited()
        assert result.kind == AnalysisKind.GATED
        assert result.recommendations == GATED_RECOMMENDATIONS
        assert result.insights.hooks == []
        assert warning is not None

    async def test_custom_limit(self, analyzer, sleep):
        dispatcher = AnalyzerDispatcher(analyzer, limit_minutes=0.5, sleep=sleep)
        result, _ = await dispatcher.dispatch(
            _video_info(duration=31), AnalysisContext()
        )
        assert result.kind == AnalysisKind.GATED


class TestDispatch:
    """Tests for analysis attempts and degradation."""

    async def test_genuine_result(self, analyzer, sleep):
        dispatcher = AnalyzerDispatcher(analyzer, sleep=sleep)

        result, warning = await dispatcher.dispatch(
            _video_info(), AnalysisContext(niche="tech")
        )

        assert result.kind == AnalysisKind.GENUINE
        assert result.recommendations == ["Cut the intro"]
        assert warning is None
        url, context = analyzer.analyze.await_args.args
        assert url == "http://cdn.test/clipflow-videos/videos/x.mp4"
        assert context.niche == "tech"
        assert context.duration_seconds == 42.0
        sleep.assert_not_awaited()

    async def test_retries_with_fixed_delay(self, analyzer, sleep):
        analyzer.analyze.side_effect = [
            AnalysisError("timeout"),
            AnalysisError("timeout"),
            _analysis(),
        ]
        dispatcher = AnalyzerDispatcher(analyzer, sleep=sleep)

        result, _ = await dispatcher.dispatch(_video_info(), AnalysisContext())

        assert result.kind == AnalysisKind.GENUINE
        assert analyzer.analyze.await_count == 3
        assert [c.args[0] for c in sleep.await_args_list] == [2.0, 2.0]

    async def test_degrades_after_exhaustion(self, analyzer, sleep):
        analyzer.analyze.side_effect = AnalysisError("model overloaded")
        dispatcher = AnalyzerDispatcher(analyzer, sleep=sleep)

        result, warning = await dispatcher.dispatch(_video_info(), AnalysisContext())

        assert analyzer.analyze.await_count == 3
        assert sleep.await_count == 2
        assert result.kind == AnalysisKind.DEGRADED
        assert result.analysis is None
        assert result.video_info.title == "Desk tour"
        assert "model overloaded" in result.note
        assert warning == result.note

    async def test_unexpected_backend_errors_are_absorbed(self, analyzer, sleep):
        analyzer.analyze.side_effect = RuntimeError("socket closed")
        dispatcher = AnalyzerDispatcher(
            analyzer, policy=RetryPolicy.fixed(2, 0.0), sleep=sleep
        )

        result, _ = await dispatcher.dispatch(_video_info(), AnalysisContext())

        assert result.kind == AnalysisKind.DEGRADED
        assert "socket closed" in result.note
        assert analyzer.analyze.await_count == 2

    async def test_backend_duration_rejection_degrades_without_retry(
        self, analyzer, sleep
    ):
        analyzer.analyze.side_effect = DurationLimitExceededError(600, 5)
        dispatcher = AnalyzerDispatcher(analyzer, sleep=sleep)

        result, warning = await dispatcher.dispatch(
            _video_info(duration=None), AnalysisContext()
        )

        assert result.kind == AnalysisKind.DEGRADED
        assert result.video_info.duration_seconds is None
        assert "after 1 attempts" in warning
        assert "5-minute limit" in warning
        assert analyzer.analyze.await_count == 1
        sleep.assert_not_awaited()

    async def test_disabled(self, analyzer, sleep):
        dispatcher = AnalyzerDispatcher(analyzer, enabled=False, sleep=sleep)

        result, warning = await dispatcher.dispatch(_video_info(), AnalysisContext())

        analyzer.analyze.assert_not_awaited()
        assert result.kind == AnalysisKind.DEGRADED
        assert warning == "AI analysis is disabled"
