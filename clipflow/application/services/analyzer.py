"""AI analysis dispatch with gating, retries and graceful degradation."""

import asyncio
from collections.abc import Awaitable, Callable

from clipflow.commons.telemetry import get_logger
from clipflow.domain.exceptions import AnalysisError, DurationLimitExceededError
from clipflow.domain.models import AnalysisContext, AnalysisResult, VideoInfo
from clipflow.domain.policies import (
    DEFAULT_DURATION_LIMIT_MINUTES,
    exceeds_limit,
    format_duration,
)
from clipflow.domain.value_objects import RetryPolicy
from clipflow.infrastructure.analysis.base import VideoAnalyzerBase

GATED_RECOMMENDATIONS = [
    "Split the video into several short clips",
    "Extract the highlight segments",
    "Cut a short trailer",
]


class AnalyzerDispatcher:
    """Runs the analysis backend for a stored video.

    Never fails a run: over-long videos get a gated result, and a backend
    that keeps failing yields a degraded result with basic info only.
    """

    def __init__(
        self,
        analyzer: VideoAnalyzerBase,
        policy: RetryPolicy | None = None,
        limit_minutes: float = DEFAULT_DURATION_LIMIT_MINUTES,
        enabled: bool = True,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            analyzer: Analysis backend.
            policy: Retry policy. Defaults to 3 attempts, 2s apart.
            limit_minutes: Longest video analyzed.
            enabled: When False, every dispatch returns a degraded result.
            sleep: Coroutine used to wait between attempts.
        """
        self._analyzer = analyzer
        self._policy = policy or RetryPolicy.fixed(3, 2.0)
        self._limit_minutes = limit_minutes
        self._enabled = enabled
        self._sleep = sleep
        self._logger = get_logger(__name__)

    @property
    def limit_minutes(self) -> float:
        """Longest video analyzed, in minutes."""
        return self._limit_minutes

    def is_gated(self, duration_seconds: float | None) -> bool:
        """Check whether a video is too long to analyze."""
        return exceeds_limit(duration_seconds, self._limit_minutes)

    def gate_warning(self, duration_seconds: float | None) -> str:
        """Notice attached to a gated run."""
        return (
            "Video stored, but AI analysis was skipped: duration "
            f"{format_duration(duration_seconds)} exceeds the "
            f"{self._limit_minutes:g}-minute limit"
        )

    def gated_result(self, video_info: VideoInfo) -> AnalysisResult:
        """Result for a video over the duration limit."""
        duration = format_duration(video_info.duration_seconds)
        return AnalysisResult.gated(
            video_info,
            note=(
                f"Duration {duration} exceeds the "
                f"{self._limit_minutes:g}-minute limit"
            ),
            recommendations=list(GATED_RECOMMENDATIONS),
        )

    async def dispatch(
        self,
        video_info: VideoInfo,
        context: AnalysisContext,
    ) -> tuple[AnalysisResult, str | None]:
        """Analyze a stored video.

        Args:
            video_info: The stored video; its public address is analyzed.
            context: Creator context with defaults applied.

        Returns:
            The result and an optional warning for the caller.
        """
        if self.is_gated(video_info.duration_seconds):
            return self.gated_result(video_info), self.gate_warning(
                video_info.duration_seconds
            )

        if not self._enabled:
            note = "AI analysis is disabled"
            return AnalysisResult.degraded(video_info, note), note

        context = context.model_copy(
            update={"duration_seconds": video_info.duration_seconds}
        )
        last_reason = "unknown error"
        attempts = 0

        for attempt in range(self._policy.max_attempts):
            attempts = attempt + 1
            try:
                analysis = await self._analyzer.analyze(
                    video_info.stored_address, context
                )
                return AnalysisResult.genuine(video_info, analysis), None
            except DurationLimitExceededError as e:
                # Same input would be rejected again
                last_reason = e.reason
                break
            except Exception as e:
                last_reason = e.reason if isinstance(e, AnalysisError) else repr(e)
                self._logger.warning(
                    "Analysis attempt failed",
                    extra={
                        "attempt": attempt + 1,
                        "max_attempts": self._policy.max_attempts,
                        "reason": last_reason,
                    },
                )
                if self._policy.should_retry(attempt):
                    await self._sleep(self._policy.delay_for(attempt))

        self._logger.error(
            "Analysis unavailable, returning basic info",
            extra={"reason": last_reason, "attempts": attempts},
        )
        note = (
            f"AI analysis unavailable after {attempts} "
            f"attempts: {last_reason}"
        )
        return AnalysisResult.degraded(video_info, note), note
