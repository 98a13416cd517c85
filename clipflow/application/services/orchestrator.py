"""Pipeline orchestration: one background task per submission."""

import asyncio
from collections.abc import AsyncIterator
from typing import Any

from clipflow.application.dtos.pipeline import ResolvedMedia, StagedMedia, StoredObject
from clipflow.application.services.analyzer import AnalyzerDispatcher
from clipflow.application.services.content_store import ContentAddressedStore
from clipflow.application.services.progress import ProgressChannel
from clipflow.application.services.resolver import ShareInputResolver
from clipflow.application.services.retriever import MediaRetriever
from clipflow.application.services.sessions import SessionStore
from clipflow.commons.telemetry import LogContext, get_logger
from clipflow.domain.exceptions import PipelineError
from clipflow.domain.models import (
    AnalysisContext,
    AnalysisResult,
    DownloadProgress,
    PipelineStage,
    PipelineState,
    ProgressEvent,
    VideoInfo,
)
from clipflow.domain.policies import format_duration, format_file_size
from clipflow.domain.value_objects import RetryPolicy
from clipflow.infrastructure.media.base import DurationProberBase, MediaProbeError

# Overall progress at each milestone
PARSED_PROGRESS = 25
DOWNLOAD_START_PROGRESS = 30
DOWNLOAD_SPAN = 30
UPLOAD_START_PROGRESS = 60
VIDEO_READY_PROGRESS = 75
ANALYZING_PROGRESS = 80
COMPLETED_PROGRESS = 100


class PipelineOrchestrator:
    """Drives submissions through parse, download, store and analyze.

    Pipeline steps:
    1. Resolve the share input to a media locator
    2. Download it into staging, reporting byte progress
    3. Measure the real duration of the staged file
    4. Store it content-addressed, then delete the staged file
    5. Skip analysis for over-long videos, otherwise analyze

    Every run ends with exactly one terminal event on its channel. Stage
    failures end the run in the error stage; analysis failures do not.
    """

    def __init__(
        self,
        sessions: SessionStore,
        resolver: ShareInputResolver,
        retriever: MediaRetriever,
        store: ContentAddressedStore,
        dispatcher: AnalyzerDispatcher,
        download_policy: RetryPolicy | None = None,
        prober: DurationProberBase | None = None,
        context_defaults: AnalysisContext | None = None,
    ) -> None:
        """Initialize the orchestrator with its stage services.

        Args:
            sessions: Session table holding state and channels.
            resolver: Share input resolver.
            retriever: Media downloader.
            store: Content-addressed video store.
            dispatcher: Analysis dispatcher.
            download_policy: Retry policy for downloads.
            prober: Measures staged files; None keeps the resolved duration.
            context_defaults: Fills context fields a submission leaves unset.
        """
        self._sessions = sessions
        self._resolver = resolver
        self._retriever = retriever
        self._store = store
        self._dispatcher = dispatcher
        self._download_policy = download_policy or RetryPolicy()
        self._prober = prober
        self._context_defaults = context_defaults or AnalysisContext()
        self._tasks: set[asyncio.Task[None]] = set()
        self._logger = get_logger(__name__)

    @property
    def sessions(self) -> SessionStore:
        """Session table backing this orchestrator."""
        return self._sessions

    def start(
        self,
        raw_input: str,
        context: AnalysisContext | None = None,
    ) -> tuple[str, ProgressChannel]:
        """Create a submission and run its pipeline in the background.

        Must be called from a running event loop.

        Returns:
            The submission id and the channel its events arrive on.
        """
        submission, channel = self._sessions.create(raw_input)
        merged = (context or AnalysisContext()).merged_with(self._context_defaults)
        task = asyncio.create_task(
            self._drive(submission.id, raw_input, merged, channel),
            name=f"pipeline-{submission.id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return submission.id, channel

    async def run(
        self,
        raw_input: str,
        context: AnalysisContext | None = None,
    ) -> AsyncIterator[ProgressEvent]:
        """Start a submission and yield its events through the terminal one."""
        _, channel = self.start(raw_input, context)
        async for event in channel:
            yield event

    def get_status(self, submission_id: str) -> PipelineState:
        """Current state of a submission.

        Raises:
            SubmissionNotFoundException: If unknown or expired.
        """
        return self._sessions.get(submission_id)

    async def wait_idle(self) -> None:
        """Wait for every in-flight pipeline to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _drive(
        self,
        submission_id: str,
        raw_input: str,
        context: AnalysisContext,
        channel: ProgressChannel,
    ) -> None:
        run = _Run(self._sessions, submission_id, channel)
        with LogContext(submission_id=submission_id):
            self._logger.info("Pipeline started")
            try:
                await self._execute(run, raw_input, context)
            except PipelineError as e:
                self._logger.warning(
                    "Pipeline failed",
                    extra={"stage": e.stage, "error": str(e)},
                )
                run.fail(str(e))
            except Exception as e:
                self._logger.exception("Pipeline crashed")
                run.fail(f"Unexpected error: {e}")

    async def _execute(
        self,
        run: "_Run",
        raw_input: str,
        context: AnalysisContext,
    ) -> None:
        run.advance(PipelineStage.PARSING, 0, 0, message="Parsing share input")
        resolved = await self._resolver.resolve(raw_input)
        run.advance(
            PipelineStage.PARSING,
            100,
            PARSED_PROGRESS,
            state_updates={
                "media_locator": resolved.locator,
                "metadata": resolved.metadata,
            },
            parsed_locator=resolved.locator,
            message="Share link resolved",
        )

        run.advance(
            PipelineStage.DOWNLOADING,
            0,
            DOWNLOAD_START_PROGRESS,
            message="Downloading video",
        )
        staged = await self._retriever.fetch_with_retry(
            resolved.locator, self._download_policy, run.on_download_progress
        )

        try:
            duration = await self._measure_duration(staged, resolved)
            run.advance(
                PipelineStage.UPLOADING,
                0,
                UPLOAD_START_PROGRESS,
                message="Storing video",
            )
            stored = await self._store.store(
                staged.path, resolved.metadata, source_url=resolved.source_url
            )
        finally:
            self._retriever.discard(staged)

        video_info = self._video_info(raw_input, resolved, stored, duration)
        run.advance(
            PipelineStage.VIDEO_READY,
            100,
            VIDEO_READY_PROGRESS,
            state_updates={
                "stored_address": stored.address,
                "video_info": video_info,
                "metadata": resolved.metadata.model_copy(
                    update={"duration_seconds": duration}
                ),
            },
            video_info=video_info,
            message=(
                "Video already stored"
                if stored.is_duplicate
                else f"Video stored ({format_file_size(stored.size_bytes)})"
            ),
        )

        if self._dispatcher.is_gated(duration):
            self._logger.info(
                "Skipping analysis for long video",
                extra={"duration": format_duration(duration)},
            )
            result = self._dispatcher.gated_result(video_info)
            warning = self._dispatcher.gate_warning(duration)
        else:
            run.advance(
                PipelineStage.ANALYZING,
                0,
                ANALYZING_PROGRESS,
                message="Analyzing video",
            )
            result, warning = await self._dispatcher.dispatch(video_info, context)

        run.complete(result, warning)
        self._logger.info(
            "Pipeline completed", extra={"result_kind": result.kind.value}
        )

    async def _measure_duration(
        self, staged: StagedMedia, resolved: ResolvedMedia
    ) -> float | None:
        declared = resolved.metadata.duration_seconds
        if self._prober is None:
            return declared
        try:
            measured = await self._prober.probe_duration(staged.path)
        except MediaProbeError as e:
            self._logger.warning(
                "Could not measure duration", extra={"reason": e.reason}
            )
            return declared
        return measured if measured > 0 else declared

    @staticmethod
    def _video_info(
        raw_input: str,
        resolved: ResolvedMedia,
        stored: StoredObject,
        duration: float | None,
    ) -> VideoInfo:
        metadata = resolved.metadata
        return VideoInfo(
            id=metadata.video_id or stored.content_address[:16],
            original_input=raw_input,
            title=metadata.title or "Untitled video",
            author=metadata.author,
            duration_seconds=duration,
            source_family=metadata.source_family,
            stored_address=stored.address,
            content_address=stored.content_address,
            size_bytes=stored.size_bytes,
            is_duplicate=stored.is_duplicate,
            cover_url=metadata.cover_url,
        )


class _Run:
    """Keeps one run's session state and channel in step."""

    def __init__(
        self,
        sessions: SessionStore,
        submission_id: str,
        channel: ProgressChannel,
    ) -> None:
        self._sessions = sessions
        self._channel = channel
        self._logger = get_logger(__name__)
        self.state = self._sessions.get(submission_id)

    def _save(self, state: PipelineState) -> None:
        self.state = state
        self._sessions.update(state)

    def advance(
        self,
        stage: PipelineStage,
        stage_progress: int,
        overall_progress: int,
        state_updates: dict[str, Any] | None = None,
        **payload: Any,
    ) -> None:
        """Move to a stage (or stay in it), record progress and publish."""
        state = self.state.transition_to(stage, **(state_updates or {}))
        self._save(state.with_progress(stage_progress, overall_progress))
        self._channel.publish(
            stage,
            self.state.overall_progress,
            self.state.progress_percent,
            **payload,
        )

    def on_download_progress(self, progress: DownloadProgress) -> None:
        """Map byte progress onto the downloading stage."""
        overall = DOWNLOAD_START_PROGRESS + progress.percentage * DOWNLOAD_SPAN // 100
        self.advance(
            PipelineStage.DOWNLOADING,
            progress.percentage,
            overall,
            download=progress,
        )

    def complete(self, result: AnalysisResult, warning: str | None) -> None:
        """Finish the run successfully."""
        self._save(self.state.mark_completed(result, warning))
        self._channel.publish(
            PipelineStage.COMPLETED,
            COMPLETED_PROGRESS,
            100,
            result=result,
            warning=warning,
            message="Analysis complete" if result.is_genuine else result.note,
        )

    def fail(self, message: str) -> None:
        """Finish the run in the error stage."""
        if self._channel.closed:
            self._logger.error(
                "Failure after terminal event", extra={"error": message}
            )
            return
        failed = self.state.mark_failed(message)
        self._save(failed)
        self._channel.publish(
            PipelineStage.ERROR,
            failed.overall_progress,
            failed.progress_percent,
            error=message,
        )
