"""Unit tests for PipelineOrchestrator."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from clipflow.application.dtos import ResolvedMedia, StagedMedia, StoredObject
from clipflow.application.services import (
    AnalyzerDispatcher,
    ContentAddressedStore,
    MediaRetriever,
    PipelineOrchestrator,
    SessionStore,
    ShareInputResolver,
)
from clipflow.domain.exceptions import (
    AnalysisError,
    DownloadError,
    ParseError,
    ParseFailureReason,
    StoreError,
    SubmissionNotFoundException,
)
from clipflow.domain.models import (
    AnalysisContext,
    AnalysisKind,
    DownloadProgress,
    MediaMetadata,
    PipelineStage,
    VideoAnalysis,
)
from clipflow.domain.value_objects import SourceFamily
from clipflow.infrastructure.media import MediaProbeError
from clipflow.infrastructure.resolvers import ShareLookup, ShareResolverBase

SHARE_TEXT = "Desk tour https://vm.tiktok.com/ZMabc/ copy link"
DIGEST = "e" * 64


def _analysis() -> VideoAnalysis:
    return VideoAnalysis.model_validate(
        {
            "metrics_estimated": {},
            "copywriting": {},
            "visual": {},
            "emotion_value": {},
            "scorecard": {},
        }
    )


@pytest.fixture
def resolver():
    service = MagicMock()
    service.resolve = AsyncMock(
        return_value=ResolvedMedia(
            locator="https://cdn.example.com/v.mp4",
            source_url="https://vm.tiktok.com/ZMabc/",
            metadata=MediaMetadata(
                title="Desk tour @maker.jo",
                author="@maker.jo",
                video_id="7301",
                duration_seconds=42.0,
                source_family=SourceFamily.TIKTOK,
            ),
        )
    )
    return service


@pytest.fixture
def retriever(tmp_path):
    staged = StagedMedia(path=tmp_path / "staged.mp4", size_bytes=100)

    async def fetch_with_retry(locator, policy, on_progress=None):
        on_progress(DownloadProgress(downloaded=50, total=100, percentage=50))
        on_progress(DownloadProgress(downloaded=100, total=100, percentage=100))
        return staged

    service = MagicMock()
    service.fetch_with_retry = AsyncMock(side_effect=fetch_with_retry)
    service.staged = staged
    return service


@pytest.fixture
def store():
    service = MagicMock()
    service.store = AsyncMock(
        return_value=StoredObject(
            address=f"http://cdn.test/clipflow-videos/videos/{DIGEST}.mp4",
            content_address=DIGEST,
            key=f"videos/{DIGEST}.mp4",
            is_duplicate=False,
            size_bytes=100,
        )
    )
    return service


@pytest.fixture
def analyzer():
    backend = MagicMock()
    backend.analyze = AsyncMock(return_value=_analysis())
    return backend


@pytest.fixture
def prober():
    service = MagicMock()
    service.probe_duration = AsyncMock(return_value=41.5)
    return service


@pytest.fixture
def orchestrator(resolver, retriever, store, analyzer, prober):
    return PipelineOrchestrator(
        sessions=SessionStore(),
        resolver=resolver,
        retriever=retriever,
        store=store,
        dispatcher=AnalyzerDispatcher(analyzer, sleep=AsyncMock()),
        prober=prober,
        context_defaults=AnalysisContext(niche="general", goal="growth"),
    )


async def _collect(orchestrator, text=SHARE_TEXT, context=None):
    return [event async for event in orchestrator.run(text, context)]


class TestHappyPath:
    """Tests for a run that reaches analysis."""

    async def test_event_sequence(self, orchestrator):
        events = await _collect(orchestrator)

        assert [(e.stage, e.progress) for e in events] == [
            (PipelineStage.PARSING, 0),
            (PipelineStage.PARSING, 25),
            (PipelineStage.DOWNLOADING, 30),
            (PipelineStage.DOWNLOADING, 45),
            (PipelineStage.DOWNLOADING, 60),
            (PipelineStage.UPLOADING, 60),
            (PipelineStage.VIDEO_READY, 75),
            (PipelineStage.ANALYZING, 80),
            (PipelineStage.COMPLETED, 100),
        ]
        assert [e.sequence for e in events] == list(range(1, len(events) + 1))
        assert sum(e.is_terminal for e in events) == 1

    async def test_event_payloads(self, orchestrator):
        events = await _collect(orchestrator)
        by_stage = {}
        for event in events:
            by_stage.setdefault(event.stage, []).append(event)

        assert by_stage[PipelineStage.PARSING][-1].parsed_locator == (
            "https://cdn.example.com/v.mp4"
        )
        assert by_stage[PipelineStage.DOWNLOADING][1].download.percentage == 50
        ready = by_stage[PipelineStage.VIDEO_READY][0].video_info
        assert ready.id == "7301"
        assert ready.duration_seconds == 41.5
        assert ready.content_address == DIGEST
        completed = events[-1]
        assert completed.result.kind == AnalysisKind.GENUINE
        assert completed.message == "Analysis complete"

    async def test_final_state(self, orchestrator):
        events = await _collect(orchestrator)
        state = orchestrator.get_status(events[0].submission_id)

        assert state.stage == PipelineStage.COMPLETED
        assert state.overall_progress == 100
        assert state.media_locator == "https://cdn.example.com/v.mp4"
        assert state.stored_address.endswith(f"{DIGEST}.mp4")
        assert state.metadata.duration_seconds == 41.5
        assert state.analysis_result.kind == AnalysisKind.GENUINE

    async def test_staged_file_is_discarded(self, orchestrator, retriever):
        await _collect(orchestrator)
        retriever.discard.assert_called_once_with(retriever.staged)

    async def test_context_defaults_applied(self, orchestrator, analyzer):
        await _collect(orchestrator, context=AnalysisContext(niche="tech"))

        _, context = analyzer.analyze.await_args.args
        assert context.niche == "tech"
        assert context.goal == "growth"

    async def test_duplicate_message(self, orchestrator, store):
        store.store.return_value = store.store.return_value.model_copy(
            update={"is_duplicate": True}
        )
        events = await _collect(orchestrator)

        ready = next(e for e in events if e.stage == PipelineStage.VIDEO_READY)
        assert ready.message == "Video already stored"
        assert ready.video_info.is_duplicate

    async def test_content_address_fallback_id(self, orchestrator, resolver):
        resolved = resolver.resolve.return_value
        resolver.resolve.return_value = resolved.model_copy(
            update={"metadata": resolved.metadata.model_copy(update={"video_id": None})}
        )
        events = await _collect(orchestrator)

        assert events[-1].result.video_info.id == DIGEST[:16]


class TestGateAndDegradation:
    """Tests for runs that complete without a genuine analysis."""

    async def test_long_video_skips_analysis(self, orchestrator, prober, analyzer):
        prober.probe_duration.return_value = 600.0

        events = await _collect(orchestrator)

        stages = [e.stage for e in events]
        assert PipelineStage.ANALYZING not in stages
        assert stages[-2:] == [PipelineStage.VIDEO_READY, PipelineStage.COMPLETED]
        assert events[-1].result.kind == AnalysisKind.GATED
        assert "10:00" in events[-1].warning
        analyzer.analyze.assert_not_awaited()

    async def test_probe_failure_keeps_declared_duration(self, orchestrator, prober):
        prober.probe_duration.side_effect = MediaProbeError("x.mp4", "ffprobe missing")

        events = await _collect(orchestrator)

        assert events[-1].stage == PipelineStage.COMPLETED
        assert events[-1].result.video_info.duration_seconds == 42.0

    async def test_zero_probe_keeps_declared_duration(self, orchestrator, prober):
        prober.probe_duration.return_value = 0.0
        events = await _collect(orchestrator)
        assert events[-1].result.video_info.duration_seconds == 42.0

    async def test_analysis_failure_still_completes(self, orchestrator, analyzer):
        analyzer.analyze.side_effect = AnalysisError("quota exceeded")

        events = await _collect(orchestrator)

        assert events[-1].stage == PipelineStage.COMPLETED
        assert events[-1].result.kind == AnalysisKind.DEGRADED
        assert "quota exceeded" in events[-1].warning
        assert events[-1].message == events[-1].result.note


class TestFailures:
    """Tests for runs that end in the error stage."""

    async def test_parse_failure(self, orchestrator, resolver, retriever):
        resolver.resolve.side_effect = ParseError(
            ParseFailureReason.NO_LINK, "hello"
        )

        events = await _collect(orchestrator, text="hello")

        assert [e.stage for e in events] == [PipelineStage.PARSING, PipelineStage.ERROR]
        assert "no link found" in events[-1].error
        retriever.fetch_with_retry.assert_not_awaited()
        state = orchestrator.get_status(events[0].submission_id)
        assert state.stage == PipelineStage.ERROR
        assert state.error_message == events[-1].error

    async def test_download_failure(self, orchestrator, retriever, store):
        retriever.fetch_with_retry.side_effect = DownloadError(
            "https://cdn.example.com/v.mp4", "HTTP 404", attempts=3
        )

        events = await _collect(orchestrator)

        assert events[-1].stage == PipelineStage.ERROR
        assert events[-2].stage == PipelineStage.DOWNLOADING
        assert "HTTP 404" in events[-1].error
        store.store.assert_not_awaited()

    async def test_store_failure_discards_staged_file(
        self, orchestrator, retriever, store
    ):
        store.store.side_effect = StoreError("bucket missing")

        events = await _collect(orchestrator)

        assert events[-1].stage == PipelineStage.ERROR
        assert "bucket missing" in events[-1].error
        retriever.discard.assert_called_once_with(retriever.staged)

    async def test_unexpected_error(self, orchestrator, store):
        store.store.side_effect = RuntimeError("disk on fire")

        events = await _collect(orchestrator)

        assert events[-1].stage == PipelineStage.ERROR
        assert events[-1].error == "Unexpected error: disk on fire"

    async def test_progress_never_decreases(self, orchestrator, store):
        store.store.side_effect = StoreError("denied")
        events = await _collect(orchestrator)
        progress = [e.progress for e in events]
        assert progress == sorted(progress)


class TestBackgroundRuns:
    """Tests for start, status and idle waiting."""

    async def test_start_returns_id_and_runs_in_background(self, orchestrator):
        submission_id, channel = orchestrator.start(SHARE_TEXT)

        await orchestrator.wait_idle()

        assert channel.closed
        assert orchestrator.get_status(submission_id).stage == PipelineStage.COMPLETED

    async def test_concurrent_submissions_are_independent(
        self, orchestrator, resolver
    ):
        first, _ = orchestrator.start(SHARE_TEXT)
        second, _ = orchestrator.start(SHARE_TEXT)

        await orchestrator.wait_idle()

        assert first != second
        assert orchestrator.get_status(first).stage == PipelineStage.COMPLETED
        assert orchestrator.get_status(second).stage == PipelineStage.COMPLETED
        assert len(orchestrator.sessions) == 2

    def test_unknown_submission(self, orchestrator):
        with pytest.raises(SubmissionNotFoundException):
            orchestrator.get_status("sub_missing")


class StaticShareLookup(ShareResolverBase):
    """Lookup service answering from a fixed share-URL table."""

    def __init__(self, media_urls: dict[str, str]) -> None:
        self.media_urls = media_urls

    async def resolve_share_input(self, url, family):
        return ShareLookup(
            media_url=self.media_urls.get(url),
            title="Desk tour @maker.jo",
            duration_seconds=42.0,
        )


def _stages(events) -> list[str]:
    stages: list[str] = []
    for event in events:
        if not stages or stages[-1] != event.stage.value:
            stages.append(event.stage.value)
    return stages


class TestComposedPipeline:
    """Runs with the real resolver, retriever and store."""

    PAYLOAD = b"\x00\x00\x00\x18ftypmp42" + b"\x01" * 500

    @pytest.fixture
    def fetched(self):
        return []

    @pytest.fixture
    def composed(self, blob, analyzer, fetched, tmp_path):
        def handler(request):
            fetched.append(str(request.url))
            return httpx.Response(200, content=self.PAYLOAD)

        lookup = StaticShareLookup(
            {
                "https://vm.tiktok.com/ZMabc/": "https://cdn.example.com/a.mp4",
                "https://v.douyin.com/xyz/": "https://cdn.example.com/b.mp4",
            }
        )
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return PipelineOrchestrator(
            sessions=SessionStore(),
            resolver=ShareInputResolver(lookup),
            retriever=MediaRetriever(
                client, tmp_path / "staging", progress_interval=0, chunk_size=64
            ),
            store=ContentAddressedStore(blob, "clipflow-videos"),
            dispatcher=AnalyzerDispatcher(analyzer, sleep=AsyncMock()),
        )

    async def test_identical_bytes_stored_once(
        self, composed, blob, fetched, tmp_path
    ):
        first = await _collect(composed, SHARE_TEXT)
        second = await _collect(composed, "watch this https://v.douyin.com/xyz/")

        expected = [
            "parsing",
            "downloading",
            "uploading",
            "video_ready",
            "analyzing",
            "completed",
        ]
        assert _stages(first) == expected
        assert _stages(second) == expected

        ready = [
            next(e for e in run if e.stage == PipelineStage.VIDEO_READY)
            for run in (first, second)
        ]
        assert not ready[0].video_info.is_duplicate
        assert ready[1].video_info.is_duplicate
        assert ready[1].video_info.stored_address == ready[0].video_info.stored_address
        assert blob.upload_count == 1

        assert fetched == [
            "https://cdn.example.com/a.mp4",
            "https://cdn.example.com/b.mp4",
        ]
        downloads = [e.download for e in first if e.download is not None]
        assert [d.percentage for d in downloads] == sorted(
            d.percentage for d in downloads
        )
        assert downloads[-1].downloaded == len(self.PAYLOAD)
        assert first[-1].result.kind == AnalysisKind.GENUINE
        assert list((tmp_path / "staging").iterdir()) == []

    async def test_text_without_link(self, composed, fetched, blob):
        events = await _collect(composed, "hello world")

        assert _stages(events) == ["parsing", "error"]
        assert "no link found" in events[-1].error
        assert fetched == []
        assert blob.upload_count == 0
