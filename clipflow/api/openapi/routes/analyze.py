"""Streaming analysis endpoint."""

from collections.abc import AsyncIterator

from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from clipflow.api.dependencies import OrchestratorDep
from clipflow.application.dtos import AnalyzeRequest
from clipflow.application.services import ProgressChannel

router = APIRouter()

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


async def _event_stream(channel: ProgressChannel) -> AsyncIterator[str]:
    async for event in channel:
        yield event.to_sse()


@router.post(
    "/analyze",
    summary="Analyze a share link",
    description=(
        "Resolve, download, store and analyze a video. Progress events are "
        "streamed as server-sent events; the stream ends after the completed "
        "or error event."
    ),
    response_class=StreamingResponse,
    responses={200: {"content": {"text/event-stream": {}}}},
)
async def analyze(
    request: AnalyzeRequest,
    orchestrator: OrchestratorDep,
) -> StreamingResponse:
    """Start a submission and stream its progress."""
    submission_id, channel = orchestrator.start(request.input, request.context)
    headers = {**SSE_HEADERS, "X-Submission-ID": submission_id}
    return StreamingResponse(
        _event_stream(channel),
        media_type="text/event-stream",
        headers=headers,
    )
