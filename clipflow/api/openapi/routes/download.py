"""Direct video download endpoint."""

from fastapi import APIRouter, Query, status
from fastapi.responses import FileResponse
from starlette.background import BackgroundTask

from clipflow.api.dependencies import (
    RetrieverDep,
    SettingsDep,
    ShareResolverDep,
    build_download_policy,
)
from clipflow.api.middleware.error_handler import APIError
from clipflow.commons.telemetry import get_logger
from clipflow.domain.policies import DEFAULT_DOWNLOAD_FILENAME, download_filename

router = APIRouter()
logger = get_logger(__name__)


@router.get(
    "/download",
    response_class=FileResponse,
    summary="Download a video",
    description=(
        "Resolve share text (or take a direct media URL), download it with "
        "retries and return the file as an attachment."
    ),
    responses={200: {"content": {"video/mp4": {}}}},
)
async def download_video(
    settings: SettingsDep,
    resolver: ShareResolverDep,
    retriever: RetrieverDep,
    share: str | None = Query(default=None, description="Share text or link"),
    url: str | None = Query(default=None, description="Direct media URL"),
) -> FileResponse:
    """Stream a downloaded video back; the staged copy is removed afterwards."""
    if url:
        locator = url
        filename = DEFAULT_DOWNLOAD_FILENAME
    elif share:
        resolved = await resolver.resolve(share)
        locator = resolved.locator
        filename = download_filename(resolved.metadata.title)
    else:
        raise APIError(
            code="MISSING_INPUT",
            message='Provide either the "share" or the "url" query parameter',
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    staged = await retriever.fetch_with_retry(
        locator, build_download_policy(settings)
    )
    logger.info(
        "Serving download",
        extra={"attachment": filename, "size_bytes": staged.size_bytes},
    )
    return FileResponse(
        staged.path,
        media_type="video/mp4",
        filename=filename,
        headers={"Cache-Control": "no-cache"},
        background=BackgroundTask(retriever.discard, staged),
    )
