"""Share link resolution endpoint (no download)."""

from fastapi import APIRouter

from clipflow.api.dependencies import ShareResolverDep
from clipflow.application.dtos import ResolvedShareData, ResolveRequest, ResolveResponse
from clipflow.commons.telemetry import get_logger
from clipflow.domain.exceptions import ParseError

router = APIRouter()
logger = get_logger(__name__)


@router.post(
    "/resolve",
    response_model=ResolveResponse,
    response_model_exclude_none=True,
    summary="Resolve a share link",
    description=(
        "Turn share text into a direct media URL plus metadata. "
        "Failures are reported in the body with HTTP 200."
    ),
)
async def resolve_share(
    request: ResolveRequest,
    resolver: ShareResolverDep,
) -> ResolveResponse:
    """Resolve share input and report the outcome."""
    try:
        resolved = await resolver.resolve(request.input)
    except ParseError as e:
        logger.info("Resolve failed", extra={"reason": e.reason.value})
        return ResolveResponse(success=False, error=str(e))

    metadata = resolved.metadata
    return ResolveResponse(
        success=True,
        data=ResolvedShareData(
            url=resolved.locator,
            platform=metadata.source_family.value,
            title=metadata.title,
            author=metadata.author,
            cover=metadata.cover_url,
            duration_seconds=metadata.duration_seconds,
            formats=resolved.formats,
        ),
    )
