"""Background submission endpoints for polling clients."""

from fastapi import APIRouter, Request, status

from clipflow.api.dependencies import OrchestratorDep
from clipflow.application.dtos import AnalyzeRequest, SubmissionAccepted
from clipflow.domain.models import PipelineState

router = APIRouter()


@router.post(
    "/submissions",
    response_model=SubmissionAccepted,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Submit a share link",
    description="Start the pipeline in the background and poll its state.",
)
async def create_submission(
    body: AnalyzeRequest,
    request: Request,
    orchestrator: OrchestratorDep,
) -> SubmissionAccepted:
    """Start a submission without streaming."""
    submission_id, _ = orchestrator.start(body.input, body.context)
    status_url = str(request.url_for("get_submission", submission_id=submission_id))
    return SubmissionAccepted(submission_id=submission_id, status_url=status_url)


@router.get(
    "/submissions/{submission_id}",
    response_model=PipelineState,
    summary="Get submission state",
    description="Current stage, progress and result of a submission.",
    name="get_submission",
)
async def get_submission(
    submission_id: str,
    orchestrator: OrchestratorDep,
) -> PipelineState:
    """Return the state snapshot; unknown ids map to 404."""
    return orchestrator.get_status(submission_id)
