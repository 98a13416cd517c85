"""Error handling middleware and exception handlers."""

from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import RequestResponseEndpoint
from starlette.responses import Response

from clipflow.commons.telemetry.logger import get_logger
from clipflow.domain.exceptions import (
    DomainException,
    ParseError,
    PipelineError,
    SubmissionNotFoundException,
)

logger = get_logger(__name__)


class APIError(Exception):
    """Base API error with code and details."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize API error.

        Args:
            code: Error code for clients.
            message: Human-readable error message.
            status_code: HTTP status code.
            details: Additional error details.
        """
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


def build_error_response(
    request: Request,
    code: str,
    message: str,
    status_code: int,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Build the standard error envelope, stamped with the request id."""
    request_id = getattr(request.state, "request_id", "unknown")

    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "details": details or {},
                "request_id": request_id,
            }
        },
    )


def handle_exception(request: Request, exc: Exception) -> JSONResponse:
    """Map an exception to an error response.

    Args:
        request: HTTP request.
        exc: Exception to handle.

    Returns:
        JSON error response.
    """
    if isinstance(exc, APIError):
        logger.warning(
            f"API error: {exc.code}",
            extra={"error_code": exc.code, "details": exc.details},
        )
        return build_error_response(
            request, exc.code, exc.message, exc.status_code, exc.details
        )

    if isinstance(exc, SubmissionNotFoundException):
        logger.warning(f"Submission not found: {exc.submission_id}")
        return build_error_response(
            request,
            "SUBMISSION_NOT_FOUND",
            str(exc),
            status.HTTP_404_NOT_FOUND,
            {"submission_id": exc.submission_id},
        )

    if isinstance(exc, ParseError):
        logger.warning(f"Parse error: {exc}")
        return build_error_response(
            request,
            "PARSE_ERROR",
            str(exc),
            status.HTTP_400_BAD_REQUEST,
            {"reason": exc.reason.value},
        )

    if isinstance(exc, PipelineError):
        logger.error(f"Pipeline error at {exc.stage}: {exc}")
        return build_error_response(
            request,
            "PIPELINE_ERROR",
            str(exc),
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            {"stage": exc.stage},
        )

    if isinstance(exc, DomainException):
        logger.warning(f"Domain error: {exc}")
        return build_error_response(
            request, "DOMAIN_ERROR", str(exc), status.HTTP_400_BAD_REQUEST
        )

    logger.exception(f"Unexpected error: {exc}")
    return build_error_response(
        request,
        "INTERNAL_ERROR",
        "An unexpected error occurred",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


async def error_handler_middleware(
    request: Request,
    call_next: RequestResponseEndpoint,
) -> Response:
    """Middleware to catch and format all exceptions."""
    try:
        return await call_next(request)
    except Exception as exc:
        return handle_exception(request, exc)
