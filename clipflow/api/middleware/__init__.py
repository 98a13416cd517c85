"""API middleware components."""

from clipflow.api.middleware.error_handler import APIError, error_handler_middleware
from clipflow.api.middleware.logging import LoggingMiddleware

__all__ = [
    "APIError",
    "LoggingMiddleware",
    "error_handler_middleware",
]
