"""API route handlers."""

from clipflow.api.openapi.routes import (
    analyze,
    download,
    health,
    resolve,
    submissions,
)

__all__ = [
    "analyze",
    "download",
    "health",
    "resolve",
    "submissions",
]
