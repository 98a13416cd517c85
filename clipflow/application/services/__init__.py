"""Application services - the submission pipeline and its stages."""

from clipflow.application.services.analyzer import AnalyzerDispatcher
from clipflow.application.services.content_store import ContentAddressedStore
from clipflow.application.services.orchestrator import PipelineOrchestrator
from clipflow.application.services.progress import ProgressChannel
from clipflow.application.services.resolver import ShareInputResolver
from clipflow.application.services.retriever import MediaRetriever, normalize_locator
from clipflow.application.services.sessions import SessionStore

__all__ = [
    "ShareInputResolver",
    "MediaRetriever",
    "normalize_locator",
    "ContentAddressedStore",
    "AnalyzerDispatcher",
    "ProgressChannel",
    "SessionStore",
    "PipelineOrchestrator",
]
