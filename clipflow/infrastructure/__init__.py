"""Infrastructure layer - external service implementations."""

from clipflow.infrastructure.analysis import LLMVideoAnalyzer, VideoAnalyzerBase
from clipflow.infrastructure.factory import (
    InfrastructureFactory,
    get_factory,
    reset_factory,
)
from clipflow.infrastructure.llm import (
    LLMResponse,
    LLMServiceBase,
    LLMUsage,
    Message,
    MessageRole,
    OpenAILLMService,
)
from clipflow.infrastructure.media import (
    DurationProberBase,
    FFprobeDurationProber,
    MediaProbeError,
)
from clipflow.infrastructure.resolvers import (
    ExtractorApiResolver,
    ShareLookup,
    ShareLookupError,
    ShareResolverBase,
    YtDlpResolver,
)

__all__ = [
    # Factory
    "InfrastructureFactory",
    "get_factory",
    "reset_factory",
    # LLM
    "LLMServiceBase",
    "LLMResponse",
    "LLMUsage",
    "Message",
    "MessageRole",
    "OpenAILLMService",
    # Analysis
    "VideoAnalyzerBase",
    "LLMVideoAnalyzer",
    # Resolvers
    "ShareResolverBase",
    "ShareLookup",
    "ShareLookupError",
    "ExtractorApiResolver",
    "YtDlpResolver",
    # Media
    "DurationProberBase",
    "FFprobeDurationProber",
    "MediaProbeError",
]
