"""Abstract base class for video analysis backends."""

from abc import ABC, abstractmethod

from clipflow.domain.models import AnalysisContext, VideoAnalysis


class VideoAnalyzerBase(ABC):
    """Turns a publicly readable video into a structured analysis.

    Implementations should handle:
    - Multimodal LLMs reachable through an OpenAI-compatible API
    """

    @abstractmethod
    async def analyze(
        self,
        video_url: str,
        context: AnalysisContext,
    ) -> VideoAnalysis:
        """Analyze a stored video.

        Args:
            video_url: Public address of the stored video.
            context: Creator context with defaults already applied.

        Returns:
            Validated analysis.

        Raises:
            DurationLimitExceededError: If the video is too long to analyze.
            AnalysisError: If the backend fails or answers off-schema.
        """
