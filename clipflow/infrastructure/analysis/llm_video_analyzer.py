"""Multimodal LLM implementation of video analysis."""

import json
import logging
import re

from pydantic import ValidationError

from clipflow.domain.exceptions import AnalysisError, DurationLimitExceededError
from clipflow.domain.models import AnalysisContext, VideoAnalysis
from clipflow.domain.policies import exceeds_limit
from clipflow.infrastructure.analysis.base import VideoAnalyzerBase
from clipflow.infrastructure.analysis.prompts import build_prompt
from clipflow.infrastructure.llm import LLMServiceBase, Message, MessageRole

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)

SYSTEM_PROMPT = (
    "You analyze short-form videos for creators. Answer with one JSON object "
    "and nothing else."
)


def strip_code_fence(text: str) -> str:
    """Remove a surrounding markdown code fence, if present."""
    stripped = text.strip()
    match = _CODE_FENCE.match(stripped)
    return match.group(1) if match else stripped


class LLMVideoAnalyzer(VideoAnalyzerBase):
    """Analyze videos by handing their public URL to a multimodal LLM."""

    def __init__(
        self,
        llm: LLMServiceBase,
        prompt_template: str,
        max_duration_minutes: float = 5,
        temperature: float = 0.4,
        max_tokens: int = 8192,
    ) -> None:
        self._llm = llm
        self._template = prompt_template
        self._max_duration_minutes = max_duration_minutes
        self._temperature = temperature
        self._max_tokens = max_tokens

    async def analyze(
        self,
        video_url: str,
        context: AnalysisContext,
    ) -> VideoAnalysis:
        """Analyze a stored video."""
        if exceeds_limit(context.duration_seconds, self._max_duration_minutes):
            raise DurationLimitExceededError(
                context.duration_seconds or 0.0, self._max_duration_minutes
            )

        prompt = build_prompt(self._template, video_url, context)
        messages = [
            Message(role=MessageRole.SYSTEM, content=SYSTEM_PROMPT),
            Message(role=MessageRole.USER, content=prompt, videos=[video_url]),
        ]

        try:
            response = await self._llm.generate(
                messages,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
                json_mode=self._llm.supports_json_mode,
                trace_name="video_analysis",
                trace_metadata={"video_url": video_url},
            )
        except Exception as e:
            raise AnalysisError(f"analysis backend call failed: {e}") from e

        if not response.content.strip():
            raise AnalysisError("analysis backend returned an empty response")

        try:
            payload = json.loads(strip_code_fence(response.content))
        except json.JSONDecodeError as e:
            raise AnalysisError(f"analysis is not valid JSON: {e.msg}") from e

        try:
            analysis = VideoAnalysis.model_validate(payload)
        except ValidationError as e:
            raise AnalysisError(
                f"analysis does not match the schema ({e.error_count()} errors)"
            ) from e

        logger.info(
            "Video analysis parsed",
            extra={
                "weighted_total": analysis.scorecard.weighted_total,
                "timeline_segments": len(analysis.timeline),
                "priority_fixes": len(analysis.scorecard.priority_fixes),
                "total_tokens": response.usage.total_tokens,
            },
        )
        return analysis
