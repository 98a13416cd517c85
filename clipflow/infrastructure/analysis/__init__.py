"""Video analysis backends."""

from clipflow.infrastructure.analysis.base import VideoAnalyzerBase
from clipflow.infrastructure.analysis.llm_video_analyzer import (
    LLMVideoAnalyzer,
    strip_code_fence,
)
from clipflow.infrastructure.analysis.prompts import (
    DEFAULT_PROMPT,
    build_prompt,
    load_prompt_template,
)

__all__ = [
    "VideoAnalyzerBase",
    "LLMVideoAnalyzer",
    "strip_code_fence",
    "DEFAULT_PROMPT",
    "build_prompt",
    "load_prompt_template",
]
