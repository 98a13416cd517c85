"""Prompt template loading and placeholder substitution."""

import logging
from pathlib import Path

from clipflow.domain.models import AnalysisContext

logger = logging.getLogger(__name__)

DEFAULT_PROMPT = """\
You are a short-form video strategist. Analyze the video at <VIDEO_URI> for an
account in the <ACCOUNT_NICHE> niche whose goal is <GOAL>.

Target persona: <TARGET_PERSONA>
Product: <PRODUCT_INFO>
Brand tone: <BRAND_TONE>
Compliance notes: <COMPLIANCE_NOTES>
Transcript: <TRANSCRIPT_TEXT>
Comment sample: <COMMENTS_SAMPLE>
Post metadata: <POST_META>

Cover these dimensions:

1. Basic information and estimated key metrics
2. Timeline breakdown (shots, editing, rhythm)
3. Copywriting and information density
4. Visual design and composition
5. Emotion curve and value delivered
6. Commerce and selling ability (where relevant)
7. Risk and compliance check
8. Replicable formula
9. Remake plan and optimization ideas
10. Scorecard and improvement priorities

Return a single JSON object with the keys video_uri, language_detected,
metrics_estimated, timeline, copywriting, visual, emotion_value, commerce,
risk_compliance, replicable_formula, remake, ab_tests, distribution,
series_plan, scorecard and next_actions.
"""

JSON_INSTRUCTION = (
    "\n\nImportant: output strictly per the JSON schema above and give every "
    "field a value."
)

# Placeholders with no AnalysisContext counterpart
_TRANSCRIPT_DEFAULT = "transcribe the audio yourself with high accuracy"
_COMMENTS_DEFAULT = "no comment data available"
_POST_META_DEFAULT = "no post metadata available"


def load_prompt_template(path: str | Path | None) -> str:
    """Read a prompt template file, falling back to the built-in prompt."""
    if path is None:
        return DEFAULT_PROMPT
    template_path = Path(path)
    if not template_path.is_file():
        logger.warning(
            "Prompt template not found, using built-in prompt",
            extra={"prompt_path": str(template_path)},
        )
        return DEFAULT_PROMPT
    return template_path.read_text(encoding="utf-8")


def build_prompt(template: str, video_url: str, context: AnalysisContext) -> str:
    """Substitute placeholders and append the JSON output instruction."""
    replacements = {
        "<VIDEO_URI>": video_url,
        "<ACCOUNT_NICHE>": context.niche or "",
        "<GOAL>": context.goal or "",
        "<TARGET_PERSONA>": context.persona or "",
        "<PRODUCT_INFO>": context.product_info or "",
        "<BRAND_TONE>": context.tone or "",
        "<COMPLIANCE_NOTES>": context.compliance_notes or "",
        "<TRANSCRIPT_TEXT>": _TRANSCRIPT_DEFAULT,
        "<COMMENTS_SAMPLE>": _COMMENTS_DEFAULT,
        "<POST_META>": _POST_META_DEFAULT,
    }
    prompt = template
    for placeholder, value in replacements.items():
        prompt = prompt.replace(placeholder, value)
    return prompt + JSON_INSTRUCTION
