"""AI analysis domain models."""

from enum import Enum
from typing import Self

from pydantic import BaseModel, ConfigDict, Field

from clipflow.domain.models.submission import VideoInfo


class _Section(BaseModel):
    """Lenient base for analysis sections returned by a model."""

    model_config = ConfigDict(extra="ignore")


class MetricsEstimate(_Section):
    """Estimated audience and editing metrics."""

    retention_3s: float = Field(default=0.0, ge=0, le=1)
    retention_8s: float = Field(default=0.0, ge=0, le=1)
    retention_15s: float = Field(default=0.0, ge=0, le=1)
    retention_30s: float = Field(default=0.0, ge=0, le=1)
    rewatch_rate: float = Field(default=0.0, ge=0)
    like_rate: float = Field(default=0.0, ge=0)
    comment_rate: float = Field(default=0.0, ge=0)
    share_rate: float = Field(default=0.0, ge=0)
    save_rate: float = Field(default=0.0, ge=0)
    follow_conv: float = Field(default=0.0, ge=0)
    ctr: float = Field(default=0.0, ge=0)
    avg_shot_len_sec: float | None = Field(default=None, ge=0)
    cuts_per_min: float | None = Field(default=None, ge=0)
    bpm_estimate: float | None = Field(default=None, ge=0)


class TimelineShot(_Section):
    """One shot in the timeline breakdown."""

    start: str = ""
    end: str = ""
    shot_type: str = ""
    function: str = ""
    editing: list[str] = Field(default_factory=list)
    onscreen_text: str = ""
    objects: list[str] = Field(default_factory=list)
    issues: list[str] = Field(default_factory=list)


class SubtitleReadability(_Section):
    """Subtitle legibility assessment."""

    chars_per_sec: float = 0.0
    lines: int = 0
    contrast_ok: bool = True
    typo_or_filler: list[str] = Field(default_factory=list)


class Copywriting(_Section):
    """Hook and copy analysis."""

    hook_type: list[str] = Field(default_factory=list)
    subtitle_readability: SubtitleReadability = Field(
        default_factory=SubtitleReadability
    )
    title_candidates: list[str] = Field(default_factory=list)


class CoverEvaluation(_Section):
    """Cover image assessment."""

    strengths: list[str] = Field(default_factory=list)
    risks: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)


class VisualAnalysis(_Section):
    """Visual design analysis."""

    cover_eval: CoverEvaluation = Field(default_factory=CoverEvaluation)
    color_tendency: str = ""
    focus_points: list[str] = Field(default_factory=list)


class EmotionPoint(_Section):
    """Emotion at a point in time."""

    t: str = ""
    emo: str = ""


class EmotionValue(_Section):
    """Emotion curve and triggers."""

    curve: list[EmotionPoint] = Field(default_factory=list)
    triggers: list[str] = Field(default_factory=list)


class Commerce(_Section):
    """Selling and conversion analysis."""

    is_commerce: bool = False
    loop_completeness: float = 0.0
    proof_types: list[str] = Field(default_factory=list)
    cta_moments: list[str] = Field(default_factory=list)


class RiskCompliance(_Section):
    """Platform compliance flags."""

    flags: list[str] = Field(default_factory=list)
    alternatives: list[str] = Field(default_factory=list)


class ReplicableFormula(_Section):
    """Reusable content formula."""

    template: str = ""
    parameters: list[str] = Field(default_factory=list)


class RemakeShot(_Section):
    """One shot of a remake script."""

    id: int = 0
    duration_sec: float = 0.0
    visual_direction: str = ""
    voiceover: str = ""
    onscreen_text: str = ""
    assets: list[str] = Field(default_factory=list)
    sfx_bgm: str = ""


class RemakeScript(_Section):
    """Full shot list for a remake."""

    shots: list[RemakeShot] = Field(default_factory=list)
    materials_checklist: list[str] = Field(default_factory=list)


class RemakeVariant(_Section):
    """Alternative hook for a remake."""

    hook: str = ""
    script_brief: str = ""
    why_it_may_work: str = ""


class Remake(_Section):
    """Remake plan."""

    full_script: RemakeScript = Field(default_factory=RemakeScript)
    variants: list[RemakeVariant] = Field(default_factory=list)


class ABTest(_Section):
    """Suggested A/B experiment."""

    hypothesis: str = ""
    test_elements: list[str] = Field(default_factory=list)
    success_metric: str = ""
    expected_lift: str | None = None


class Distribution(_Section):
    """Posting and distribution advice."""

    post_time_suggestion: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    pinned_comment: str = ""


class Scorecard(_Section):
    """Weighted quality scores and priority fixes."""

    hook: float = 0.0
    pacing_editing: float = 0.0
    info_density: float = 0.0
    visual_readability: float = 0.0
    emotion_peak: float = 0.0
    proof_trust: float = 0.0
    share_comment_remix: float = 0.0
    niche_fit_search: float = 0.0
    compliance_safety: float = 0.0
    replicability: float = 0.0
    weighted_total: float = 0.0
    priority_fixes: list[str] = Field(default_factory=list)


class VideoAnalysis(_Section):
    """Structured analysis a backend must return for a video.

    The scorecard, metric estimates, copywriting, visual and emotion
    sections are required; a response missing any of them is rejected.
    """

    video_uri: str = ""
    language_detected: str = ""
    metrics_estimated: MetricsEstimate
    timeline: list[TimelineShot] = Field(default_factory=list)
    copywriting: Copywriting
    visual: VisualAnalysis
    emotion_value: EmotionValue
    commerce: Commerce = Field(default_factory=Commerce)
    risk_compliance: RiskCompliance = Field(default_factory=RiskCompliance)
    replicable_formula: ReplicableFormula = Field(default_factory=ReplicableFormula)
    remake: Remake = Field(default_factory=Remake)
    ab_tests: list[ABTest] = Field(default_factory=list)
    distribution: Distribution = Field(default_factory=Distribution)
    series_plan: list[str] = Field(default_factory=list)
    scorecard: Scorecard
    next_actions: list[str] = Field(default_factory=list)


class AnalysisKind(str, Enum):
    """Where an analysis result came from."""

    GENUINE = "genuine"  # Backend answered with a valid analysis
    DEGRADED = "degraded"  # Backend failed; basic info only
    GATED = "gated"  # Video too long; analysis skipped


class Insights(BaseModel):
    """Condensed highlights derived from a full analysis."""

    hooks: list[str] = Field(default_factory=list)
    visual_elements: list[str] = Field(default_factory=list)
    audio_analysis: str = ""
    pacing: str = ""
    engagement_tactics: list[str] = Field(default_factory=list)
    viral_factors: list[str] = Field(default_factory=list)

    @classmethod
    def from_analysis(cls, analysis: VideoAnalysis) -> Self:
        """Extract insights from a genuine analysis."""
        metrics = analysis.metrics_estimated
        bpm = _or_na(metrics.bpm_estimate)
        cuts = _or_na(metrics.cuts_per_min)
        shot_len = _or_na(metrics.avg_shot_len_sec)
        return cls(
            hooks=list(analysis.copywriting.hook_type),
            visual_elements=list(analysis.visual.focus_points),
            audio_analysis=f"BPM: {bpm}, cuts: {cuts}/min",
            pacing=f"Average shot length: {shot_len}s",
            engagement_tactics=list(analysis.emotion_value.triggers),
            viral_factors=[t.hypothesis for t in analysis.ab_tests if t.hypothesis],
        )


def _or_na(value: float | None) -> str:
    if not value:
        return "N/A"
    return f"{value:g}"


class AnalysisContext(BaseModel):
    """Creator context that steers the analysis prompt."""

    niche: str | None = Field(default=None, description="Account niche")
    goal: str | None = Field(default=None, description="What the post should achieve")
    persona: str | None = Field(default=None, description="Target audience")
    tone: str | None = Field(default=None, description="Brand tone")
    product_info: str | None = Field(default=None, description="Product being sold")
    compliance_notes: str | None = Field(
        default=None,
        description="Compliance constraints to respect",
    )
    duration_seconds: float | None = Field(
        default=None,
        description="Video duration, used to enforce the analysis limit",
    )

    def merged_with(self, defaults: "AnalysisContext") -> Self:
        """Fill unset fields from defaults."""
        filled = {
            name: getattr(self, name)
            if getattr(self, name) is not None
            else getattr(defaults, name)
            for name in type(self).model_fields
        }
        return self.model_copy(update=filled)


class AnalysisResult(BaseModel):
    """Final result of a completed pipeline run."""

    kind: AnalysisKind = Field(description="Genuine, degraded or gated")
    video_info: VideoInfo = Field(description="The stored video")
    analysis: VideoAnalysis | None = Field(
        default=None,
        description="Full analysis, only for genuine results",
    )
    insights: Insights = Field(default_factory=Insights)
    recommendations: list[str] = Field(default_factory=list)
    note: str | None = Field(
        default=None,
        description="Why the result is degraded or gated",
    )

    @classmethod
    def genuine(cls, video_info: VideoInfo, analysis: VideoAnalysis) -> Self:
        """Build a result from a successful analysis."""
        return cls(
            kind=AnalysisKind.GENUINE,
            video_info=video_info,
            analysis=analysis,
            insights=Insights.from_analysis(analysis),
            recommendations=[
                *analysis.scorecard.priority_fixes,
                *analysis.next_actions,
            ],
        )

    @classmethod
    def degraded(cls, video_info: VideoInfo, note: str) -> Self:
        """Build a basic-info result used when analysis is unavailable."""
        return cls(kind=AnalysisKind.DEGRADED, video_info=video_info, note=note)

    @classmethod
    def gated(
        cls,
        video_info: VideoInfo,
        note: str,
        recommendations: list[str] | None = None,
    ) -> Self:
        """Build a result for a video too long to analyze."""
        return cls(
            kind=AnalysisKind.GATED,
            video_info=video_info,
            note=note,
            recommendations=recommendations or [],
        )

    @property
    def is_genuine(self) -> bool:
        """Check if this result carries a real analysis."""
        return self.kind == AnalysisKind.GENUINE
