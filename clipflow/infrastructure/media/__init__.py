"""Local media inspection."""

from clipflow.infrastructure.media.base import DurationProberBase, MediaProbeError
from clipflow.infrastructure.media.ffprobe import FFprobeDurationProber

__all__ = [
    "DurationProberBase",
    "MediaProbeError",
    "FFprobeDurationProber",
]
