"""Abstract base class for media probing."""

from abc import ABC, abstractmethod
from pathlib import Path


class MediaProbeError(Exception):
    """Raised when a media file cannot be probed."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Could not probe {path}: {reason}")


class DurationProberBase(ABC):
    """Measures the playing time of a local media file."""

    @abstractmethod
    async def probe_duration(self, path: Path) -> float:
        """Return the duration in seconds.

        Raises:
            MediaProbeError: If the file cannot be read.
        """
