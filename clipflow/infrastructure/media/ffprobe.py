"""FFprobe implementation of duration probing."""

import asyncio
import json
import subprocess
from pathlib import Path

from clipflow.infrastructure.media.base import DurationProberBase, MediaProbeError


class FFprobeDurationProber(DurationProberBase):
    """Reads the container duration with ffprobe.

    Requires ffprobe to be installed and available in PATH.
    """

    def __init__(self, ffprobe_path: str = "ffprobe") -> None:
        self._ffprobe = ffprobe_path

    async def probe_duration(self, path: Path) -> float:
        """Return the container duration in seconds."""
        cmd = [
            self._ffprobe,
            "-v",
            "quiet",
            "-print_format",
            "json",
            "-show_format",
            str(path),
        ]

        loop = asyncio.get_event_loop()
        try:
            result = await loop.run_in_executor(
                None,
                lambda: subprocess.run(cmd, capture_output=True, check=True),
            )
        except FileNotFoundError as e:
            raise MediaProbeError(path, f"{self._ffprobe} not found") from e
        except subprocess.CalledProcessError as e:
            raise MediaProbeError(path, f"ffprobe exited with {e.returncode}") from e

        try:
            data = json.loads(result.stdout)
            return float(data["format"]["duration"])
        except (ValueError, KeyError, TypeError) as e:
            raise MediaProbeError(path, "no duration in ffprobe output") from e
