"""Pure policies shared across pipeline stages."""

import re

DEFAULT_DURATION_LIMIT_MINUTES = 5


def exceeds_limit(
    duration_seconds: float | None,
    limit_minutes: float = DEFAULT_DURATION_LIMIT_MINUTES,
) -> bool:
    """Check whether a video is too long for AI analysis.

    Unknown, zero and negative durations never exceed the limit, so a
    missing probe result lets the run proceed to analysis.

    Args:
        duration_seconds: Video duration, if known.
        limit_minutes: Limit in minutes.

    Returns:
        True only when the duration is strictly greater than the limit.
    """
    if duration_seconds is None or duration_seconds <= 0:
        return False
    return duration_seconds > limit_minutes * 60


def format_duration(seconds: float | None) -> str:
    """Render a duration as m:ss, or h:mm:ss from one hour up."""
    if not seconds or seconds <= 0:
        return "0:00"
    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours:d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:d}:{secs:02d}"


def format_file_size(size_bytes: int | None) -> str:
    """Render a byte count with a binary unit, e.g. '1.50 MB'."""
    if not size_bytes or size_bytes <= 0:
        return "0 B"
    size = float(size_bytes)
    for unit in ("B", "KB", "MB"):
        if size < 1024:
            return f"{size:.2f} {unit}"
        size /= 1024
    return f"{size:.2f} GB"


DEFAULT_DOWNLOAD_FILENAME = "video.mp4"
_UNSAFE_FILENAME_CHARS = re.compile(r"[^\w\s-]")


def download_filename(title: str | None, max_length: int = 100) -> str:
    """Attachment name for a downloaded video, derived from its title.

    Anything other than word characters, whitespace and dashes becomes an
    underscore, and the stem is capped at ``max_length`` characters.
    """
    if not title or not title.strip():
        return DEFAULT_DOWNLOAD_FILENAME
    stem = _UNSAFE_FILENAME_CHARS.sub("_", title.strip())[:max_length]
    return f"{stem}.mp4"
