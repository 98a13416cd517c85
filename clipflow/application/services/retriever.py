"""Media download service with byte-level progress."""

import asyncio
import secrets
import time
from collections.abc import Awaitable, Callable
from pathlib import Path

import httpx

from clipflow.application.dtos.pipeline import StagedMedia
from clipflow.commons.telemetry import get_logger
from clipflow.domain.exceptions import DownloadError
from clipflow.domain.models import DownloadProgress
from clipflow.domain.value_objects import RetryPolicy

ProgressCallback = Callable[[DownloadProgress], None]


def normalize_locator(url: str) -> str:
    """Swap the watermarked play endpoint for the clean one."""
    return url.replace("playwm", "play", 1)


def staging_filename() -> str:
    """Unique staging file name: ``<epoch ms>_<random>.mp4``."""
    return f"{int(time.time() * 1000)}_{secrets.token_hex(4)}.mp4"


class MediaRetriever:
    """Streams a media locator into a local staging file.

    Progress is reported at most once per interval while bytes arrive,
    and a final 100% report always follows a successful download.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        staging_dir: Path,
        progress_interval: float = 0.1,
        chunk_size: int = 64 * 1024,
        max_size_bytes: int | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the retriever.

        Args:
            client: HTTP client carrying the download headers and timeout.
            staging_dir: Directory for staged files.
            progress_interval: Minimum seconds between progress reports.
            chunk_size: Bytes per streamed chunk.
            max_size_bytes: Reject media larger than this.
            clock: Monotonic clock for throttling.
            sleep: Coroutine used to wait between retries.
        """
        self._client = client
        self._staging_dir = staging_dir
        self._interval = progress_interval
        self._chunk_size = chunk_size
        self._max_size = max_size_bytes
        self._clock = clock
        self._sleep = sleep
        self._logger = get_logger(__name__)

    async def fetch(
        self,
        locator: str,
        on_progress: ProgressCallback | None = None,
    ) -> StagedMedia:
        """Download a locator once.

        Raises:
            DownloadError: On non-2xx responses, transport failures, short
                reads or oversized media. The partial file is removed.
        """
        url = normalize_locator(locator)
        self._staging_dir.mkdir(parents=True, exist_ok=True)
        path = self._staging_dir / staging_filename()

        try:
            size = await self._stream_to(url, path, on_progress)
        except DownloadError:
            path.unlink(missing_ok=True)
            raise
        except httpx.HTTPError as e:
            path.unlink(missing_ok=True)
            raise DownloadError(locator, f"{type(e).__name__}: {e}") from e
        except OSError as e:
            path.unlink(missing_ok=True)
            raise DownloadError(locator, f"could not write staging file: {e}") from e

        self._logger.info(
            "Media staged", extra={"path": str(path), "size_bytes": size}
        )
        return StagedMedia(path=path, size_bytes=size)

    async def _stream_to(
        self,
        url: str,
        path: Path,
        on_progress: ProgressCallback | None,
    ) -> int:
        async with self._client.stream("GET", url) as response:
            if not response.is_success:
                raise DownloadError(url, f"HTTP {response.status_code}")

            length = response.headers.get("Content-Length")
            total = int(length) if length and length.isdigit() else None
            if total is not None and self._max_size and total > self._max_size:
                raise DownloadError(url, f"media is {total} bytes, over the limit")

            last_report = self._clock()
            last_percentage = 0
            written = 0
            with path.open("wb") as f:
                async for chunk in response.aiter_bytes(self._chunk_size):
                    f.write(chunk)
                    written += len(chunk)
                    received = max(response.num_bytes_downloaded, written)
                    if self._max_size and received > self._max_size:
                        raise DownloadError(url, "media exceeds the size limit")

                    now = self._clock()
                    if on_progress and now - last_report >= self._interval:
                        last_report = now
                        if total:
                            last_percentage = max(
                                last_percentage, min(100, received * 100 // total)
                            )
                        on_progress(
                            DownloadProgress(
                                downloaded=received,
                                total=total,
                                percentage=last_percentage,
                            )
                        )

            received = max(response.num_bytes_downloaded, written)
            if total is not None and received < total:
                raise DownloadError(
                    url, f"connection closed after {received} of {total} bytes"
                )

        if on_progress:
            on_progress(
                DownloadProgress(
                    downloaded=received,
                    total=total if total is not None else received,
                    percentage=100,
                )
            )
        return written

    async def fetch_with_retry(
        self,
        locator: str,
        policy: RetryPolicy,
        on_progress: ProgressCallback | None = None,
    ) -> StagedMedia:
        """Download a locator, retrying failures per the policy.

        Raises:
            DownloadError: The last failure, once attempts are exhausted.
        """
        attempt = 0
        while True:
            try:
                return await self.fetch(locator, on_progress)
            except DownloadError as e:
                self._logger.warning(
                    "Download attempt failed",
                    extra={
                        "attempt": attempt + 1,
                        "max_attempts": policy.max_attempts,
                        "reason": e.reason,
                    },
                )
                if not policy.should_retry(attempt):
                    raise DownloadError(
                        locator, e.reason, attempts=attempt + 1
                    ) from e
            await self._sleep(policy.delay_for(attempt))
            attempt += 1

    def discard(self, staged: StagedMedia) -> None:
        """Remove a staged file."""
        staged.path.unlink(missing_ok=True)

    def cleanup_stale(self, max_age_hours: float) -> int:
        """Delete staged files older than the cutoff.

        Returns:
            Number of files removed.
        """
        if not self._staging_dir.is_dir():
            return 0
        cutoff = time.time() - max_age_hours * 3600
        removed = 0
        for entry in self._staging_dir.iterdir():
            if entry.is_file() and entry.stat().st_mtime < cutoff:
                entry.unlink(missing_ok=True)
                removed += 1
        if removed:
            self._logger.info(
                "Removed stale staging files", extra={"removed": removed}
            )
        return removed
