"""Per-submission progress event channel."""

import asyncio
from collections.abc import AsyncIterator
from typing import Any

from clipflow.domain.models import PipelineStage, ProgressEvent


class ProgressChannel:
    """Ordered, single-consumer stream of progress events.

    Sequence numbers start at 1 and increase by one per event. The channel
    closes itself after the first terminal event; publishing afterwards is
    a programming error.
    """

    def __init__(self, submission_id: str) -> None:
        self.submission_id = submission_id
        self._queue: asyncio.Queue[ProgressEvent] = asyncio.Queue()
        self._sequence = 0
        self._closed = False
        self._last: ProgressEvent | None = None

    @property
    def closed(self) -> bool:
        """Whether the terminal event has been published."""
        return self._closed

    @property
    def last_event(self) -> ProgressEvent | None:
        """Most recently published event."""
        return self._last

    def publish(
        self,
        stage: PipelineStage,
        progress: int,
        stage_progress: int = 0,
        **payload: Any,
    ) -> ProgressEvent:
        """Append an event to the stream.

        Args:
            stage: Stage the pipeline is in.
            progress: Overall progress, 0-100.
            stage_progress: Progress within the stage, 0-100.
            **payload: Optional ProgressEvent fields (message, download,
                video_info, result, warning, error, parsed_locator).

        Returns:
            The published event.

        Raises:
            RuntimeError: If the channel already carried a terminal event.
        """
        if self._closed:
            raise RuntimeError(
                f"Progress channel for {self.submission_id} is closed"
            )
        self._sequence += 1
        event = ProgressEvent(
            sequence=self._sequence,
            submission_id=self.submission_id,
            stage=stage,
            progress=progress,
            stage_progress=stage_progress,
            **payload,
        )
        self._last = event
        if event.is_terminal:
            self._closed = True
        self._queue.put_nowait(event)
        return event

    async def __aiter__(self) -> AsyncIterator[ProgressEvent]:
        """Yield events in order, ending after the terminal one."""
        while True:
            event = await self._queue.get()
            yield event
            if event.is_terminal:
                return
