"""In-memory table of submissions, their state and progress channels."""

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass

from clipflow.application.services.progress import ProgressChannel
from clipflow.commons.telemetry import get_logger
from clipflow.domain.exceptions import SubmissionNotFoundException
from clipflow.domain.models import PipelineState, Submission


@dataclass
class _Session:
    submission: Submission
    state: PipelineState
    channel: ProgressChannel
    updated_at: float


class SessionStore:
    """Holds pipeline state per submission until it goes idle.

    Sessions not updated for longer than the TTL are dropped by ``sweep``.
    Reads do not extend their life. A session whose run is still in flight
    is never dropped.
    """

    def __init__(
        self,
        ttl_seconds: float = 1800,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._sessions: dict[str, _Session] = {}
        self._logger = get_logger(__name__)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, submission_id: object) -> bool:
        return submission_id in self._sessions

    def create(self, raw_input: str) -> tuple[Submission, ProgressChannel]:
        """Register a new submission in the idle stage."""
        submission = Submission(raw_input=raw_input)
        channel = ProgressChannel(submission.id)
        self._sessions[submission.id] = _Session(
            submission=submission,
            state=PipelineState(submission_id=submission.id),
            channel=channel,
            updated_at=self._clock(),
        )
        return submission, channel

    def _lookup(self, submission_id: str) -> _Session:
        session = self._sessions.get(submission_id)
        if session is None:
            raise SubmissionNotFoundException(submission_id)
        return session

    def get(self, submission_id: str) -> PipelineState:
        """Current state of a submission.

        Raises:
            SubmissionNotFoundException: If unknown or expired.
        """
        return self._lookup(submission_id).state

    def get_submission(self, submission_id: str) -> Submission:
        """The submission record itself."""
        return self._lookup(submission_id).submission

    def update(self, state: PipelineState) -> None:
        """Replace a submission's state.

        Raises:
            SubmissionNotFoundException: If the session is gone.
        """
        session = self._lookup(state.submission_id)
        session.state = state
        session.submission = session.submission.touch()
        session.updated_at = self._clock()

    def remove(self, submission_id: str) -> bool:
        """Drop a session. Returns False if it did not exist."""
        return self._sessions.pop(submission_id, None) is not None

    def sweep(self) -> int:
        """Drop finished sessions idle for longer than the TTL.

        Returns:
            Number of sessions removed.
        """
        cutoff = self._clock() - self._ttl
        expired = [
            sid
            for sid, session in self._sessions.items()
            if session.updated_at < cutoff and session.state.is_terminal
        ]
        for sid in expired:
            self.remove(sid)
        if expired:
            self._logger.info(
                "Swept idle sessions",
                extra={"removed": len(expired), "remaining": len(self._sessions)},
            )
        return len(expired)

    async def run_sweeper(self, interval_seconds: float) -> None:
        """Sweep forever at a fixed interval. Cancel the task to stop."""
        while True:
            await asyncio.sleep(interval_seconds)
            self.sweep()
