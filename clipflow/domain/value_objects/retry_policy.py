"""Retry policy value object."""

from typing import Self

from pydantic import BaseModel, ConfigDict, Field


class RetryPolicy(BaseModel):
    """How many times to try an operation and how long to wait in between.

    The wait after the attempt with zero-based index ``i`` fails is
    ``base_delay_seconds * backoff_multiplier ** i``. No wait follows the
    final attempt.
    """

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=3, ge=1, description="Total attempts")
    base_delay_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Delay after the first failed attempt",
    )
    backoff_multiplier: float = Field(
        default=2.0,
        ge=1,
        description="Growth factor applied per further attempt",
    )

    @classmethod
    def fixed(cls, max_attempts: int, delay_seconds: float) -> Self:
        """Create a policy that waits the same delay between every attempt."""
        return cls(
            max_attempts=max_attempts,
            base_delay_seconds=delay_seconds,
            backoff_multiplier=1.0,
        )

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after the given zero-based attempt failed."""
        return self.base_delay_seconds * self.backoff_multiplier**attempt

    def should_retry(self, attempt: int) -> bool:
        """Whether another attempt follows the given zero-based attempt."""
        return attempt + 1 < self.max_attempts
