"""
Value objects for deadline-bounded polling.

``PollSchedule`` carries the three independent durations of a readiness
wait (overall timeout, poll cadence and the one-time settle delay);
``Deadline`` is the wall-clock budget derived from it.
"""

import time
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ReadinessCause(StrEnum):
    """Why the last readiness attempt did not succeed."""

    NOT_AVAILABLE = "not_available"
    MARKER_MISSING = "marker_missing"
    FETCH_ERROR = "fetch_error"


class Deadline:
    """Absolute expiry on the monotonic clock."""

    def __init__(self, timeout: float, clock=time.monotonic):
        self._clock = clock
        self.timeout = timeout
        self.started_at = clock()
        self.expires_at = self.started_at + timeout

    @property
    def remaining(self) -> float:
        return max(0.0, self.expires_at - self._clock())

    @property
    def elapsed(self) -> float:
        return self._clock() - self.started_at

    @property
    def expired(self) -> bool:
        return self._clock() >= self.expires_at


class PollSchedule(BaseModel):
    """Timeout, poll interval and settle delay for a readiness wait."""

    model_config = {"frozen": True}

    timeout: float = Field(..., gt=0, description="Overall wall-clock budget in seconds")
    interval: float = Field(..., gt=0, description="Delay between attempts in seconds")
    settle_delay: float = Field(
        0.0, ge=0, description="One-time pause before the final check of a pass"
    )

    @classmethod
    def from_settings(cls, settings) -> "PollSchedule":
        return cls(
            timeout=settings.readiness_timeout_seconds,
            interval=settings.readiness_poll_interval_seconds,
            settle_delay=settings.readiness_settle_delay_seconds,
        )

    def deadline(self) -> Deadline:
        return Deadline(self.timeout)


class PollResult(BaseModel):
    """Outcome of one attempt inside ``poll_until``."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    done: bool
    value: Any = None
    cause: ReadinessCause | None = None
    detail: str | None = None
    error: Exception | None = None

    @classmethod
    def ready(cls, value: Any = None) -> "PollResult":
        return cls(done=True, value=value)

    @classmethod
    def pending(
        cls,
        cause: ReadinessCause,
        detail: str | None = None,
        error: Exception | None = None,
    ) -> "PollResult":
        return cls(done=False, cause=cause, detail=detail, error=error)
