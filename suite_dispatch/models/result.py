"""Models for attempt outcomes and final suite results."""

from dataclasses import dataclass
from datetime import datetime

from suite_dispatch.models.job import JobStatus
from suite_dispatch.models.suite import Suite


@dataclass(frozen=True, kw_only=True)
class Attempt:
    """Classified outcome of one submission of a suite.

    Produced by the lifecycle controller and handed to the retry policy; only
    the last attempt of a suite ends up in its ExecResult.
    """

    suite: Suite
    status: JobStatus
    job_id: str | None = None
    error: Exception | None = None
    start_time: datetime
    end_time: datetime


@dataclass(frozen=True, kw_only=True)
class ExecResult:
    """Final outcome of a suite after success or exhausted retries."""

    name: str
    status: JobStatus
    job_id: str | None = None
    error: Exception | None = None
    start_time: datetime
    end_time: datetime
    attempts: int

    @property
    def passed(self) -> bool:
        return self.error is None

    @property
    def duration(self) -> float:
        """Duration of the last attempt in seconds."""
        return (self.end_time - self.start_time).total_seconds()

    @classmethod
    def from_attempt(cls, attempt: Attempt) -> "ExecResult":
        return cls(
            name=attempt.suite.name,
            status=attempt.status,
            job_id=attempt.job_id,
            error=attempt.error,
            start_time=attempt.start_time,
            end_time=attempt.end_time,
            attempts=attempt.suite.attempt + 1,
        )
