"""Durable queue job models."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field


class JobState(str, Enum):
    """Lifecycle state of a queued job.

    Delayed retries are PENDING jobs whose run_at lies in the future.
    """

    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"


class BackoffType(str, Enum):
    """Retry delay growth strategy."""

    EXPONENTIAL = "exponential"
    FIXED = "fixed"


class BackoffPolicy(BaseModel):
    """Delay applied before a failed job is retried."""

    type: BackoffType = BackoffType.EXPONENTIAL
    delay_seconds: float = Field(default=30.0, ge=0)
    max_delay_seconds: float | None = Field(default=None, ge=0)

    def delay_for(self, attempts_made: int) -> float:
        """Seconds to wait after the given number of failed attempts.

        Exponential backoff doubles per attempt: with a 30s unit the
        retries run 30s, 60s, 120s, 240s after each failure.
        """
        if self.type == BackoffType.FIXED:
            delay = self.delay_seconds
        else:
            delay = self.delay_seconds * 2 ** max(attempts_made - 1, 0)
        if self.max_delay_seconds is not None:
            delay = min(delay, self.max_delay_seconds)
        return delay


class JobOptions(BaseModel):
    """Per-job delivery policy."""

    attempts: int = Field(default=1, ge=1, description="Total executions allowed")
    backoff: BackoffPolicy = Field(default_factory=BackoffPolicy)
    remove_on_complete: bool = True
    remove_on_fail: bool = False
    priority: int = Field(default=0, ge=0, description="Lower runs first")
    delay_seconds: float = Field(default=0.0, ge=0)
    max_stalled: int = Field(
        default=1, ge=0, description="Lease expiries tolerated before the job fails"
    )


class QueuedJob(BaseModel):
    """A job as stored in the durable queue."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    queue: str
    name: str
    data: dict[str, Any] = Field(default_factory=dict)
    opts: JobOptions = Field(default_factory=JobOptions)
    state: JobState = JobState.PENDING
    priority: int = 0
    attempts_made: int = Field(default=0, ge=0)
    stalled_count: int = Field(default=0, ge=0)
    run_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    processed_at: datetime | None = None
    finished_at: datetime | None = None
    failed_reason: str | None = None
    stacktrace: list[str] = Field(default_factory=list)
    lock_token: str | None = None
    locked_until: datetime | None = None
    return_value: Any = None

    @property
    def is_final_attempt(self) -> bool:
        """Whether a failure of the current run exhausts the job's attempts."""
        return self.attempts_made + 1 >= self.opts.attempts
