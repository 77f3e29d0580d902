"""Abstract base class for the durable job queue."""

from abc import ABC, abstractmethod
from typing import Any

from media_uplink.domain.models.job import JobOptions, JobState, QueuedJob


class JobQueueBase(ABC):
    """At-least-once job queue shared by competing worker processes.

    A claimed job is leased to one worker until its lock expires. Workers
    renew the lease while they run; a job whose lease lapses (worker crash)
    becomes claimable again, so handlers must tolerate re-execution. A job
    that stalls more often than its options allow is failed instead.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Queue name."""

    @abstractmethod
    async def enqueue(
        self,
        job_name: str,
        payload: dict[str, Any],
        options: JobOptions | None = None,
    ) -> str:
        """Add a job to the queue.

        Args:
            job_name: Handler routing name (e.g. "push-to-s3").
            payload: JSON-serialisable job data.
            options: Delivery policy. Defaults to a single attempt.

        Returns:
            The new job id.
        """

    @abstractmethod
    async def claim(
        self,
        job_name: str,
        lock_duration_seconds: float,
    ) -> QueuedJob | None:
        """Lease the next runnable job with the given name.

        Returns:
            The active job, or None when nothing is runnable.
        """

    @abstractmethod
    async def extend_lock(self, job: QueuedJob, lock_duration_seconds: float) -> bool:
        """Renew the lease on an active job.

        Returns:
            False if the lease was lost to another worker.
        """

    @abstractmethod
    async def complete(self, job: QueuedJob, result: Any = None) -> bool:
        """Acknowledge successful processing.

        Returns:
            False if the lease was lost and the acknowledgement ignored.
        """

    @abstractmethod
    async def fail(self, job: QueuedJob, error: BaseException) -> JobState | None:
        """Record a failed attempt and reschedule or retire the job.

        Returns:
            PENDING when a retry was scheduled, FAILED when attempts are
            exhausted, or None if the lease was lost.
        """

    @abstractmethod
    async def get_job(self, job_id: str) -> QueuedJob | None:
        """Fetch a job by id."""

    @abstractmethod
    async def list_jobs(self, state: JobState, limit: int = 100) -> list[QueuedJob]:
        """List jobs in a state, oldest first."""

    @abstractmethod
    async def counts(self) -> dict[JobState, int]:
        """Count jobs per state."""

    @abstractmethod
    async def retry_job(self, job_id: str) -> bool:
        """Re-queue a failed job with a fresh attempt budget.

        Returns:
            False if the job is missing or not in the failed state.
        """

    @abstractmethod
    async def remove_job(self, job_id: str) -> bool:
        """Delete a job regardless of state."""
