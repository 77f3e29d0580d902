"""Job queue persisted in the document database."""

import traceback
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

from media_uplink.commons.infrastructure.documentdb.base import DocumentDBBase
from media_uplink.commons.telemetry import get_logger
from media_uplink.domain.models.job import JobOptions, JobState, QueuedJob
from media_uplink.infrastructure.queue.base import JobQueueBase

MAX_STACKTRACES = 10
STALLED_REASON = "job stalled more than allowable limit"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class DocumentJobQueue(JobQueueBase):
    """Durable queue stored as one document per job.

    Claiming is a single atomic find-and-modify, so competing workers in
    any number of processes never lease the same job at once. Every
    acknowledgement is filtered on the lease token handed out by claim().
    """

    def __init__(
        self,
        document_db: DocumentDBBase,
        collection: str = "jobs",
        queue_name: str = "media",
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the queue.

        Args:
            document_db: Document database holding the jobs collection.
            collection: Collection name for job documents.
            queue_name: Logical queue name; several queues may share a collection.
            clock: Source of the current UTC time.
        """
        self._db = document_db
        self._collection = collection
        self._name = queue_name
        self._now = clock or _utcnow
        self._logger = get_logger(__name__)

    @property
    def name(self) -> str:
        return self._name

    async def ensure_indexes(self) -> None:
        """Create the index backing claim ordering."""
        await self._db.create_index(
            self._collection,
            [
                ("queue", 1),
                ("name", 1),
                ("state", 1),
                ("priority", 1),
                ("run_at", 1),
            ],
            name="claim_order",
        )

    def _to_document(self, job: QueuedJob) -> dict[str, Any]:
        # Datetimes stay native so the store can range-compare them
        doc = job.model_dump(exclude={"opts", "state"})
        doc["opts"] = job.opts.model_dump(mode="json")
        doc["state"] = job.state.value
        return doc

    def _lease_filter(self, job: QueuedJob) -> dict[str, Any]:
        return {
            "_id": job.id,
            "state": JobState.ACTIVE.value,
            "lock_token": job.lock_token,
        }

    async def enqueue(
        self,
        job_name: str,
        payload: dict[str, Any],
        options: JobOptions | None = None,
    ) -> str:
        """Add a job to the queue."""
        opts = options or JobOptions()
        now = self._now()
        job = QueuedJob(
            queue=self._name,
            name=job_name,
            data=payload,
            opts=opts,
            priority=opts.priority,
            run_at=now + timedelta(seconds=opts.delay_seconds),
            created_at=now,
        )
        await self._db.insert(self._collection, self._to_document(job))
        self._logger.info(
            "Job enqueued",
            extra={
                "queue": self._name,
                "job_id": job.id,
                "job_name": job_name,
                "attempts": opts.attempts,
            },
        )
        return job.id

    async def claim(
        self,
        job_name: str,
        lock_duration_seconds: float,
    ) -> QueuedJob | None:
        """Lease the next pending job.

        Active jobs whose lease lapsed are first moved back to pending, or
        failed once they have stalled more than their options allow.
        """
        now = self._now()
        await self._recover_stalled(job_name, now)
        doc = await self._db.find_one_and_update(
            self._collection,
            {
                "queue": self._name,
                "name": job_name,
                "state": JobState.PENDING.value,
                "run_at": {"$lte": now},
            },
            {
                "state": JobState.ACTIVE.value,
                "lock_token": uuid4().hex,
                "locked_until": now + timedelta(seconds=lock_duration_seconds),
                "processed_at": now,
            },
            sort=[("priority", 1), ("run_at", 1)],
        )
        if doc is None:
            return None

        job = QueuedJob(**doc)
        self._logger.debug(
            "Job claimed",
            extra={"job_id": job.id, "attempts_made": job.attempts_made},
        )
        return job

    async def _recover_stalled(self, job_name: str, now: datetime) -> None:
        docs = await self._db.find(
            self._collection,
            {
                "queue": self._name,
                "name": job_name,
                "state": JobState.ACTIVE.value,
                "locked_until": {"$lt": now},
            },
        )
        for doc in docs:
            job = QueuedJob(**doc)
            stalled_count = job.stalled_count + 1
            if stalled_count <= job.opts.max_stalled:
                matched = await self._db.update_many(
                    self._collection,
                    self._lease_filter(job),
                    {
                        "state": JobState.PENDING.value,
                        "stalled_count": stalled_count,
                        "run_at": now,
                        "lock_token": None,
                        "locked_until": None,
                    },
                )
                if matched:
                    self._logger.warning(
                        "Stalled job moved back to pending",
                        extra={"job_id": job.id, "stalled_count": stalled_count},
                    )
                continue

            if job.opts.remove_on_fail:
                matched = await self._db.delete_many(
                    self._collection, self._lease_filter(job)
                )
            else:
                matched = await self._db.update_many(
                    self._collection,
                    self._lease_filter(job),
                    {
                        "state": JobState.FAILED.value,
                        "stalled_count": stalled_count,
                        "finished_at": now,
                        "failed_reason": STALLED_REASON,
                        "lock_token": None,
                        "locked_until": None,
                    },
                )
            if matched:
                self._logger.error(
                    "Stalled job failed",
                    extra={
                        "job_id": job.id,
                        "stalled_count": stalled_count,
                        "max_stalled": job.opts.max_stalled,
                    },
                )

    async def extend_lock(self, job: QueuedJob, lock_duration_seconds: float) -> bool:
        """Push the lease expiry forward."""
        locked_until = self._now() + timedelta(seconds=lock_duration_seconds)
        matched = await self._db.update_many(
            self._collection,
            self._lease_filter(job),
            {"locked_until": locked_until},
        )
        if matched:
            job.locked_until = locked_until
        return matched > 0

    async def complete(self, job: QueuedJob, result: Any = None) -> bool:
        """Acknowledge success, deleting the job if its options say so."""
        if job.opts.remove_on_complete:
            matched = await self._db.delete_many(
                self._collection, self._lease_filter(job)
            )
        else:
            matched = await self._db.update_many(
                self._collection,
                self._lease_filter(job),
                {
                    "state": JobState.COMPLETED.value,
                    "finished_at": self._now(),
                    "return_value": result,
                    "lock_token": None,
                    "locked_until": None,
                },
            )

        if not matched:
            self._logger.warning(
                "Completion ignored, job lease was lost",
                extra={"job_id": job.id},
            )
            return False

        job.state = JobState.COMPLETED
        job.return_value = result
        return True

    async def fail(self, job: QueuedJob, error: BaseException) -> JobState | None:
        """Count the attempt, then schedule a retry or retire the job."""
        now = self._now()
        attempts_made = job.attempts_made + 1
        reason = str(error) or type(error).__name__
        stacktrace = [
            *job.stacktrace,
            "".join(traceback.format_exception(error)),
        ][-MAX_STACKTRACES:]

        if attempts_made < job.opts.attempts:
            next_state = JobState.PENDING
            delay = job.opts.backoff.delay_for(attempts_made)
            matched = await self._db.update_many(
                self._collection,
                self._lease_filter(job),
                {
                    "state": JobState.PENDING.value,
                    "attempts_made": attempts_made,
                    "run_at": now + timedelta(seconds=delay),
                    "failed_reason": reason,
                    "stacktrace": stacktrace,
                    "lock_token": None,
                    "locked_until": None,
                },
            )
            log_extra: dict[str, Any] = {"retry_in_seconds": delay}
        else:
            next_state = JobState.FAILED
            if job.opts.remove_on_fail:
                matched = await self._db.delete_many(
                    self._collection, self._lease_filter(job)
                )
            else:
                matched = await self._db.update_many(
                    self._collection,
                    self._lease_filter(job),
                    {
                        "state": JobState.FAILED.value,
                        "attempts_made": attempts_made,
                        "finished_at": now,
                        "failed_reason": reason,
                        "stacktrace": stacktrace,
                        "lock_token": None,
                        "locked_until": None,
                    },
                )
            log_extra = {"retained": not job.opts.remove_on_fail}

        if not matched:
            self._logger.warning(
                "Failure ignored, job lease was lost",
                extra={"job_id": job.id},
            )
            return None

        job.attempts_made = attempts_made
        job.state = next_state
        job.failed_reason = reason
        job.stacktrace = stacktrace
        self._logger.info(
            "Job attempt failed",
            extra={
                "job_id": job.id,
                "attempts_made": attempts_made,
                "max_attempts": job.opts.attempts,
                "next_state": next_state.value,
                **log_extra,
            },
        )
        return next_state

    async def get_job(self, job_id: str) -> QueuedJob | None:
        doc = await self._db.find_by_id(self._collection, job_id)
        if doc is None or doc.get("queue") != self._name:
            return None
        return QueuedJob(**doc)

    async def list_jobs(self, state: JobState, limit: int = 100) -> list[QueuedJob]:
        docs = await self._db.find(
            self._collection,
            {"queue": self._name, "state": state.value},
            limit=limit,
            sort=[("created_at", 1)],
        )
        return [QueuedJob(**doc) for doc in docs]

    async def counts(self) -> dict[JobState, int]:
        return {
            state: await self._db.count(
                self._collection, {"queue": self._name, "state": state.value}
            )
            for state in JobState
        }

    async def retry_job(self, job_id: str) -> bool:
        """Move a failed job back to pending with its attempt count reset."""
        matched = await self._db.update_many(
            self._collection,
            {"_id": job_id, "queue": self._name, "state": JobState.FAILED.value},
            {
                "state": JobState.PENDING.value,
                "attempts_made": 0,
                "stalled_count": 0,
                "run_at": self._now(),
                "finished_at": None,
            },
        )
        if matched:
            self._logger.info("Failed job re-queued", extra={"job_id": job_id})
        return matched > 0

    async def remove_job(self, job_id: str) -> bool:
        return await self._db.delete(self._collection, job_id)
