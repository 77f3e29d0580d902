"""Worker pool pulling jobs from a durable queue."""

import asyncio
import contextlib
import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from media_uplink.commons.telemetry import LogContext, get_logger
from media_uplink.commons.telemetry.logger import correlation_id_var
from media_uplink.domain.models.job import JobState, QueuedJob
from media_uplink.infrastructure.queue.base import JobQueueBase

JobHandler = Callable[[QueuedJob], Awaitable[Any]]
CompletedListener = Callable[[QueuedJob, Any], Awaitable[None] | None]
FailedListener = Callable[[QueuedJob, BaseException], Awaitable[None] | None]


@dataclass
class JobOutcome:
    """Result of one claim/handle/acknowledge cycle."""

    job: QueuedJob
    succeeded: bool
    result: Any = None
    error: BaseException | None = None
    next_state: JobState | None = None


class QueueWorker:
    """Runs a fixed number of slots, each processing one job at a time.

    Each slot claims a job, runs the handler while a heartbeat keeps the
    lease alive, then acknowledges success or failure to the queue. Any
    exception raised by the handler counts as a failed attempt; retry
    scheduling is the queue's concern.
    """

    def __init__(
        self,
        queue: JobQueueBase,
        job_name: str,
        handler: JobHandler,
        concurrency: int = 2,
        poll_interval_seconds: float = 1.0,
        lock_duration_seconds: float = 30.0,
        lock_renew_seconds: float = 15.0,
    ) -> None:
        """Initialize the worker.

        Args:
            queue: Queue to pull from.
            job_name: Only jobs with this name are claimed.
            handler: Coroutine invoked per job.
            concurrency: Number of jobs processed in parallel.
            poll_interval_seconds: Idle wait when the queue is empty.
            lock_duration_seconds: Lease length granted on claim and renewal.
            lock_renew_seconds: Heartbeat interval while a job runs.
        """
        self._queue = queue
        self._job_name = job_name
        self._handler = handler
        self._concurrency = concurrency
        self._poll_interval = poll_interval_seconds
        self._lock_duration = lock_duration_seconds
        self._lock_renew = lock_renew_seconds
        self._completed_listeners: list[CompletedListener] = []
        self._failed_listeners: list[FailedListener] = []
        self._stopping = asyncio.Event()
        self._logger = get_logger(__name__)

    def on_completed(self, listener: CompletedListener) -> None:
        """Register a listener for the `completed` event."""
        self._completed_listeners.append(listener)

    def on_failed(self, listener: FailedListener) -> None:
        """Register a listener for the `failed` event (fired per attempt)."""
        self._failed_listeners.append(listener)

    def stop(self) -> None:
        """Ask all slots to exit after their current job."""
        self._stopping.set()

    @property
    def is_stopping(self) -> bool:
        return self._stopping.is_set()

    async def run(self) -> None:
        """Process jobs until stop() is called."""
        self._logger.info(
            "Worker started",
            extra={
                "queue": self._queue.name,
                "job_name": self._job_name,
                "concurrency": self._concurrency,
            },
        )
        await asyncio.gather(*(self._slot(i) for i in range(self._concurrency)))
        self._logger.info("Worker stopped", extra={"queue": self._queue.name})

    async def _slot(self, slot: int) -> None:
        while not self._stopping.is_set():
            try:
                outcome = await self.process_next()
            except Exception:
                self._logger.exception(
                    "Queue interaction failed", extra={"slot": slot}
                )
                outcome = None
            if outcome is None:
                with contextlib.suppress(TimeoutError):
                    await asyncio.wait_for(
                        self._stopping.wait(), timeout=self._poll_interval
                    )

    async def process_next(self) -> JobOutcome | None:
        """Claim and process a single job.

        Returns:
            The outcome, or None if no job was runnable.
        """
        job = await self._queue.claim(self._job_name, self._lock_duration)
        if job is None:
            return None

        token = correlation_id_var.set(job.id)
        try:
            with LogContext(job_name=job.name, attempt=job.attempts_made + 1):
                self._logger.info(
                    "Job started",
                    extra={"job_id": job.id, "max_attempts": job.opts.attempts},
                )
                try:
                    result = await self._run_with_heartbeat(job)
                except Exception as exc:
                    return await self._handle_failure(job, exc)
                return await self._handle_success(job, result)
        finally:
            correlation_id_var.reset(token)

    async def _run_with_heartbeat(self, job: QueuedJob) -> Any:
        heartbeat = asyncio.ensure_future(self._renew_lock(job))
        try:
            return await self._handler(job)
        finally:
            heartbeat.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await heartbeat

    async def _renew_lock(self, job: QueuedJob) -> None:
        while True:
            await asyncio.sleep(self._lock_renew)
            try:
                if not await self._queue.extend_lock(job, self._lock_duration):
                    self._logger.warning(
                        "Job lease lost, another worker may run it",
                        extra={"job_id": job.id},
                    )
                    return
            except Exception:
                self._logger.warning(
                    "Lease renewal failed", exc_info=True, extra={"job_id": job.id}
                )

    async def _handle_success(self, job: QueuedJob, result: Any) -> JobOutcome:
        await self._queue.complete(job, result)
        self._logger.info("Job completed", extra={"job_id": job.id})
        await self._emit(self._completed_listeners, job, result)
        return JobOutcome(
            job=job,
            succeeded=True,
            result=result,
            next_state=JobState.COMPLETED,
        )

    async def _handle_failure(self, job: QueuedJob, exc: Exception) -> JobOutcome:
        next_state = await self._queue.fail(job, exc)
        self._logger.error(
            "Job failed",
            extra={
                "job_id": job.id,
                "error": str(exc),
                "error_type": type(exc).__name__,
                "next_state": next_state.value if next_state else None,
            },
        )
        await self._emit(self._failed_listeners, job, exc)
        return JobOutcome(
            job=job,
            succeeded=False,
            error=exc,
            next_state=next_state,
        )

    async def _emit(self, listeners: list[Any], job: QueuedJob, payload: Any) -> None:
        for listener in listeners:
            try:
                outcome = listener(job, payload)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception:
                self._logger.warning(
                    "Event listener failed", exc_info=True, extra={"job_id": job.id}
                )
