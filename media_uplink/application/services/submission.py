"""Enqueueing of push-to-s3 jobs for staged uploads."""

from pathlib import Path

from media_uplink.application.dtos.upload import UploadJob
from media_uplink.commons.settings.models import QueueSettings
from media_uplink.commons.telemetry import get_logger
from media_uplink.domain.models.job import BackoffPolicy, BackoffType, JobOptions
from media_uplink.infrastructure.queue.base import JobQueueBase


def default_job_options(settings: QueueSettings) -> JobOptions:
    """Delivery policy for upload jobs, from queue settings."""
    return JobOptions(
        attempts=settings.attempts,
        backoff=BackoffPolicy(
            type=BackoffType(settings.backoff.type),
            delay_seconds=settings.backoff.delay_seconds,
            max_delay_seconds=settings.backoff.max_delay_seconds,
        ),
        remove_on_complete=settings.remove_on_complete,
        remove_on_fail=settings.remove_on_fail,
        max_stalled=settings.max_stalled,
    )


class UploadSubmissionService:
    """Hands staged files to the worker pool.

    Called by the request path once the file is on disk and the owning
    record exists. Returns as soon as the job is durable.
    """

    def __init__(self, queue: JobQueueBase, queue_settings: QueueSettings) -> None:
        self._queue = queue
        self._job_name = queue_settings.job_name
        self._options = default_job_options(queue_settings)
        self._logger = get_logger(__name__)

    async def submit(
        self,
        record_id: str,
        local_path: Path,
        thumbnail_path: Path | None = None,
    ) -> str:
        """Enqueue an upload job.

        Returns:
            The queue's job id.
        """
        job = UploadJob(
            record_id=record_id,
            local_path=local_path,
            thumbnail_path=thumbnail_path,
        )
        job_id = await self._queue.enqueue(
            self._job_name, job.to_payload(), self._options
        )
        self._logger.info(
            "Upload submitted",
            extra={"record_id": record_id, "job_id": job_id},
        )
        return job_id
