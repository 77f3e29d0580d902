"""Unit tests for upload job submission."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

from media_uplink.application.services.submission import (
    UploadSubmissionService,
    default_job_options,
)
from media_uplink.commons.settings.models import BackoffSettings, QueueSettings
from media_uplink.domain.models.job import BackoffType
from media_uplink.infrastructure.queue.base import JobQueueBase


class TestDefaultJobOptions:
    """Tests for the delivery policy derived from settings."""

    def test_defaults(self):
        opts = default_job_options(QueueSettings())
        assert opts.attempts == 5
        assert opts.backoff.type == BackoffType.EXPONENTIAL
        assert opts.backoff.delay_seconds == 30
        assert opts.remove_on_complete is True
        assert opts.remove_on_fail is False
        assert opts.max_stalled == 1

    def test_fixed_backoff(self):
        opts = default_job_options(
            QueueSettings(backoff=BackoffSettings(type="fixed", delay_seconds=5))
        )
        assert opts.backoff.type == BackoffType.FIXED
        assert opts.backoff.delay_for(3) == 5


class TestUploadSubmissionService:
    """Tests for UploadSubmissionService."""

    async def test_submit_enqueues_payload(self):
        queue = MagicMock(spec=JobQueueBase)
        queue.enqueue = AsyncMock(return_value="job-1")
        service = UploadSubmissionService(queue, QueueSettings())

        job_id = await service.submit(
            "r1", Path("/uploads/r1.mp4"), Path("/uploads/r1.jpg")
        )

        assert job_id == "job-1"
        name, payload, options = queue.enqueue.await_args.args
        assert name == "push-to-s3"
        assert payload == {
            "recordId": "r1",
            "localPath": "/uploads/r1.mp4",
            "thumbnailPath": "/uploads/r1.jpg",
        }
        assert options.attempts == 5

    async def test_submit_is_visible_to_claim(self, document_db, clock):
        from media_uplink.infrastructure.queue.document_queue import (
            DocumentJobQueue,
        )

        queue = DocumentJobQueue(document_db, clock=clock)
        service = UploadSubmissionService(queue, QueueSettings())

        job_id = await service.submit("r1", Path("/uploads/r1.mp4"))
        job = await queue.claim("push-to-s3", 30)

        assert job.id == job_id
        assert job.data == {"recordId": "r1", "localPath": "/uploads/r1.mp4"}
        assert job.opts.backoff.delay_seconds == 30
