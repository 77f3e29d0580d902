"""Unit tests for the queue worker pool."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from media_uplink.application.services.checksum import ChecksumEngine
from media_uplink.application.services.media_upload import MediaUploadService
from media_uplink.application.services.records import (
    FailureMarker,
    RecordResolver,
    RecordUpdater,
)
from media_uplink.application.services.storage import ContentStore, ReelStore
from media_uplink.application.services.submission import UploadSubmissionService
from media_uplink.application.services.uploader import ObjectStorageUploader
from media_uplink.commons.infrastructure.blob.base import BlobStorageBase
from media_uplink.commons.settings.models import QueueSettings
from media_uplink.domain.models.job import JobState
from media_uplink.infrastructure.queue.document_queue import DocumentJobQueue
from media_uplink.infrastructure.queue.worker import QueueWorker

JOB = "push-to-s3"


@pytest.fixture
def queue(document_db, clock):
    return DocumentJobQueue(document_db, queue_name="media", clock=clock)


@pytest.fixture
def submission(queue):
    return UploadSubmissionService(queue, QueueSettings())


class TestProcessNext:
    """Single claim/handle/acknowledge cycles."""

    async def test_empty_queue(self, queue):
        worker = QueueWorker(queue, JOB, AsyncMock())
        assert await worker.process_next() is None

    async def test_success_completes_and_emits(self, queue, submission, document_db):
        job_id = await submission.submit("r1", "/tmp/staged.mp4")
        handler = AsyncMock(return_value={"key": "videos/r1.mp4"})
        completed = []
        worker = QueueWorker(queue, JOB, handler)
        worker.on_completed(lambda job, result: completed.append((job.id, result)))

        outcome = await worker.process_next()

        assert outcome.succeeded is True
        assert outcome.next_state == JobState.COMPLETED
        assert completed == [(job_id, {"key": "videos/r1.mp4"})]
        assert document_db.raw("jobs", job_id) is None
        claimed = handler.await_args.args[0]
        assert claimed.data == {"recordId": "r1", "localPath": "/tmp/staged.mp4"}

    async def test_failure_schedules_retry_and_emits(self, queue, submission):
        job_id = await submission.submit("r1", "/tmp/staged.mp4")
        error = RuntimeError("nope")
        failed = []

        async def on_failed(job, exc):
            failed.append((job.id, exc))

        worker = QueueWorker(queue, JOB, AsyncMock(side_effect=error))
        worker.on_failed(on_failed)

        outcome = await worker.process_next()

        assert outcome.succeeded is False
        assert outcome.error is error
        assert outcome.next_state == JobState.PENDING
        assert failed == [(job_id, error)]

    async def test_listener_errors_are_contained(self, queue, submission):
        await submission.submit("r1", "/tmp/staged.mp4")
        worker = QueueWorker(queue, JOB, AsyncMock(return_value=None))
        worker.on_completed(MagicMock(side_effect=ValueError("listener broke")))

        outcome = await worker.process_next()

        assert outcome.succeeded is True

    async def test_heartbeat_renews_lease(self, queue, submission):
        await submission.submit("r1", "/tmp/staged.mp4")
        queue.extend_lock = AsyncMock(return_value=True)

        async def slow(job):
            await asyncio.sleep(0.05)

        worker = QueueWorker(queue, JOB, slow, lock_renew_seconds=0.01)
        await worker.process_next()

        assert queue.extend_lock.await_count >= 1


class TestRetryExhaustion:
    """A job failing on every attempt runs exactly five times."""

    async def test_five_attempts_then_failed(
        self, queue, submission, document_db, clock, tmp_path
    ):
        video = tmp_path / "upload.mp4"
        video.write_bytes(b"abc")
        document_db.seed("content", {"id": "c1", "content_status": "pending"})

        blob = MagicMock(spec=BlobStorageBase)
        blob.multipart_upload = AsyncMock(side_effect=ConnectionError("store down"))
        content = ContentStore(document_db, "content")
        reels = ReelStore(document_db, "reels")
        resolver = RecordResolver(content, reels)
        updater = RecordUpdater(resolver, content, reels)
        service = MediaUploadService(
            resolver=resolver,
            updater=updater,
            failure_marker=FailureMarker(resolver, updater),
            checksum_engine=ChecksumEngine(),
            uploader=ObjectStorageUploader(blob, "media-uploads"),
        )
        worker = QueueWorker(queue, JOB, service.handle)
        failures = []
        worker.on_failed(lambda job, exc: failures.append(job.attempts_made))

        job_id = await submission.submit("c1", video)
        for _ in range(10):
            outcome = await worker.process_next()
            if outcome is None:
                clock.advance(3600)
                continue
            if outcome.next_state == JobState.FAILED:
                break

        assert blob.multipart_upload.await_count == 5
        assert failures == [1, 2, 3, 4, 5]

        stored = await queue.get_job(job_id)
        assert stored.state == JobState.FAILED
        assert stored.attempts_made == 5
        assert "store down" in stored.failed_reason

        record = document_db.raw("content", "c1")
        assert record["content_status"] == "failed"
        assert "store down" in record["failure_reason"]
        assert not video.exists()


class TestRun:
    """Tests for the slot loop."""

    async def test_run_until_stopped(self, queue, submission):
        for n in range(3):
            await submission.submit(f"r{n}", f"/tmp/{n}.mp4")
        seen = []
        worker = QueueWorker(
            queue,
            JOB,
            AsyncMock(return_value=None),
            concurrency=2,
            poll_interval_seconds=0.01,
        )

        def on_completed(job, result):
            seen.append(job.data["recordId"])
            if len(seen) == 3:
                worker.stop()

        worker.on_completed(on_completed)

        await asyncio.wait_for(worker.run(), timeout=5)

        assert sorted(seen) == ["r0", "r1", "r2"]
        assert worker.is_stopping

    async def test_idle_worker_stops_promptly(self, queue):
        worker = QueueWorker(queue, JOB, AsyncMock(), poll_interval_seconds=10)

        async def stop_soon():
            await asyncio.sleep(0.02)
            worker.stop()

        await asyncio.wait_for(asyncio.gather(worker.run(), stop_soon()), timeout=2)
