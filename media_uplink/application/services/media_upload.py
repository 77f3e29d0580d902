"""Push-to-s3 job handler: staged file to object storage to record."""

from pathlib import Path
from typing import Any

from media_uplink.application.dtos.upload import UploadJob, UploadOutcome
from media_uplink.application.services.checksum import ChecksumEngine
from media_uplink.application.services.cleanup import remove_staged_file
from media_uplink.application.services.records import (
    FailureMarker,
    RecordResolver,
    RecordUpdater,
)
from media_uplink.application.services.uploader import (
    THUMBNAILS_PREFIX,
    VIDEOS_PREFIX,
    ObjectStorageUploader,
    content_type_for,
)
from media_uplink.commons.telemetry import LogContext, get_logger
from media_uplink.domain.exceptions import StagedFileException
from media_uplink.domain.models.job import QueuedJob
from media_uplink.domain.models.records import ContentRecord, ContentStatus


class MediaUploadService:
    """Moves one staged upload into object storage.

    Steps, in order:
    1. Check the staged file is still on disk
    2. Resolve the owning record (content or reel)
    3. Flag content items as uploading
    4. Measure and checksum the file
    5. Upload the primary media, then the thumbnail if one was staged
    6. Write storage coordinates to the record in one update
    7. Delete the staged files

    On failure the record is marked failed where its kind supports it and
    the original exception is re-raised for the queue to retry. Staged
    files survive a failed attempt unless no attempts remain.
    """

    def __init__(
        self,
        resolver: RecordResolver,
        updater: RecordUpdater,
        failure_marker: FailureMarker,
        checksum_engine: ChecksumEngine,
        uploader: ObjectStorageUploader,
    ) -> None:
        """Initialize the service.

        Args:
            resolver: Finds the collection owning a record id.
            updater: Writes fields to the owning record.
            failure_marker: Flags failed content items.
            checksum_engine: Digests staged files.
            uploader: Sends files to the media bucket.
        """
        self._resolver = resolver
        self._updater = updater
        self._failure_marker = failure_marker
        self._checksum = checksum_engine
        self._uploader = uploader
        self._logger = get_logger(__name__)

    async def handle(self, queued_job: QueuedJob) -> dict[str, Any]:
        """Queue worker entry point."""
        job = UploadJob.model_validate(queued_job.data)
        outcome = await self.process(job, final_attempt=queued_job.is_final_attempt)
        return outcome.model_dump(mode="json")

    async def process(
        self,
        job: UploadJob,
        final_attempt: bool = False,
    ) -> UploadOutcome:
        """Run one upload attempt.

        Args:
            job: The job payload.
            final_attempt: Whether a failure now exhausts the job's retries.

        Returns:
            What was stored and written to the record.

        Raises:
            Exception: Whatever stopped the attempt, unchanged.
        """
        with LogContext(record_id=job.record_id):
            self._logger.info(
                "Upload job received",
                extra={
                    "local_path": str(job.local_path),
                    "has_thumbnail": job.thumbnail_path is not None,
                    "final_attempt": final_attempt,
                },
            )
            try:
                outcome = await self._run(job)
            except Exception as e:
                await self._on_failure(job, e, final_attempt)
                raise

            remove_staged_file(job.local_path)
            remove_staged_file(job.thumbnail_path)
            self._logger.info(
                "Upload job done",
                extra={"key": outcome.key, "kind": outcome.kind.value},
            )
            return outcome

    async def _run(self, job: UploadJob) -> UploadOutcome:
        record_id = job.record_id
        self._require_staged(job.local_path)

        record = await self._resolver.resolve(record_id)
        is_content = isinstance(record, ContentRecord)
        self._logger.info("Record resolved", extra={"kind": record.kind.value})

        if is_content:
            await self._updater.update(
                record_id, {"content_status": ContentStatus.UPLOADING.value}
            )
            self._logger.info(
                "Status changed", extra={"status": ContentStatus.UPLOADING.value}
            )

        size_bytes = self._file_size(job.local_path)
        checksum = await self._checksum.checksum(job.local_path)
        self._logger.info(
            "Checksum computed",
            extra={"checksum_sha256": checksum, "size_bytes": size_bytes},
        )

        key = ObjectStorageUploader.build_key(
            VIDEOS_PREFIX, record_id, job.local_path.suffix
        )
        primary = await self._uploader.upload(
            job.local_path,
            key,
            content_type=content_type_for(job.local_path),
            metadata={"record-id": record_id},
        )
        self._logger.info(
            "Primary media uploaded", extra={"key": key, "etag": primary.etag}
        )

        thumb_key = None
        if job.thumbnail_path is not None:
            self._require_staged(job.thumbnail_path)
            thumb_key = ObjectStorageUploader.build_key(
                THUMBNAILS_PREFIX, record_id, job.thumbnail_path.suffix
            )
            await self._uploader.upload(
                job.thumbnail_path,
                thumb_key,
                content_type=content_type_for(job.thumbnail_path),
                metadata={"record-id": record_id},
            )
            self._logger.info("Thumbnail uploaded", extra={"key": thumb_key})

        fields: dict[str, Any] = {
            "s3_bucket": primary.bucket,
            "s3_key": primary.key,
            "etag": primary.etag,
            "checksum_sha256": checksum,
            "file_size_bytes": size_bytes,
            # None clears a thumbnail key left by an earlier upload
            "s3_thumb_key": thumb_key,
        }
        if is_content:
            fields["content_status"] = ContentStatus.PUBLISHED.value
            fields["failure_reason"] = None

        await self._updater.update(record_id, fields)
        self._logger.info(
            "Record updated",
            extra={"status": fields.get("content_status"), "key": primary.key},
        )

        return UploadOutcome(
            record_id=record_id,
            kind=record.kind,
            bucket=primary.bucket,
            key=primary.key,
            thumbnail_key=thumb_key,
            etag=primary.etag,
            checksum_sha256=checksum,
            file_size_bytes=size_bytes,
        )

    async def _on_failure(
        self,
        job: UploadJob,
        error: Exception,
        final_attempt: bool,
    ) -> None:
        reason = str(error) or type(error).__name__
        self._logger.error(
            "Upload job failed",
            extra={
                "error": reason,
                "error_type": type(error).__name__,
                "final_attempt": final_attempt,
            },
        )
        try:
            await self._failure_marker.mark_failed(job.record_id, reason)
        except Exception as mark_error:
            self._logger.error(
                "Could not mark record failed",
                extra={"error": str(mark_error)},
            )

        if final_attempt:
            remove_staged_file(job.local_path)
            remove_staged_file(job.thumbnail_path)

    @staticmethod
    def _require_staged(path: Path) -> None:
        if not path.is_file():
            raise StagedFileException(str(path), "file not found")

    @staticmethod
    def _file_size(path: Path) -> int:
        try:
            return path.stat().st_size
        except OSError as e:
            raise StagedFileException(str(path), e.strerror or str(e)) from e
