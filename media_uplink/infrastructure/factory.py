"""Infrastructure factory for creating service instances from configuration."""

from typing import Any, cast

from media_uplink.application.services.checksum import ChecksumEngine
from media_uplink.application.services.media_upload import MediaUploadService
from media_uplink.application.services.records import (
    FailureMarker,
    RecordResolver,
    RecordUpdater,
)
from media_uplink.application.services.storage import ContentStore, ReelStore
from media_uplink.application.services.submission import UploadSubmissionService
from media_uplink.application.services.uploader import (
    AttachmentUploader,
    ObjectStorageUploader,
)
from media_uplink.commons.infrastructure.blob import BlobStorageBase, MinioBlobStorage
from media_uplink.commons.infrastructure.documentdb import (
    DocumentDBBase,
    MongoDBDocumentDB,
)
from media_uplink.commons.settings.models import Settings
from media_uplink.commons.telemetry import get_logger
from media_uplink.infrastructure.queue import DocumentJobQueue, QueueWorker


class InfrastructureFactory:
    """Factory for creating infrastructure service instances.

    Creates concrete implementations based on configuration settings.
    Each instance is built once and shared by everything that needs it.
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize factory with settings.

        Args:
            settings: Application settings.
        """
        self._settings = settings
        self._instances: dict[str, Any] = {}
        self._logger = get_logger(__name__)

    @property
    def settings(self) -> Settings:
        return self._settings

    def get_blob_storage(self) -> BlobStorageBase:
        """Get blob storage instance.

        Returns:
            Configured blob storage provider.
        """
        if "blob_storage" not in self._instances:
            blob_settings = self._settings.blob_storage
            self._instances["blob_storage"] = MinioBlobStorage(
                endpoint=blob_settings.endpoint,
                access_key=blob_settings.access_key,
                secret_key=blob_settings.secret_key,
                secure=blob_settings.use_ssl,
                region=blob_settings.region,
                public_base_url=blob_settings.public_base_url,
            )
        return cast("BlobStorageBase", self._instances["blob_storage"])

    def get_document_db(self) -> DocumentDBBase:
        """Get document database instance.

        Returns:
            Configured document database provider.
        """
        if "document_db" not in self._instances:
            doc_settings = self._settings.document_db
            if doc_settings.username and doc_settings.password:
                connection_string = (
                    f"mongodb://{doc_settings.username}:{doc_settings.password}"
                    f"@{doc_settings.host}:{doc_settings.port}"
                    f"/?authSource={doc_settings.auth_source}"
                )
            else:
                connection_string = f"mongodb://{doc_settings.host}:{doc_settings.port}"
            self._instances["document_db"] = MongoDBDocumentDB(
                connection_string=connection_string,
                database_name=doc_settings.database,
            )
        return cast("DocumentDBBase", self._instances["document_db"])

    def get_job_queue(self) -> DocumentJobQueue:
        """Get the durable upload job queue."""
        if "job_queue" not in self._instances:
            self._instances["job_queue"] = DocumentJobQueue(
                self.get_document_db(),
                collection=self._settings.document_db.collections.jobs,
                queue_name=self._settings.queue.name,
            )
        return cast("DocumentJobQueue", self._instances["job_queue"])

    def get_content_store(self) -> ContentStore:
        if "content_store" not in self._instances:
            self._instances["content_store"] = ContentStore(
                self.get_document_db(),
                self._settings.document_db.collections.content,
            )
        return cast("ContentStore", self._instances["content_store"])

    def get_reel_store(self) -> ReelStore:
        if "reel_store" not in self._instances:
            self._instances["reel_store"] = ReelStore(
                self.get_document_db(),
                self._settings.document_db.collections.reels,
            )
        return cast("ReelStore", self._instances["reel_store"])

    def get_record_resolver(self) -> RecordResolver:
        if "record_resolver" not in self._instances:
            self._instances["record_resolver"] = RecordResolver(
                self.get_content_store(), self.get_reel_store()
            )
        return cast("RecordResolver", self._instances["record_resolver"])

    def get_record_updater(self) -> RecordUpdater:
        if "record_updater" not in self._instances:
            self._instances["record_updater"] = RecordUpdater(
                self.get_record_resolver(),
                self.get_content_store(),
                self.get_reel_store(),
            )
        return cast("RecordUpdater", self._instances["record_updater"])

    def get_failure_marker(self) -> FailureMarker:
        if "failure_marker" not in self._instances:
            self._instances["failure_marker"] = FailureMarker(
                self.get_record_resolver(), self.get_record_updater()
            )
        return cast("FailureMarker", self._instances["failure_marker"])

    def get_media_uploader(self) -> ObjectStorageUploader:
        """Get the uploader for the media bucket."""
        if "media_uploader" not in self._instances:
            upload = self._settings.upload
            self._instances["media_uploader"] = ObjectStorageUploader(
                self.get_blob_storage(),
                self._settings.blob_storage.buckets.media,
                part_size=upload.part_size_bytes,
                max_concurrency=upload.queue_size,
            )
        return cast("ObjectStorageUploader", self._instances["media_uploader"])

    def get_attachment_uploader(self) -> AttachmentUploader:
        """Get the time-boxed uploader for direct attachments."""
        if "attachment_uploader" not in self._instances:
            upload = self._settings.upload
            self._instances["attachment_uploader"] = AttachmentUploader(
                self.get_blob_storage(),
                self._settings.blob_storage.buckets.attachments,
                timeout_seconds=upload.attachment_timeout_seconds,
                default_folder=upload.attachment_folder,
                part_size=upload.part_size_bytes,
                max_concurrency=upload.queue_size,
            )
        return cast("AttachmentUploader", self._instances["attachment_uploader"])

    def get_media_upload_service(self) -> MediaUploadService:
        """Get the push-to-s3 job handler."""
        if "media_upload_service" not in self._instances:
            self._instances["media_upload_service"] = MediaUploadService(
                resolver=self.get_record_resolver(),
                updater=self.get_record_updater(),
                failure_marker=self.get_failure_marker(),
                checksum_engine=ChecksumEngine(
                    self._settings.upload.checksum_chunk_bytes
                ),
                uploader=self.get_media_uploader(),
            )
        return cast("MediaUploadService", self._instances["media_upload_service"])

    def get_submission_service(self) -> UploadSubmissionService:
        if "submission_service" not in self._instances:
            self._instances["submission_service"] = UploadSubmissionService(
                self.get_job_queue(), self._settings.queue
            )
        return cast("UploadSubmissionService", self._instances["submission_service"])

    def create_worker(self, concurrency: int | None = None) -> QueueWorker:
        """Build a worker pool running the push-to-s3 handler.

        Args:
            concurrency: Overrides the configured number of slots.
        """
        queue_settings = self._settings.queue
        return QueueWorker(
            self.get_job_queue(),
            queue_settings.job_name,
            self.get_media_upload_service().handle,
            concurrency=concurrency or queue_settings.concurrency,
            poll_interval_seconds=queue_settings.poll_interval_seconds,
            lock_duration_seconds=queue_settings.lock_duration_seconds,
            lock_renew_seconds=queue_settings.lock_renew_seconds,
        )

    async def close_all(self) -> None:
        """Close all service connections."""
        for name, instance in self._instances.items():
            if hasattr(instance, "close"):
                try:
                    close_result = instance.close()
                    if hasattr(close_result, "__await__"):
                        await close_result
                except Exception:
                    self._logger.warning(
                        "Failed to close service", exc_info=True, extra={"service": name}
                    )

        self._instances.clear()


class _FactoryHolder:
    """Holder for the factory singleton to avoid global statements."""

    instance: InfrastructureFactory | None = None


def get_factory(settings: Settings | None = None) -> InfrastructureFactory:
    """Get or create the infrastructure factory singleton.

    Args:
        settings: Settings to use. Required on first call.

    Returns:
        Infrastructure factory instance.

    Raises:
        ValueError: If settings not provided on first call.
    """
    if _FactoryHolder.instance is None:
        if settings is None:
            raise ValueError("Settings required to initialize factory")
        _FactoryHolder.instance = InfrastructureFactory(settings)

    return _FactoryHolder.instance


def reset_factory() -> None:
    """Reset the factory singleton (for testing)."""
    _FactoryHolder.instance = None
