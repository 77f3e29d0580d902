"""Transfers of staged files into object storage."""

import asyncio
import mimetypes
import time
from dataclasses import dataclass
from pathlib import Path

from media_uplink.application.services.cleanup import remove_staged_file
from media_uplink.commons.infrastructure.blob.base import (
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_PART_SIZE,
    BlobStorageBase,
)
from media_uplink.commons.telemetry import get_logger
from media_uplink.domain.exceptions import (
    DomainException,
    StorageUploadException,
    UploadTimeoutException,
)

VIDEOS_PREFIX = "videos"
THUMBNAILS_PREFIX = "thumbnails"
DEFAULT_CONTENT_TYPE = "application/octet-stream"

_MIME_TYPES = {
    ".mp4": "video/mp4",
    ".mov": "video/quicktime",
    ".mkv": "video/x-matroska",
    ".webm": "video/webm",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".gif": "image/gif",
}


def content_type_for(path: Path) -> str:
    """MIME type for a staged file, by extension."""
    ext = path.suffix.lower()
    if ext in _MIME_TYPES:
        return _MIME_TYPES[ext]
    guessed, _ = mimetypes.guess_type(path.name)
    return guessed or DEFAULT_CONTENT_TYPE


@dataclass(frozen=True)
class UploadedObject:
    """Where an upload landed and the store's integrity tag for it."""

    bucket: str
    key: str
    etag: str
    size_bytes: int


class ObjectStorageUploader:
    """Uploads staged media under deterministic keys.

    Keys depend only on the record id and file extension, so a retried or
    redelivered job overwrites the object written by an earlier attempt.
    """

    def __init__(
        self,
        blob_storage: BlobStorageBase,
        bucket: str,
        part_size: int = DEFAULT_PART_SIZE,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ) -> None:
        """Initialize the uploader.

        Args:
            blob_storage: Object storage provider.
            bucket: Destination bucket.
            part_size: Multipart part size in bytes.
            max_concurrency: Parts in flight per upload.
        """
        self._blob = blob_storage
        self._bucket = bucket
        self._part_size = part_size
        self._max_concurrency = max_concurrency
        self._logger = get_logger(__name__)

    @property
    def bucket(self) -> str:
        return self._bucket

    @staticmethod
    def build_key(prefix: str, record_id: str, extension: str) -> str:
        """Deterministic destination key: ``{prefix}/{record_id}{extension}``."""
        return f"{prefix}/{record_id}{extension}"

    async def upload(
        self,
        local_path: Path,
        key: str,
        content_type: str = DEFAULT_CONTENT_TYPE,
        metadata: dict[str, str] | None = None,
    ) -> UploadedObject:
        """Upload a file to the configured bucket.

        Raises:
            StorageUploadException: If the transfer fails for any reason.
        """
        self._logger.debug(
            "Uploading object",
            extra={
                "bucket": self._bucket,
                "key": key,
                "content_type": content_type,
                "part_size": self._part_size,
            },
        )
        try:
            stored = await self._blob.multipart_upload(
                self._bucket,
                key,
                local_path,
                content_type=content_type,
                part_size=self._part_size,
                max_concurrency=self._max_concurrency,
                metadata=metadata,
            )
        except DomainException:
            raise
        except Exception as e:
            raise StorageUploadException(key, str(e) or type(e).__name__) from e

        self._logger.info(
            "Object uploaded",
            extra={
                "bucket": self._bucket,
                "key": key,
                "etag": stored.etag,
                "size_bytes": stored.size_bytes,
            },
        )
        return UploadedObject(
            bucket=self._bucket,
            key=key,
            etag=stored.etag,
            size_bytes=stored.size_bytes,
        )


class AttachmentUploader:
    """Direct, time-boxed uploads outside the worker queue.

    Used for small attachments where the caller waits for the URL. The
    staged file is always deleted afterwards, whatever the outcome.
    """

    def __init__(
        self,
        blob_storage: BlobStorageBase,
        bucket: str,
        timeout_seconds: float = 15.0,
        default_folder: str = "attachments",
        part_size: int = DEFAULT_PART_SIZE,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ) -> None:
        self._uploader = ObjectStorageUploader(
            blob_storage, bucket, part_size=part_size, max_concurrency=max_concurrency
        )
        self._blob = blob_storage
        self._bucket = bucket
        self._timeout = timeout_seconds
        self._default_folder = default_folder
        self._logger = get_logger(__name__)

    def build_key(self, filename: str, folder: str | None = None) -> str:
        millis = int(time.time() * 1000)
        return f"{folder or self._default_folder}/{millis}_{Path(filename).name}"

    async def upload(
        self,
        local_path: Path,
        filename: str,
        content_type: str | None = None,
        folder: str | None = None,
    ) -> str:
        """Upload an attachment and return its public URL.

        Raises:
            UploadTimeoutException: If the transfer outlives the timeout;
                a multipart upload is aborted and a single-request put is
                removed from the store once it completes.
            StorageUploadException: On any other transfer failure.
        """
        key = self.build_key(filename, folder)
        try:
            try:
                await asyncio.wait_for(
                    self._uploader.upload(
                        local_path,
                        key,
                        content_type=content_type or content_type_for(local_path),
                    ),
                    timeout=self._timeout,
                )
            except TimeoutError as e:
                self._logger.warning(
                    "Attachment upload timed out",
                    extra={"key": key, "timeout_seconds": self._timeout},
                )
                raise UploadTimeoutException(key, self._timeout) from e
        finally:
            remove_staged_file(local_path)

        return self._blob.object_url(self._bucket, key)
