"""MinIO implementation of object storage."""

import asyncio
import math
import time
from datetime import UTC, datetime
from pathlib import Path

from minio import Minio
from minio.datatypes import Part
from minio.error import S3Error

from media_uplink.commons.infrastructure.blob.base import (
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_PART_SIZE,
    BlobMetadata,
    BlobStorageBase,
    HealthStatus,
)
from media_uplink.commons.telemetry import get_logger

AWS_ENDPOINT = "s3.amazonaws.com"


class BlobCredentialsError(Exception):
    """Raised when the store rejects the configured access key."""

    def __init__(self, endpoint: str, message: str) -> None:
        self.endpoint = endpoint
        super().__init__(message)


def _read_part(file_path: Path, offset: int, size: int) -> bytes:
    with file_path.open("rb") as f:
        f.seek(offset)
        return f.read(size)


class MinioBlobStorage(BlobStorageBase):
    """MinIO implementation of object storage.

    Works with both MinIO (local development) and AWS S3 (production).
    """

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        secure: bool = False,
        region: str | None = None,
        public_base_url: str | None = None,
    ) -> None:
        """Initialize MinIO client.

        Args:
            endpoint: MinIO/S3 endpoint (e.g., "localhost:9000").
            access_key: Access key ID.
            secret_key: Secret access key.
            secure: Use HTTPS connection.
            region: AWS region (optional, for S3).
            public_base_url: Base URL used for public object links.
        """
        self._client = Minio(
            endpoint=endpoint,
            access_key=access_key,
            secret_key=secret_key,
            secure=secure,
            region=region,
        )
        self._endpoint = endpoint
        self._secure = secure
        self._region = region
        self._public_base_url = public_base_url
        self._pending_removals: set[asyncio.Future[None]] = set()
        self._logger = get_logger(__name__)

    async def multipart_upload(
        self,
        bucket: str,
        path: str,
        file_path: Path,
        content_type: str = "application/octet-stream",
        part_size: int = DEFAULT_PART_SIZE,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        metadata: dict[str, str] | None = None,
    ) -> BlobMetadata:
        """Upload a local file, using S3 multipart transfer above one part."""
        loop = asyncio.get_event_loop()
        size = (await loop.run_in_executor(None, file_path.stat)).st_size

        try:
            if size <= part_size:
                etag = await self._put_single(
                    bucket, path, file_path, content_type, metadata
                )
            else:
                etag = await self._put_multipart(
                    bucket,
                    path,
                    file_path,
                    size,
                    content_type,
                    part_size,
                    max_concurrency,
                    metadata,
                )
        except S3Error as e:
            if e.code == "InvalidAccessKeyId" and self._endpoint == AWS_ENDPOINT:
                raise BlobCredentialsError(
                    self._endpoint,
                    "Upload rejected with InvalidAccessKeyId against the AWS "
                    "endpoint. If these are MinIO credentials, point the blob "
                    "storage endpoint at the MinIO server.",
                ) from e
            raise

        return BlobMetadata(
            path=path,
            size_bytes=size,
            content_type=content_type,
            created_at=datetime.now(UTC),
            etag=etag.strip('"'),
        )

    async def _put_single(
        self,
        bucket: str,
        path: str,
        file_path: Path,
        content_type: str,
        metadata: dict[str, str] | None,
    ) -> str:
        loop = asyncio.get_event_loop()

        def _put() -> str:
            result = self._client.fput_object(
                bucket_name=bucket,
                object_name=path,
                file_path=str(file_path),
                content_type=content_type,
                metadata=metadata,
            )
            return str(result.etag or "")

        put = loop.run_in_executor(None, _put)
        try:
            return await asyncio.shield(put)
        except asyncio.CancelledError:
            # The request thread cannot be interrupted; drop the object once it lands
            removal = asyncio.ensure_future(
                self._remove_when_settled(put, bucket, path)
            )
            self._pending_removals.add(removal)
            removal.add_done_callback(self._pending_removals.discard)
            raise

    async def _remove_when_settled(
        self, put: "asyncio.Future[str]", bucket: str, path: str
    ) -> None:
        try:
            await put
        except Exception:
            self._logger.debug(
                "Cancelled put failed, nothing stored",
                extra={"bucket": bucket, "path": path},
            )
            return

        loop = asyncio.get_event_loop()
        try:
            await loop.run_in_executor(None, self._client.remove_object, bucket, path)
            self._logger.info(
                "Removed object stored after cancellation",
                extra={"bucket": bucket, "path": path},
            )
        except Exception:
            self._logger.warning(
                "Failed to remove object stored after cancellation",
                exc_info=True,
                extra={"bucket": bucket, "path": path},
            )

    async def _put_multipart(
        self,
        bucket: str,
        path: str,
        file_path: Path,
        size: int,
        content_type: str,
        part_size: int,
        max_concurrency: int,
        metadata: dict[str, str] | None,
    ) -> str:
        loop = asyncio.get_event_loop()
        headers: dict[str, str] = {"Content-Type": content_type}
        for key, value in (metadata or {}).items():
            headers[f"x-amz-meta-{key}"] = value

        upload_id: str = await loop.run_in_executor(
            None, self._client._create_multipart_upload, bucket, path, headers
        )
        part_count = math.ceil(size / part_size)
        self._logger.debug(
            "Multipart upload started",
            extra={
                "bucket": bucket,
                "path": path,
                "upload_id": upload_id,
                "parts": part_count,
            },
        )

        semaphore = asyncio.Semaphore(max_concurrency)

        async def _send(part_number: int) -> Part:
            async with semaphore:
                offset = (part_number - 1) * part_size
                data = await loop.run_in_executor(
                    None, _read_part, file_path, offset, part_size
                )
                etag = await loop.run_in_executor(
                    None,
                    self._client._upload_part,
                    bucket,
                    path,
                    data,
                    None,
                    upload_id,
                    part_number,
                )
                return Part(part_number, etag)

        tasks = [
            asyncio.ensure_future(_send(number)) for number in range(1, part_count + 1)
        ]
        try:
            parts = list(await asyncio.gather(*tasks))
            result = await loop.run_in_executor(
                None,
                self._client._complete_multipart_upload,
                bucket,
                path,
                upload_id,
                parts,
            )
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            await self._abort_multipart(bucket, path, upload_id)
            raise

        return str(result.etag or "")

    async def _abort_multipart(self, bucket: str, path: str, upload_id: str) -> None:
        loop = asyncio.get_event_loop()
        try:
            await loop.run_in_executor(
                None, self._client._abort_multipart_upload, bucket, path, upload_id
            )
            self._logger.info(
                "Multipart upload aborted",
                extra={"bucket": bucket, "path": path, "upload_id": upload_id},
            )
        except Exception:
            # The original transfer error is the one callers need to see
            self._logger.warning(
                "Failed to abort multipart upload",
                exc_info=True,
                extra={"bucket": bucket, "path": path, "upload_id": upload_id},
            )

    def object_url(self, bucket: str, path: str) -> str:
        """Build the public URL of an object."""
        if self._public_base_url:
            return f"{self._public_base_url.rstrip('/')}/{bucket}/{path}"
        if self._endpoint == AWS_ENDPOINT and self._region:
            return f"https://{bucket}.s3.{self._region}.amazonaws.com/{path}"
        scheme = "https" if self._secure else "http"
        return f"{scheme}://{self._endpoint}/{bucket}/{path}"

    async def create_bucket(self, bucket: str) -> bool:
        """Create a new bucket."""
        if await self.bucket_exists(bucket):
            return False
        loop = asyncio.get_event_loop()
        await loop.run_in_executor(None, self._client.make_bucket, bucket)
        return True

    async def bucket_exists(self, bucket: str) -> bool:
        """Check if a bucket exists."""
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, self._client.bucket_exists, bucket)

    async def health_check(self) -> HealthStatus:
        """Check service health."""
        start = time.perf_counter()
        try:
            loop = asyncio.get_event_loop()
            await loop.run_in_executor(None, self._client.list_buckets)
            latency_ms = (time.perf_counter() - start) * 1000
            return HealthStatus(
                healthy=True,
                latency_ms=latency_ms,
                message="MinIO is healthy",
                details={"endpoint": self._endpoint},
            )
        except Exception as e:
            latency_ms = (time.perf_counter() - start) * 1000
            return HealthStatus(
                healthy=False,
                latency_ms=latency_ms,
                message=f"MinIO health check failed: {e}",
                details={"endpoint": self._endpoint, "error": str(e)},
            )

    async def close(self) -> None:
        """Wait for pending removals of objects stored after cancellation."""
        if self._pending_removals:
            await asyncio.gather(*self._pending_removals, return_exceptions=True)
