"""Abstract base class for object storage operations."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

DEFAULT_PART_SIZE = 10 * 1024 * 1024
DEFAULT_MAX_CONCURRENCY = 4


@dataclass
class BlobMetadata:
    """Metadata for a stored blob."""

    path: str
    size_bytes: int
    content_type: str
    created_at: datetime
    etag: str


@dataclass
class HealthStatus:
    """Health check result."""

    healthy: bool
    latency_ms: float
    message: str | None = None
    details: dict[str, str] | None = None


class BlobStorageBase(ABC):
    """Abstract base class for object storage.

    Implementations should handle:
    - MinIO (local development)
    - AWS S3
    """

    @abstractmethod
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
        """Upload a local file, split into parts when it exceeds one part.

        Files no larger than ``part_size`` are sent in a single request.
        Larger files are sent as a multipart upload with at most
        ``max_concurrency`` parts in flight. If any part fails, or the
        calling task is cancelled, the multipart upload is aborted on the
        server before the error propagates. A single request cancelled in
        flight has its object removed once the request completes.

        Args:
            bucket: Target bucket name.
            path: Object key within the bucket.
            file_path: Local file to read.
            content_type: MIME type stored with the object.
            part_size: Size of each part in bytes.
            max_concurrency: Maximum parts uploaded concurrently.
            metadata: Optional user metadata stored with the object.

        Returns:
            Metadata of the stored object, including the store's ETag.
        """

    @abstractmethod
    def object_url(self, bucket: str, path: str) -> str:
        """Build the public URL of an object.

        Args:
            bucket: Bucket name.
            path: Object key within the bucket.

        Returns:
            Absolute URL string.
        """

    @abstractmethod
    async def create_bucket(self, bucket: str) -> bool:
        """Create a new bucket.

        Returns:
            True if created, False if already exists.
        """

    @abstractmethod
    async def bucket_exists(self, bucket: str) -> bool:
        """Check if a bucket exists."""

    @abstractmethod
    async def health_check(self) -> HealthStatus:
        """Check service health.

        Returns:
            Health status with latency info.
        """
