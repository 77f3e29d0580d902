"""Object storage abstractions and implementations."""

from media_uplink.commons.infrastructure.blob.base import (
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_PART_SIZE,
    BlobMetadata,
    BlobStorageBase,
    HealthStatus,
)
from media_uplink.commons.infrastructure.blob.minio_provider import (
    BlobCredentialsError,
    MinioBlobStorage,
)

__all__ = [
    # Base classes
    "BlobMetadata",
    "BlobStorageBase",
    "HealthStatus",
    "DEFAULT_PART_SIZE",
    "DEFAULT_MAX_CONCURRENCY",
    # Implementations
    "MinioBlobStorage",
    # Exceptions
    "BlobCredentialsError",
]
