"""Domain layer - record and job models, exceptions."""

from media_uplink.domain.exceptions import (
    DomainException,
    RecordNotFoundException,
    RecordUpdateException,
    StagedFileException,
    StorageUploadException,
    UploadTimeoutException,
)
from media_uplink.domain.models import (
    REEL_WRITABLE_FIELDS,
    BackoffPolicy,
    BackoffType,
    ContentItem,
    ContentRecord,
    ContentStatus,
    JobOptions,
    JobState,
    OwningRecord,
    QueuedJob,
    RecordKind,
    ReelItem,
    ReelRecord,
)

__all__ = [
    # Exceptions
    "DomainException",
    "RecordNotFoundException",
    "StagedFileException",
    "StorageUploadException",
    "UploadTimeoutException",
    "RecordUpdateException",
    # Records
    "RecordKind",
    "ContentStatus",
    "ContentItem",
    "ReelItem",
    "ContentRecord",
    "ReelRecord",
    "OwningRecord",
    "REEL_WRITABLE_FIELDS",
    # Jobs
    "JobState",
    "JobOptions",
    "BackoffType",
    "BackoffPolicy",
    "QueuedJob",
]
