"""Domain models."""

from media_uplink.domain.models.job import (
    BackoffPolicy,
    BackoffType,
    JobOptions,
    JobState,
    QueuedJob,
)
from media_uplink.domain.models.records import (
    REEL_WRITABLE_FIELDS,
    ContentItem,
    ContentRecord,
    ContentStatus,
    OwningRecord,
    RecordKind,
    ReelItem,
    ReelRecord,
    StoredMedia,
)

__all__ = [
    # Records
    "RecordKind",
    "ContentStatus",
    "StoredMedia",
    "ContentItem",
    "ReelItem",
    "ContentRecord",
    "ReelRecord",
    "OwningRecord",
    "REEL_WRITABLE_FIELDS",
    # Queue jobs
    "JobState",
    "JobOptions",
    "BackoffType",
    "BackoffPolicy",
    "QueuedJob",
]
