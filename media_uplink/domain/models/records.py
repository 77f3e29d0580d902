"""Owning record models: the two entity kinds an upload can belong to.

Content items and reels share one identifier space but live in separate
collections and differ in shape: only content items track a processing
status and a failure reason. The resolver wraps whichever one owns an id
in a :data:`OwningRecord` so callers branch on an explicit kind.
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field


class RecordKind(str, Enum):
    """Collection an owning record lives in."""

    CONTENT = "content"
    REELS = "reels"


class ContentStatus(str, Enum):
    """Processing status of a content item."""

    PENDING = "pending"
    UPLOADING = "uploading_s3"
    PUBLISHED = "published"
    FAILED = "failed"


# Fields a reel accepts from the upload pipeline; anything else is dropped.
REEL_WRITABLE_FIELDS: tuple[str, ...] = (
    "s3_bucket",
    "s3_key",
    "s3_thumb_key",
    "etag",
    "checksum_sha256",
    "file_size_bytes",
)


class StoredMedia(BaseModel):
    """Storage coordinates and integrity data shared by both record kinds."""

    model_config = ConfigDict(extra="allow")

    id: str = Field(description="Record identifier")
    s3_bucket: str | None = Field(default=None, description="Bucket holding the media")
    s3_key: str | None = Field(default=None, description="Key of the primary media")
    s3_thumb_key: str | None = Field(default=None, description="Key of the thumbnail")
    etag: str | None = Field(default=None, description="Integrity tag from the store")
    checksum_sha256: str | None = Field(
        default=None,
        description="Lowercase hex SHA-256 of the primary media",
    )
    file_size_bytes: int | None = Field(default=None, ge=0)


class ContentItem(StoredMedia):
    """A content item. Tracks processing status and failure reason."""

    # Statuses outside ContentStatus are written by other services.
    content_status: str | None = Field(
        default=None, description="Processing status, see ContentStatus"
    )
    failure_reason: str | None = None


class ReelItem(StoredMedia):
    """A reel. Has no status concept."""


@dataclass(frozen=True)
class ContentRecord:
    """A resolved record owned by the content collection."""

    item: ContentItem
    kind: ClassVar[RecordKind] = RecordKind.CONTENT


@dataclass(frozen=True)
class ReelRecord:
    """A resolved record owned by the reels collection."""

    item: ReelItem
    kind: ClassVar[RecordKind] = RecordKind.REELS


OwningRecord = ContentRecord | ReelRecord
