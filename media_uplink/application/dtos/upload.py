"""DTOs for the push-to-s3 job."""

from pathlib import Path

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from media_uplink.domain.models.records import RecordKind


class UploadJob(BaseModel):
    """Payload of a push-to-s3 job.

    Serialized with camelCase keys. ``contentId`` is accepted as a legacy
    spelling of ``recordId``.
    """

    model_config = ConfigDict(populate_by_name=True)

    record_id: str = Field(
        validation_alias=AliasChoices("recordId", "contentId", "record_id"),
        serialization_alias="recordId",
        min_length=1,
    )
    local_path: Path = Field(
        validation_alias=AliasChoices("localPath", "local_path"),
        serialization_alias="localPath",
    )
    thumbnail_path: Path | None = Field(
        default=None,
        validation_alias=AliasChoices("thumbnailPath", "thumbnail_path"),
        serialization_alias="thumbnailPath",
    )

    def to_payload(self) -> dict[str, str]:
        """Queue payload with camelCase keys; absent thumbnail omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class UploadOutcome(BaseModel):
    """What a successful push-to-s3 run persisted."""

    record_id: str
    kind: RecordKind
    bucket: str
    key: str
    thumbnail_key: str | None = None
    etag: str | None = None
    checksum_sha256: str
    file_size_bytes: int = Field(ge=0)
