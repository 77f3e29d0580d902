"""Pydantic settings models for worker configuration."""

from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MIB = 1024 * 1024


class AppSettings(BaseModel):
    """Application-level settings."""

    name: str = "media-uplink"
    version: str = "0.1.0"
    environment: Literal["dev", "staging", "prod"] = "dev"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


class BucketSettings(BaseModel):
    """Bucket name configuration."""

    media: str = "media-uploads"
    attachments: str = "media-uploads"


class BlobStorageSettings(BaseModel):
    """Object storage settings (MinIO/S3)."""

    provider: Literal["minio", "s3"] = "minio"
    endpoint: str = "localhost:9000"
    access_key: str = ""
    secret_key: str = ""
    use_ssl: bool = False
    region: str = "us-east-1"
    buckets: BucketSettings = Field(default_factory=BucketSettings)
    public_base_url: str | None = None


class DocumentCollectionSettings(BaseModel):
    """Document DB collection names."""

    content: str = "content"
    reels: str = "reels"
    jobs: str = "jobs"


class DocumentDBSettings(BaseModel):
    """Document database settings (MongoDB)."""

    provider: Literal["mongodb"] = "mongodb"
    host: str = "localhost"
    port: int = 27017
    username: str = ""
    password: str = ""
    database: str = "media_uplink"
    auth_source: str = "admin"
    collections: DocumentCollectionSettings = Field(
        default_factory=DocumentCollectionSettings
    )


class UploadSettings(BaseModel):
    """Multipart transfer settings."""

    part_size_mb: int = Field(default=10, ge=5, le=5120)
    queue_size: int = Field(default=4, ge=1, le=64)
    checksum_chunk_bytes: int = Field(default=MIB, ge=4096)
    attachment_timeout_seconds: float = Field(default=15.0, gt=0)
    attachment_folder: str = "attachments"

    @property
    def part_size_bytes(self) -> int:
        return self.part_size_mb * MIB


class BackoffSettings(BaseModel):
    """Retry backoff configuration."""

    type: Literal["exponential", "fixed"] = "exponential"
    delay_seconds: float = Field(default=30.0, ge=0)
    max_delay_seconds: float | None = None


class QueueSettings(BaseModel):
    """Durable job queue and worker pool settings."""

    name: str = "media"
    job_name: str = "push-to-s3"
    concurrency: int = Field(default=2, ge=1, le=64)
    attempts: int = Field(default=5, ge=1)
    backoff: BackoffSettings = Field(default_factory=BackoffSettings)
    remove_on_complete: bool = True
    remove_on_fail: bool = False
    max_stalled: int = Field(default=1, ge=0)
    poll_interval_seconds: float = Field(default=1.0, gt=0)
    lock_duration_seconds: float = Field(default=30.0, gt=0)
    lock_renew_seconds: float = Field(default=15.0, gt=0)


class TelemetrySettings(BaseModel):
    """Logging settings."""

    log_format: Literal["json", "text"] = "json"
    log_level: str = "INFO"


class Settings(BaseSettings):
    """Root settings container with environment loading."""

    app: AppSettings = Field(default_factory=AppSettings)
    blob_storage: BlobStorageSettings = Field(default_factory=BlobStorageSettings)
    document_db: DocumentDBSettings = Field(default_factory=DocumentDBSettings)
    upload: UploadSettings = Field(default_factory=UploadSettings)
    queue: QueueSettings = Field(default_factory=QueueSettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="MEDIA_UPLINK__",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )
