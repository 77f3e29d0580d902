"""Application services for the media upload pipeline."""

from media_uplink.application.services.checksum import ChecksumEngine, compute_sha256
from media_uplink.application.services.cleanup import (
    CleanupResult,
    remove_staged_file,
)
from media_uplink.application.services.media_upload import MediaUploadService
from media_uplink.application.services.records import (
    FailureMarker,
    RecordResolver,
    RecordUpdater,
)
from media_uplink.application.services.storage import ContentStore, ReelStore
from media_uplink.application.services.submission import (
    UploadSubmissionService,
    default_job_options,
)
from media_uplink.application.services.uploader import (
    AttachmentUploader,
    ObjectStorageUploader,
    UploadedObject,
    content_type_for,
)

__all__ = [
    "AttachmentUploader",
    "ChecksumEngine",
    "CleanupResult",
    "ContentStore",
    "FailureMarker",
    "MediaUploadService",
    "ObjectStorageUploader",
    "RecordResolver",
    "RecordUpdater",
    "ReelStore",
    "UploadSubmissionService",
    "UploadedObject",
    "compute_sha256",
    "content_type_for",
    "default_job_options",
    "remove_staged_file",
]
