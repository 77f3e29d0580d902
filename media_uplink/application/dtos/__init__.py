"""Data transfer objects for the queue boundary."""

from media_uplink.application.dtos.upload import UploadJob, UploadOutcome

__all__ = [
    "UploadJob",
    "UploadOutcome",
]
