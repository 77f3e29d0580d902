"""Domain exceptions for the media upload pipeline."""


class DomainException(Exception):
    """Base exception for domain errors."""


class RecordNotFoundException(DomainException):
    """Raised when an id matches neither a content item nor a reel."""

    def __init__(self, record_id: str) -> None:
        self.record_id = record_id
        super().__init__(f"Record {record_id} not found in content or reels")


class StagedFileException(DomainException, OSError):
    """Raised when a staged local file is missing or cannot be read."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Staged file {path} unavailable: {reason}")


class StorageUploadException(DomainException):
    """Raised when transferring bytes to object storage fails."""

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        self.reason = reason
        super().__init__(f"Upload of {key} failed: {reason}")


class UploadTimeoutException(StorageUploadException, TimeoutError):
    """Raised when an upload exceeds its wall-clock budget."""

    def __init__(self, key: str, timeout_seconds: float) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(key, f"aborted after {timeout_seconds}s timeout")


class RecordUpdateException(DomainException):
    """Raised when persisting record fields fails.

    When raised after a successful upload the bytes are already durable
    in object storage and only the record metadata is stale.
    """

    def __init__(self, record_id: str, reason: str) -> None:
        self.record_id = record_id
        self.reason = reason
        super().__init__(f"Update of record {record_id} failed: {reason}")
