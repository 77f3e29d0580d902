"""Best-effort removal of staged local files."""

from enum import Enum
from pathlib import Path

from media_uplink.commons.telemetry import get_logger

logger = get_logger(__name__)


class CleanupResult(str, Enum):
    """Outcome of a best-effort delete. Callers may ignore it."""

    DELETED = "deleted"
    MISSING = "missing"
    FAILED = "failed"


def remove_staged_file(path: Path | None) -> CleanupResult:
    """Delete a staged file without ever raising.

    Failures are logged and reported through the return value.
    """
    if path is None:
        return CleanupResult.MISSING
    try:
        path.unlink()
    except FileNotFoundError:
        return CleanupResult.MISSING
    except OSError as e:
        logger.warning(
            "Could not delete staged file",
            extra={"path": str(path), "error": str(e)},
        )
        return CleanupResult.FAILED
    logger.debug("Staged file deleted", extra={"path": str(path)})
    return CleanupResult.DELETED
