"""Resolution and mutation of the record that owns an upload."""

from typing import Any

from media_uplink.application.services.storage import ContentStore, ReelStore
from media_uplink.commons.telemetry import get_logger
from media_uplink.domain.exceptions import (
    DomainException,
    RecordNotFoundException,
    RecordUpdateException,
)
from media_uplink.domain.models.records import (
    REEL_WRITABLE_FIELDS,
    ContentRecord,
    ContentStatus,
    OwningRecord,
    ReelRecord,
)


class RecordResolver:
    """Finds which collection owns a record id.

    Content wins when both collections hold the id. Results are never
    cached; every call hits the stores.
    """

    def __init__(self, content_store: ContentStore, reel_store: ReelStore) -> None:
        self._content = content_store
        self._reels = reel_store
        self._logger = get_logger(__name__)

    async def resolve(self, record_id: str) -> OwningRecord:
        """Resolve a record id to its owning record.

        Raises:
            RecordNotFoundException: If neither collection holds the id.
        """
        content = await self._content.find_by_id(record_id)
        if content is not None:
            return ContentRecord(content)

        reel = await self._reels.find_by_id(record_id)
        if reel is not None:
            return ReelRecord(reel)

        self._logger.warning(
            "Record not found in any collection", extra={"record_id": record_id}
        )
        raise RecordNotFoundException(record_id)


def reel_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Keep only the fields a reel accepts, dropping unset values."""
    return {
        key: value
        for key, value in fields.items()
        if key in REEL_WRITABLE_FIELDS and value is not None
    }


class RecordUpdater:
    """Writes fields to whichever record owns an id.

    Content items take the fields as given. Reels only take storage
    coordinates and integrity data; anything else is dropped silently.
    """

    def __init__(
        self,
        resolver: RecordResolver,
        content_store: ContentStore,
        reel_store: ReelStore,
    ) -> None:
        self._resolver = resolver
        self._content = content_store
        self._reels = reel_store
        self._logger = get_logger(__name__)

    async def update(self, record_id: str, fields: dict[str, Any]) -> OwningRecord:
        """Apply fields to the owning record.

        Raises:
            RecordNotFoundException: If the record is missing, before or
                during the write.
            RecordUpdateException: If the store rejects the write.
        """
        record = await self._resolver.resolve(record_id)
        try:
            if isinstance(record, ContentRecord):
                content = await self._content.update(record_id, dict(fields))
                return ContentRecord(content)

            allowed = reel_fields(fields)
            dropped = sorted(set(fields) - set(allowed))
            if dropped:
                self._logger.debug(
                    "Dropping fields reels do not accept",
                    extra={"record_id": record_id, "dropped": dropped},
                )
            if not allowed:
                return record
            reel = await self._reels.update(record_id, allowed)
            return ReelRecord(reel)
        except DomainException:
            raise
        except Exception as e:
            raise RecordUpdateException(record_id, str(e) or type(e).__name__) from e


class FailureMarker:
    """Records a failure on records that support it."""

    def __init__(self, resolver: RecordResolver, updater: RecordUpdater) -> None:
        self._resolver = resolver
        self._updater = updater
        self._logger = get_logger(__name__)

    async def mark_failed(self, record_id: str, reason: str) -> bool:
        """Mark a content item failed. Reels have no status and are left alone.

        Returns:
            True if a failure was written, False for reels.
        """
        record = await self._resolver.resolve(record_id)
        if not isinstance(record, ContentRecord):
            self._logger.debug(
                "Record kind has no failure status",
                extra={"record_id": record_id, "kind": record.kind.value},
            )
            return False

        await self._updater.update(
            record_id,
            {
                "content_status": ContentStatus.FAILED.value,
                "failure_reason": reason,
            },
        )
        self._logger.info(
            "Record marked failed",
            extra={"record_id": record_id, "reason": reason},
        )
        return True
