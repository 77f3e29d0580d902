"""Record stores for the two collections an upload can belong to."""

from typing import Any, Generic, TypeVar

from media_uplink.commons.infrastructure.documentdb.base import DocumentDBBase
from media_uplink.commons.telemetry import get_logger
from media_uplink.domain.exceptions import RecordNotFoundException
from media_uplink.domain.models.records import ContentItem, ReelItem, StoredMedia

ItemT = TypeVar("ItemT", bound=StoredMedia)


class _RecordStore(Generic[ItemT]):
    """Typed find/update access to one record collection."""

    item_type: type[ItemT]

    def __init__(self, document_db: DocumentDBBase, collection: str) -> None:
        """Initialize the store.

        Args:
            document_db: Document database provider.
            collection: Collection holding the records.
        """
        self._doc_db = document_db
        self._collection = collection
        self._logger = get_logger(__name__)

    @property
    def collection(self) -> str:
        return self._collection

    async def find_by_id(self, record_id: str) -> ItemT | None:
        doc = await self._doc_db.find_by_id(self._collection, record_id)
        if doc is None:
            return None
        return self.item_type.model_validate(doc)

    async def update(self, record_id: str, fields: dict[str, Any]) -> ItemT:
        """Set fields on a record and return it as stored afterwards.

        Raises:
            RecordNotFoundException: If the record no longer exists.
        """
        self._logger.debug(
            "Updating record",
            extra={
                "collection": self._collection,
                "record_id": record_id,
                "fields": sorted(fields),
            },
        )
        if not await self._doc_db.update(self._collection, record_id, fields):
            raise RecordNotFoundException(record_id)

        item = await self.find_by_id(record_id)
        if item is None:
            raise RecordNotFoundException(record_id)
        return item


class ContentStore(_RecordStore[ContentItem]):
    """Content items collection."""

    item_type = ContentItem


class ReelStore(_RecordStore[ReelItem]):
    """Reels collection."""

    item_type = ReelItem
