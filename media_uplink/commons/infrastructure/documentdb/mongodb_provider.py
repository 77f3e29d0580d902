"""MongoDB implementation of document database."""

import time
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ReturnDocument

from media_uplink.commons.infrastructure.blob.base import HealthStatus
from media_uplink.commons.infrastructure.documentdb.base import DocumentDBBase


def _restore_id(doc: dict[str, Any]) -> dict[str, Any]:
    doc["id"] = str(doc.pop("_id"))
    return dict(doc)


class MongoDBDocumentDB(DocumentDBBase):
    """MongoDB implementation of document database.

    Uses Motor for async operations. Record ids written by the API layer
    may be plain strings or ObjectIds; lookups by id try both.
    """

    def __init__(
        self,
        connection_string: str,
        database_name: str,
    ) -> None:
        """Initialize MongoDB client.

        Args:
            connection_string: MongoDB connection URI.
            database_name: Name of the database to use.
        """
        self._client: AsyncIOMotorClient[dict[str, Any]] = AsyncIOMotorClient(
            connection_string, tz_aware=True
        )
        self._db: AsyncIOMotorDatabase[dict[str, Any]] = self._client[database_name]
        self._database_name = database_name

    @staticmethod
    def _id_candidates(document_id: str) -> list[Any]:
        candidates: list[Any] = [document_id]
        try:
            candidates.append(ObjectId(document_id))
        except (InvalidId, TypeError):
            pass
        return candidates

    async def insert(
        self,
        collection: str,
        document: dict[str, Any],
    ) -> str:
        """Insert a document, using its 'id' field as MongoDB's '_id'."""
        doc = document.copy()
        if "id" in doc:
            doc["_id"] = doc.pop("id")

        result = await self._db[collection].insert_one(doc)
        return str(result.inserted_id)

    async def find_by_id(
        self,
        collection: str,
        document_id: str,
    ) -> dict[str, Any] | None:
        """Find a document by string or ObjectId '_id'."""
        for candidate in self._id_candidates(document_id):
            doc = await self._db[collection].find_one({"_id": candidate})
            if doc:
                return _restore_id(doc)
        return None

    async def find(
        self,
        collection: str,
        filters: dict[str, Any],
        skip: int = 0,
        limit: int = 100,
        sort: list[tuple[str, int]] | None = None,
    ) -> list[dict[str, Any]]:
        """Find documents matching filters."""
        cursor = self._db[collection].find(filters)

        if sort:
            cursor = cursor.sort(sort)

        cursor = cursor.skip(skip).limit(limit)

        return [_restore_id(doc) async for doc in cursor]

    async def find_one_and_update(
        self,
        collection: str,
        filters: dict[str, Any],
        updates: dict[str, Any],
        sort: list[tuple[str, int]] | None = None,
    ) -> dict[str, Any] | None:
        """Atomically $set fields on the first match and return it."""
        doc = await self._db[collection].find_one_and_update(
            filters,
            {"$set": updates},
            sort=sort,
            return_document=ReturnDocument.AFTER,
        )
        if doc:
            return _restore_id(doc)
        return None

    async def update(
        self,
        collection: str,
        document_id: str,
        updates: dict[str, Any],
    ) -> bool:
        """Update a document by string or ObjectId '_id'."""
        update_doc = {k: v for k, v in updates.items() if k != "id"}

        for candidate in self._id_candidates(document_id):
            result = await self._db[collection].update_one(
                {"_id": candidate},
                {"$set": update_doc},
            )
            if result.matched_count > 0:
                return True
        return False

    async def update_many(
        self,
        collection: str,
        filters: dict[str, Any],
        updates: dict[str, Any],
    ) -> int:
        """Update multiple documents."""
        result = await self._db[collection].update_many(
            filters,
            {"$set": updates},
        )
        return int(result.matched_count)

    async def delete(
        self,
        collection: str,
        document_id: str,
    ) -> bool:
        """Delete a document by string or ObjectId '_id'."""
        for candidate in self._id_candidates(document_id):
            result = await self._db[collection].delete_one({"_id": candidate})
            if result.deleted_count > 0:
                return True
        return False

    async def delete_many(
        self,
        collection: str,
        filters: dict[str, Any],
    ) -> int:
        """Delete multiple documents."""
        result = await self._db[collection].delete_many(filters)
        return int(result.deleted_count)

    async def count(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
    ) -> int:
        """Count documents matching filters."""
        if filters:
            return int(await self._db[collection].count_documents(filters))
        return int(await self._db[collection].estimated_document_count())

    async def create_index(
        self,
        collection: str,
        fields: list[tuple[str, int]],
        unique: bool = False,
        name: str | None = None,
    ) -> str:
        """Create an index on the collection."""
        index_name = await self._db[collection].create_index(
            fields,
            unique=unique,
            name=name,
        )
        return str(index_name)

    async def health_check(self) -> HealthStatus:
        """Check service health."""
        start = time.perf_counter()
        try:
            await self._client.admin.command("ping")
            latency_ms = (time.perf_counter() - start) * 1000
            return HealthStatus(
                healthy=True,
                latency_ms=latency_ms,
                message="MongoDB is healthy",
                details={"database": self._database_name},
            )
        except Exception as e:
            latency_ms = (time.perf_counter() - start) * 1000
            return HealthStatus(
                healthy=False,
                latency_ms=latency_ms,
                message=f"MongoDB health check failed: {e}",
                details={"database": self._database_name, "error": str(e)},
            )

    async def close(self) -> None:
        """Close the client connection."""
        self._client.close()
