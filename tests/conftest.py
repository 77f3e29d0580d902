"""Shared fixtures: an in-memory document database and a controllable clock."""

import copy
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

import pytest

from media_uplink.commons.infrastructure.blob.base import HealthStatus
from media_uplink.commons.infrastructure.documentdb.base import DocumentDBBase


def _compare(value: Any, condition: Any) -> bool:
    if not isinstance(condition, dict):
        return bool(value == condition)
    for op, operand in condition.items():
        if op == "$in":
            if value not in operand:
                return False
        elif op == "$ne":
            if value == operand:
                return False
        elif value is None:
            return False
        elif op == "$lt" and not value < operand:
            return False
        elif op == "$lte" and not value <= operand:
            return False
        elif op == "$gt" and not value > operand:
            return False
        elif op == "$gte" and not value >= operand:
            return False
    return True


def _matches(doc: dict[str, Any], filters: dict[str, Any]) -> bool:
    for key, condition in filters.items():
        if key == "$or":
            if not any(_matches(doc, sub) for sub in condition):
                return False
        elif not _compare(doc.get(key), condition):
            return False
    return True


class InMemoryDocumentDB(DocumentDBBase):
    """DocumentDBBase over plain dicts, mirroring the MongoDB provider's id mapping."""

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, dict[str, Any]]] = {}
        self.indexes: dict[str, list[str]] = {}

    def _coll(self, collection: str) -> dict[str, dict[str, Any]]:
        return self.collections.setdefault(collection, {})

    @staticmethod
    def _out(doc: dict[str, Any]) -> dict[str, Any]:
        result = copy.deepcopy(doc)
        result["id"] = str(result.pop("_id"))
        return result

    def _select(
        self,
        collection: str,
        filters: dict[str, Any],
        sort: list[tuple[str, int]] | None = None,
    ) -> list[dict[str, Any]]:
        docs = [d for d in self._coll(collection).values() if _matches(d, filters)]
        for field, direction in reversed(sort or []):
            docs.sort(key=lambda d: d.get(field), reverse=direction < 0)
        return docs

    def seed(self, collection: str, document: dict[str, Any]) -> None:
        doc = copy.deepcopy(document)
        doc["_id"] = doc.pop("id")
        self._coll(collection)[doc["_id"]] = doc

    def raw(self, collection: str, document_id: str) -> dict[str, Any] | None:
        return self._coll(collection).get(document_id)

    async def insert(self, collection: str, document: dict[str, Any]) -> str:
        doc = copy.deepcopy(document)
        doc["_id"] = doc.pop("id", None) or str(uuid4())
        self._coll(collection)[doc["_id"]] = doc
        return str(doc["_id"])

    async def find_by_id(
        self, collection: str, document_id: str
    ) -> dict[str, Any] | None:
        doc = self._coll(collection).get(document_id)
        return self._out(doc) if doc else None

    async def find(
        self,
        collection: str,
        filters: dict[str, Any],
        skip: int = 0,
        limit: int = 100,
        sort: list[tuple[str, int]] | None = None,
    ) -> list[dict[str, Any]]:
        docs = self._select(collection, filters, sort)
        return [self._out(d) for d in docs[skip : skip + limit]]

    async def find_one_and_update(
        self,
        collection: str,
        filters: dict[str, Any],
        updates: dict[str, Any],
        sort: list[tuple[str, int]] | None = None,
    ) -> dict[str, Any] | None:
        docs = self._select(collection, filters, sort)
        if not docs:
            return None
        docs[0].update(copy.deepcopy(updates))
        return self._out(docs[0])

    async def update(
        self, collection: str, document_id: str, updates: dict[str, Any]
    ) -> bool:
        doc = self._coll(collection).get(document_id)
        if doc is None:
            return False
        doc.update({k: v for k, v in copy.deepcopy(updates).items() if k != "id"})
        return True

    async def update_many(
        self, collection: str, filters: dict[str, Any], updates: dict[str, Any]
    ) -> int:
        docs = self._select(collection, filters)
        for doc in docs:
            doc.update(copy.deepcopy(updates))
        return len(docs)

    async def delete(self, collection: str, document_id: str) -> bool:
        return self._coll(collection).pop(document_id, None) is not None

    async def delete_many(self, collection: str, filters: dict[str, Any]) -> int:
        docs = self._select(collection, filters)
        for doc in docs:
            del self._coll(collection)[doc["_id"]]
        return len(docs)

    async def count(
        self, collection: str, filters: dict[str, Any] | None = None
    ) -> int:
        return len(self._select(collection, filters or {}))

    async def create_index(
        self,
        collection: str,
        fields: list[tuple[str, int]],
        unique: bool = False,
        name: str | None = None,
    ) -> str:
        index_name = name or "_".join(f"{f}_{d}" for f, d in fields)
        self.indexes.setdefault(collection, []).append(index_name)
        return index_name

    async def health_check(self) -> HealthStatus:
        return HealthStatus(healthy=True, latency_ms=0.0)


class FakeClock:
    """Callable UTC clock advanced by hand."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def document_db() -> InMemoryDocumentDB:
    return InMemoryDocumentDB()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
