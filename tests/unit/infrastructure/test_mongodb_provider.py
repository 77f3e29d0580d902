"""Unit tests for MongoDB document database provider."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from bson import ObjectId
from pymongo import ReturnDocument


class TestMongoDBDocumentDB:
    """Tests for MongoDBDocumentDB provider.

    Records written by the API layer may carry string or ObjectId keys;
    jobs always use string keys.
    """

    @pytest.fixture
    def mock_motor_client(self):
        """Create a mock Motor client."""
        with patch(
            "media_uplink.commons.infrastructure.documentdb.mongodb_provider.AsyncIOMotorClient"
        ) as mock_client_class:
            mock_client = MagicMock()
            mock_db = MagicMock()
            mock_collection = MagicMock()

            mock_client.__getitem__ = MagicMock(return_value=mock_db)
            mock_db.__getitem__ = MagicMock(return_value=mock_collection)

            mock_client_class.return_value = mock_client

            yield {
                "client_class": mock_client_class,
                "client": mock_client,
                "db": mock_db,
                "collection": mock_collection,
            }

    @pytest.fixture
    def mongodb_provider(self, mock_motor_client):
        """Create MongoDB provider with mocked client."""
        from media_uplink.commons.infrastructure.documentdb.mongodb_provider import (
            MongoDBDocumentDB,
        )

        return MongoDBDocumentDB(
            connection_string="mongodb://localhost:27017",
            database_name="media_uplink",
        )

    def test_client_is_timezone_aware(self, mongodb_provider, mock_motor_client):
        mock_motor_client["client_class"].assert_called_once_with(
            "mongodb://localhost:27017", tz_aware=True
        )

    # =========================================================================
    # Insert
    # =========================================================================

    async def test_insert_uses_id_as_mongodb_id(
        self, mongodb_provider, mock_motor_client
    ):
        collection = mock_motor_client["collection"]
        collection.insert_one = AsyncMock(return_value=MagicMock(inserted_id="job-1"))
        document = {"id": "job-1", "state": "pending"}

        result = await mongodb_provider.insert("jobs", document)

        inserted = collection.insert_one.call_args[0][0]
        assert inserted == {"_id": "job-1", "state": "pending"}
        assert document == {"id": "job-1", "state": "pending"}
        assert result == "job-1"

    # =========================================================================
    # Lookups
    # =========================================================================

    async def test_find_by_id_with_string_id(self, mongodb_provider, mock_motor_client):
        collection = mock_motor_client["collection"]
        collection.find_one = AsyncMock(return_value={"_id": "rec-1", "s3_key": None})

        result = await mongodb_provider.find_by_id("reels", "rec-1")

        collection.find_one.assert_called_with({"_id": "rec-1"})
        assert result == {"id": "rec-1", "s3_key": None}

    async def test_find_by_id_falls_back_to_objectid(
        self, mongodb_provider, mock_motor_client
    ):
        collection = mock_motor_client["collection"]
        object_id = ObjectId()
        collection.find_one = AsyncMock(
            side_effect=[None, {"_id": object_id, "content_status": "pending"}]
        )

        result = await mongodb_provider.find_by_id("content", str(object_id))

        assert result == {"id": str(object_id), "content_status": "pending"}
        assert collection.find_one.call_args_list[1][0][0] == {"_id": object_id}

    async def test_find_by_id_not_found(self, mongodb_provider, mock_motor_client):
        collection = mock_motor_client["collection"]
        collection.find_one = AsyncMock(return_value=None)

        assert await mongodb_provider.find_by_id("content", "nope") is None
        assert collection.find_one.await_count == 1

    async def test_find_returns_id_field(self, mongodb_provider, mock_motor_client):
        collection = mock_motor_client["collection"]

        async def mock_cursor():
            yield {"_id": "job-1", "state": "failed"}
            yield {"_id": "job-2", "state": "failed"}

        cursor_mock = MagicMock()
        cursor_mock.sort = MagicMock(return_value=cursor_mock)
        cursor_mock.skip = MagicMock(return_value=cursor_mock)
        cursor_mock.limit = MagicMock(return_value=cursor_mock)
        cursor_mock.__aiter__ = lambda self: mock_cursor()
        collection.find = MagicMock(return_value=cursor_mock)

        results = await mongodb_provider.find(
            "jobs", {"state": "failed"}, limit=10, sort=[("created_at", 1)]
        )

        assert [doc["id"] for doc in results] == ["job-1", "job-2"]
        cursor_mock.sort.assert_called_once_with([("created_at", 1)])
        cursor_mock.limit.assert_called_once_with(10)

    # =========================================================================
    # Atomic claim
    # =========================================================================

    async def test_find_one_and_update(self, mongodb_provider, mock_motor_client):
        collection = mock_motor_client["collection"]
        collection.find_one_and_update = AsyncMock(
            return_value={"_id": "job-1", "state": "active"}
        )
        filters = {"state": "pending"}
        sort = [("priority", 1), ("run_at", 1)]

        result = await mongodb_provider.find_one_and_update(
            "jobs", filters, {"state": "active"}, sort=sort
        )

        collection.find_one_and_update.assert_awaited_once_with(
            filters,
            {"$set": {"state": "active"}},
            sort=sort,
            return_document=ReturnDocument.AFTER,
        )
        assert result == {"id": "job-1", "state": "active"}

    async def test_find_one_and_update_no_match(
        self, mongodb_provider, mock_motor_client
    ):
        collection = mock_motor_client["collection"]
        collection.find_one_and_update = AsyncMock(return_value=None)

        assert (
            await mongodb_provider.find_one_and_update("jobs", {}, {"state": "x"})
            is None
        )

    # =========================================================================
    # Updates
    # =========================================================================

    async def test_update_strips_id(self, mongodb_provider, mock_motor_client):
        collection = mock_motor_client["collection"]
        collection.update_one = AsyncMock(
            return_value=MagicMock(matched_count=1, modified_count=1)
        )

        result = await mongodb_provider.update(
            "content", "rec-1", {"id": "rec-1", "content_status": "published"}
        )

        filters, update_doc = collection.update_one.call_args[0]
        assert filters == {"_id": "rec-1"}
        assert update_doc == {"$set": {"content_status": "published"}}
        assert result is True

    async def test_update_falls_back_to_objectid(
        self, mongodb_provider, mock_motor_client
    ):
        collection = mock_motor_client["collection"]
        object_id = ObjectId()
        collection.update_one = AsyncMock(
            side_effect=[
                MagicMock(matched_count=0, modified_count=0),
                MagicMock(matched_count=1, modified_count=1),
            ]
        )

        result = await mongodb_provider.update(
            "content", str(object_id), {"s3_key": "videos/x.mp4"}
        )

        assert result is True
        assert collection.update_one.call_count == 2

    async def test_update_matched_but_not_modified(
        self, mongodb_provider, mock_motor_client
    ):
        collection = mock_motor_client["collection"]
        collection.update_one = AsyncMock(
            return_value=MagicMock(matched_count=1, modified_count=0)
        )

        assert await mongodb_provider.update("reels", "r1", {"etag": "e"}) is True

    async def test_update_not_found(self, mongodb_provider, mock_motor_client):
        collection = mock_motor_client["collection"]
        collection.update_one = AsyncMock(
            return_value=MagicMock(matched_count=0, modified_count=0)
        )

        assert await mongodb_provider.update("reels", "missing", {"etag": "e"}) is False

    async def test_update_many_returns_matched(
        self, mongodb_provider, mock_motor_client
    ):
        collection = mock_motor_client["collection"]
        collection.update_many = AsyncMock(
            return_value=MagicMock(matched_count=1, modified_count=0)
        )

        matched = await mongodb_provider.update_many(
            "jobs", {"_id": "job-1", "lock_token": "t"}, {"locked_until": None}
        )

        assert matched == 1

    # =========================================================================
    # Deletes and counts
    # =========================================================================

    async def test_delete_falls_back_to_objectid(
        self, mongodb_provider, mock_motor_client
    ):
        collection = mock_motor_client["collection"]
        collection.delete_one = AsyncMock(
            side_effect=[MagicMock(deleted_count=0), MagicMock(deleted_count=1)]
        )

        assert await mongodb_provider.delete("jobs", str(ObjectId())) is True
        assert collection.delete_one.call_count == 2

    async def test_delete_many(self, mongodb_provider, mock_motor_client):
        collection = mock_motor_client["collection"]
        collection.delete_many = AsyncMock(return_value=MagicMock(deleted_count=3))

        assert await mongodb_provider.delete_many("jobs", {"state": "completed"}) == 3

    async def test_count_with_filters(self, mongodb_provider, mock_motor_client):
        collection = mock_motor_client["collection"]
        collection.count_documents = AsyncMock(return_value=4)

        assert await mongodb_provider.count("jobs", {"state": "failed"}) == 4
        collection.count_documents.assert_awaited_once_with({"state": "failed"})

    async def test_create_index(self, mongodb_provider, mock_motor_client):
        collection = mock_motor_client["collection"]
        collection.create_index = AsyncMock(return_value="claim_order")

        name = await mongodb_provider.create_index(
            "jobs", [("state", 1), ("run_at", 1)], name="claim_order"
        )

        assert name == "claim_order"

    # =========================================================================
    # Health
    # =========================================================================

    async def test_health_check(self, mongodb_provider, mock_motor_client):
        mock_motor_client["client"].admin.command = AsyncMock(return_value={"ok": 1})

        status = await mongodb_provider.health_check()

        assert status.healthy is True
        assert status.details == {"database": "media_uplink"}

    async def test_health_check_failure(self, mongodb_provider, mock_motor_client):
        mock_motor_client["client"].admin.command = AsyncMock(
            side_effect=ConnectionError("refused")
        )

        status = await mongodb_provider.health_check()

        assert status.healthy is False
        assert "refused" in status.message
