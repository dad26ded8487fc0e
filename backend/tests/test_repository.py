"""
simple-crud — Path Repository Unit Tests
=========================================

What:  Tests for PathRepository branching (insert vs replace vs update).
How:   Uses the mock_store fixture; no database.

What we test:
    ✅ get → document or 404 envelope
    ✅ PUT-style writes insert when absent and replace when present
    ✅ POST-style writes insert when absent and pass the body through as an update
    ✅ Rejected updates become 400 envelopes; other store errors propagate
    ✅ delete reports the deleted count
"""

import pytest

from simplecrud.exceptions import StoreError, WriteError
from simplecrud.schemas.envelope import Envelope
from simplecrud.services.document_store import UpdateResult
from simplecrud.services.repository import PathRepository, with_path


class TestWithPath:
    def test_injects_path(self):
        assert with_path("/a", {"x": 1}) == {"x": 1, "path": "/a"}

    def test_overwrites_client_path(self):
        assert with_path("/a", {"path": "/b"}) == {"path": "/a"}

    def test_none_body_is_empty_document(self):
        assert with_path("/a", None) == {"path": "/a"}

    def test_body_not_mutated(self):
        body = {"x": 1}
        with_path("/a", body)
        assert body == {"x": 1}


class TestGet:
    @pytest.mark.asyncio
    async def test_get_found_returns_document(self, mock_store):
        mock_store.find_one.return_value = {"path": "/a", "x": 1}
        result = await PathRepository(mock_store).get("/a")
        assert result == {"path": "/a", "x": 1}
        mock_store.find_one.assert_awaited_once_with("/a")

    @pytest.mark.asyncio
    async def test_get_missing_returns_404_envelope(self, mock_store):
        result = await PathRepository(mock_store).get("/a")
        assert result == Envelope(message="No item found", status=404)


class TestCreateOrOverwrite:
    @pytest.mark.asyncio
    async def test_inserts_when_absent(self, mock_store):
        result = await PathRepository(mock_store).create_or_overwrite("/a", {"x": 1})

        assert result == Envelope(message="Ok", status=200)
        mock_store.insert_one.assert_awaited_once_with("/a", {"x": 1, "path": "/a"})
        mock_store.replace_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_replaces_when_present(self, mock_store):
        mock_store.find_one.return_value = {"path": "/a", "old": True}

        result = await PathRepository(mock_store).create_or_overwrite("/a", {"x": 1})

        assert result.status == 200
        mock_store.replace_one.assert_awaited_once_with("/a", {"x": 1, "path": "/a"})
        mock_store.insert_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_store_error_propagates(self, mock_store):
        mock_store.find_one.side_effect = StoreError(operation="find_one")
        with pytest.raises(StoreError):
            await PathRepository(mock_store).create_or_overwrite("/a", {"x": 1})


class TestCreateOrMerge:
    @pytest.mark.asyncio
    async def test_inserts_when_absent(self, mock_store):
        result = await PathRepository(mock_store).create_or_merge("/a", {"x": 1})

        assert result == Envelope(message="Ok", status=200)
        mock_store.insert_one.assert_awaited_once_with("/a", {"x": 1, "path": "/a"})
        mock_store.update_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_updates_with_body_unchanged_when_present(self, mock_store):
        mock_store.find_one.return_value = {"path": "/a", "x": 1}
        mock_store.update_one.return_value = UpdateResult(matched_count=1, modified_count=1)
        update = {"$set": {"x": 2}}

        result = await PathRepository(mock_store).create_or_merge("/a", update)

        assert result == Envelope(message="Ok", status=200)
        mock_store.update_one.assert_awaited_once_with("/a", {"$set": {"x": 2}})
        mock_store.insert_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rejected_update_becomes_400(self, mock_store):
        mock_store.find_one.return_value = {"path": "/a", "x": 1}
        mock_store.update_one.side_effect = WriteError(
            "update document must contain key beginning with '$'"
        )

        result = await PathRepository(mock_store).create_or_merge("/a", {"x": 2})

        assert result == Envelope(
            message="update document must contain key beginning with '$'", status=400
        )

    @pytest.mark.asyncio
    async def test_missing_body_on_existing_path_sends_empty_update(self, mock_store):
        mock_store.find_one.return_value = {"path": "/a"}
        await PathRepository(mock_store).create_or_merge("/a", None)
        mock_store.update_one.assert_awaited_once_with("/a", {})

    @pytest.mark.asyncio
    async def test_infrastructure_error_during_update_propagates(self, mock_store):
        mock_store.find_one.return_value = {"path": "/a"}
        mock_store.update_one.side_effect = StoreError(operation="update_one")
        with pytest.raises(StoreError):
            await PathRepository(mock_store).create_or_merge("/a", {"$set": {"x": 1}})


class TestDelete:
    @pytest.mark.asyncio
    async def test_reports_deleted_count(self, mock_store):
        mock_store.delete_one.return_value = 1
        result = await PathRepository(mock_store).delete("/a")
        assert result == Envelope(message="Deleted count: 1", status=200)

    @pytest.mark.asyncio
    async def test_nothing_to_delete_is_not_an_error(self, mock_store):
        result = await PathRepository(mock_store).delete("/a")
        assert result == Envelope(message="Deleted count: 0", status=200)
