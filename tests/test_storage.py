"""Tests for the Supabase-backed table store."""

from unittest.mock import MagicMock, Mock, patch

import httpx
import pytest
from postgrest.exceptions import APIError

from ims_mcp.storage import (
    DEFAULT_ORDER_COLUMN,
    ListQuery,
    StorageError,
    SupabaseStore,
    create_store_from_env,
)


VALID_UUID = "11111111-1111-1111-1111-111111111111"


@pytest.fixture
def builder():
    """A chainable request builder mock; every filter returns itself."""
    request = MagicMock()
    for method in ("select", "insert", "update", "delete", "eq", "ilike", "order", "range"):
        getattr(request, method).return_value = request
    request.execute.return_value = Mock(data=[])
    return request


@pytest.fixture
def supabase_store(builder):
    client = MagicMock()
    client.table.return_value = builder
    return SupabaseStore(client)


def _api_error(message):
    return APIError({"message": message, "code": "23505", "hint": None, "details": None})


class TestListQuery:
    """Tests for ListQuery."""

    def test_defaults(self):
        query = ListQuery()
        assert query.filters == {}
        assert query.order_by == DEFAULT_ORDER_COLUMN
        assert query.ascending is False
        assert (query.offset, query.limit) == (0, 50)

    def test_range_end(self):
        assert ListQuery(offset=10, limit=25).range_end == 34


class TestSupabaseStore:
    """Tests for SupabaseStore request building."""

    def test_insert(self, supabase_store, builder):
        builder.execute.return_value = Mock(data=[{"id": VALID_UUID, "name": "Acme"}])
        row = supabase_store.insert("companies", {"name": "Acme"})
        supabase_store.client.table.assert_called_with("companies")
        builder.insert.assert_called_once_with({"name": "Acme"})
        assert row == {"id": VALID_UUID, "name": "Acme"}

    def test_insert_no_row(self, supabase_store):
        with pytest.raises(StorageError) as exc_info:
            supabase_store.insert("companies", {"name": "Acme"})
        assert "returned no row" in str(exc_info.value)

    def test_select_builds_query(self, supabase_store, builder):
        """Test filters, search, ordering and range are all applied."""
        builder.execute.return_value = Mock(data=[{"id": VALID_UUID}])
        query = ListQuery(
            filters={"status": "deployed", "deployed": True},
            search="crm",
            order_by="name",
            ascending=True,
            offset=10,
            limit=25,
        )
        rows = supabase_store.select("mcps", query)

        builder.select.assert_called_once_with("*")
        builder.eq.assert_any_call("status", "deployed")
        builder.eq.assert_any_call("deployed", "true")
        builder.ilike.assert_called_once_with("name", "%crm%")
        builder.order.assert_called_once_with("name", desc=False)
        builder.range.assert_called_once_with(10, 34)
        assert rows == [{"id": VALID_UUID}]

    def test_select_default_order(self, supabase_store, builder):
        supabase_store.select("companies", ListQuery())
        builder.order.assert_called_once_with("created_at", desc=True)
        builder.ilike.assert_not_called()
        builder.eq.assert_not_called()
        builder.range.assert_called_once_with(0, 49)

    def test_select_false_filter(self, supabase_store, builder):
        supabase_store.select("contacts", ListQuery(filters={"has_email": False}))
        builder.eq.assert_called_once_with("has_email", "false")

    def test_update(self, supabase_store, builder):
        builder.execute.return_value = Mock(data=[{"id": VALID_UUID, "notes": "x"}])
        row = supabase_store.update("companies", VALID_UUID, {"notes": "x"})
        builder.update.assert_called_once_with({"notes": "x"})
        builder.eq.assert_called_once_with("id", VALID_UUID)
        assert row == {"id": VALID_UUID, "notes": "x"}

    def test_update_missing_row(self, supabase_store):
        with pytest.raises(StorageError) as exc_info:
            supabase_store.update("companies", VALID_UUID, {"notes": "x"})
        assert VALID_UUID in str(exc_info.value)

    def test_delete(self, supabase_store, builder):
        assert supabase_store.delete("companies", VALID_UUID) is None
        builder.delete.assert_called_once_with()
        builder.eq.assert_called_once_with("id", VALID_UUID)
        builder.execute.assert_called_once()

    def test_api_error_wrapped(self, supabase_store, builder):
        """Test PostgREST errors become StorageError with the server message."""
        builder.execute.side_effect = _api_error("duplicate key value")
        with pytest.raises(StorageError) as exc_info:
            supabase_store.insert("companies", {"name": "Acme"})
        assert str(exc_info.value) == "duplicate key value"

    def test_transport_error_wrapped(self, supabase_store, builder):
        builder.execute.side_effect = httpx.ConnectError("connection refused")
        with pytest.raises(StorageError) as exc_info:
            supabase_store.delete("companies", VALID_UUID)
        assert "connection refused" in str(exc_info.value)


class TestCreateStoreFromEnv:
    """Tests for create_store_from_env."""

    def test_missing_url(self, monkeypatch):
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "key")
        with pytest.raises(StorageError) as exc_info:
            create_store_from_env()
        assert "SUPABASE_URL" in str(exc_info.value)

    def test_missing_key(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
        monkeypatch.delenv("SUPABASE_SERVICE_ROLE_KEY", raising=False)
        with pytest.raises(StorageError):
            create_store_from_env()

    def test_connects(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
        monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service-key")
        with patch("ims_mcp.storage.create_client") as mock_create:
            store = create_store_from_env()
        args, kwargs = mock_create.call_args
        assert args == ("https://example.supabase.co", "service-key")
        assert kwargs["options"].persist_session is False
        assert kwargs["options"].auto_refresh_token is False
        assert store.client is mock_create.return_value
