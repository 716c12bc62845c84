"""
Table storage for the IMS MCP Server.

The dispatcher talks to storage through ``TableStore``, a small tabular
interface (insert, filtered/paginated select, update by id, delete by id).
``SupabaseStore`` implements it over the hosted Postgres REST API. Row-level
authorization is the backing store's concern, not this module's.
"""

import os
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx
from postgrest.exceptions import APIError
from supabase import Client, ClientOptions, create_client


logger = logging.getLogger(__name__)

DEFAULT_ORDER_COLUMN = "created_at"


class StorageError(Exception):
    """Raised when the backing store rejects or fails a request."""

    pass


@dataclass
class ListQuery:
    """A filtered, ordered, paginated read of one table."""

    filters: Dict[str, Any] = field(default_factory=dict)
    search: Optional[str] = None
    order_by: str = DEFAULT_ORDER_COLUMN
    ascending: bool = False
    offset: int = 0
    limit: int = 50

    @property
    def range_end(self) -> int:
        """Inclusive index of the last row in the window."""
        return self.offset + self.limit - 1


class TableStore(ABC):
    """Generic tabular storage used by the dispatcher."""

    @abstractmethod
    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        """Insert one row and return it as stored."""

    @abstractmethod
    def select(self, table: str, query: ListQuery) -> List[Dict[str, Any]]:
        """Return the rows matching a list query."""

    @abstractmethod
    def update(self, table: str, row_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        """Apply a partial update to the row with this id and return it."""

    @abstractmethod
    def delete(self, table: str, row_id: str) -> None:
        """Delete the row with this id."""


def _filter_value(value: Any) -> Any:
    # PostgREST expects lowercase boolean literals
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


class SupabaseStore(TableStore):
    """TableStore backed by a Supabase project."""

    def __init__(self, client: Client):
        self.client = client

    @classmethod
    def connect(cls, url: str, key: str) -> "SupabaseStore":
        """
        Create a store for a Supabase project.

        Args:
            url: Project URL
            key: Service role key

        Returns:
            SupabaseStore using a session-less client
        """
        client = create_client(
            url,
            key,
            options=ClientOptions(auto_refresh_token=False, persist_session=False),
        )
        return cls(client)

    def _execute(self, request) -> List[Dict[str, Any]]:
        try:
            response = request.execute()
        except APIError as e:
            raise StorageError(e.message or str(e)) from e
        except httpx.HTTPError as e:
            raise StorageError(f"Request failed: {e}") from e
        return response.data or []

    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        rows = self._execute(self.client.table(table).insert(row))
        if not rows:
            raise StorageError(f"Insert into {table} returned no row")
        return rows[0]

    def select(self, table: str, query: ListQuery) -> List[Dict[str, Any]]:
        request = self.client.table(table).select("*")
        for column, value in query.filters.items():
            request = request.eq(column, _filter_value(value))
        if query.search:
            request = request.ilike("name", f"%{query.search}%")
        request = request.order(query.order_by, desc=not query.ascending)
        request = request.range(query.offset, query.range_end)
        return self._execute(request)

    def update(self, table: str, row_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        rows = self._execute(self.client.table(table).update(patch).eq("id", row_id))
        if not rows:
            raise StorageError(f"No row in {table} with id {row_id}")
        return rows[0]

    def delete(self, table: str, row_id: str) -> None:
        self._execute(self.client.table(table).delete().eq("id", row_id))


def create_store_from_env() -> SupabaseStore:
    """
    Build a SupabaseStore from SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY.

    Raises:
        StorageError: If either variable is missing
    """
    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
    if not url or not key:
        raise StorageError(
            "Missing SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY environment variables. "
            "Copy .env.example to .env and fill in your credentials."
        )
    logger.info(f"Connecting to Supabase project at: {url}")
    return SupabaseStore.connect(url, key)
