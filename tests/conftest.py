"""Shared fixtures: an in-memory TableStore that records every call."""

from typing import Any, Dict, List, Optional

import pytest

from ims_mcp.dispatcher import Dispatcher
from ims_mcp.schema import TABLES
from ims_mcp.storage import ListQuery, TableStore
from ims_mcp.tools import generate_tools


NEW_ID = "99999999-9999-4999-8999-999999999999"


class RecordingStore(TableStore):
    """TableStore fake that records calls and returns canned rows."""

    def __init__(self):
        self.calls: List[tuple] = []
        self.rows: List[Dict[str, Any]] = []
        self.error: Optional[Exception] = None

    def _record(self, *call):
        self.calls.append(call)
        if self.error is not None:
            raise self.error

    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        self._record("insert", table, row)
        return {"id": NEW_ID, **row}

    def select(self, table: str, query: ListQuery) -> List[Dict[str, Any]]:
        self._record("select", table, query)
        return list(self.rows)

    def update(self, table: str, row_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        self._record("update", table, row_id, patch)
        return {"id": row_id, **patch}

    def delete(self, table: str, row_id: str) -> None:
        self._record("delete", table, row_id)


@pytest.fixture(scope="session")
def catalog():
    """Tool catalogue generated from the real registry."""
    return generate_tools(TABLES)


@pytest.fixture
def store():
    return RecordingStore()


@pytest.fixture
def dispatcher(catalog, store):
    return Dispatcher(catalog, store)
