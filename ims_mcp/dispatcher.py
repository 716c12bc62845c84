"""
Tool call dispatch for the IMS MCP Server.

Routes a generated tool name to its table and operation, validates and
sanitises the arguments, issues at most one storage call, and maps every
outcome (success, validation failure, storage failure, unexpected error)
to a single-text-content CallToolResult.
"""

import json
import logging
from typing import Any, Dict, Optional, Tuple

from mcp.types import CallToolResult, TextContent

from ims_mcp.schema import TableSchema
from ims_mcp.storage import DEFAULT_ORDER_COLUMN, ListQuery, StorageError, TableStore
from ims_mcp.tools import Operation, ToolCatalog
from ims_mcp.validators import is_valid_uuid, sanitize_input, validate_value


logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50
MAX_LIMIT = 200

# Keys handled by the list operation itself, never used as filters
LIST_CONTROL_KEYS = frozenset({"limit", "offset", "order_by", "search"})


def _text(text: str, is_error: bool = False) -> CallToolResult:
    return CallToolResult(
        content=[TextContent(type="text", text=text)],
        isError=is_error,
    )


def _error(text: str) -> CallToolResult:
    return _text(text, is_error=True)


def _json(payload: Any) -> CallToolResult:
    return _text(json.dumps(payload, indent=2, default=str))


def _parse_int(value: Any, default: int) -> int:
    """Parse a numeric argument, falling back to default when absent, zero or unparseable."""
    if isinstance(value, bool) or value is None:
        return default
    try:
        parsed = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default
    return parsed or default


def parse_pagination(arguments: Dict[str, Any]) -> Tuple[int, int]:
    """
    Resolve limit and offset from list arguments.

    Returns:
        Tuple of (limit clamped to [1, MAX_LIMIT], offset clamped to >= 0)
    """
    limit = min(max(_parse_int(arguments.get("limit"), DEFAULT_LIMIT), 1), MAX_LIMIT)
    offset = max(_parse_int(arguments.get("offset"), 0), 0)
    return limit, offset


class Dispatcher:
    """Executes generated tools against a TableStore."""

    def __init__(self, catalog: ToolCatalog, store: Optional[TableStore]):
        self.catalog = catalog
        self.store = store

    def _require_store(self) -> TableStore:
        if self.store is None:
            raise RuntimeError(
                "storage is not configured (set SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY)"
            )
        return self.store

    def dispatch(self, name: str, arguments: Optional[Dict[str, Any]]) -> CallToolResult:
        """
        Handle one tool call. Never raises.

        Args:
            name: Generated tool name, e.g. ``create_contact``
            arguments: Raw tool arguments (may be None)

        Returns:
            CallToolResult with a single text content, isError set on failure
        """
        args = arguments or {}
        logger.debug(f"Dispatching tool '{name}'")

        mapping = self.catalog.lookup(name)
        if mapping is None:
            logger.info(f"Rejected unknown tool: {name}")
            return _error(f"Unknown tool: {name}")

        try:
            if mapping.operation == Operation.CREATE:
                return self._create(mapping.table, args)
            elif mapping.operation == Operation.LIST:
                return self._list(mapping.table, args)
            elif mapping.operation == Operation.UPDATE:
                return self._update(mapping.table, args)
            elif mapping.operation == Operation.DELETE:
                return self._delete(mapping.table, args)
            else:
                return _error(f"Unknown operation: {mapping.operation}")

        except StorageError as e:
            logger.warning(f"Database error in '{name}': {e}")
            return _error(f"Database error: {e}")

        except Exception as e:
            logger.exception(f"Error handling tool '{name}': {e}")
            return _error(f"Server error: {e}")

    def _create(self, table: TableSchema, args: Dict[str, Any]) -> CallToolResult:
        data, error = sanitize_input(args, table, require_required=True)
        if error:
            logger.info(f"Validation error on create {table.singular}: {error}")
            return _error(f"Validation error: {error}")

        row = self._require_store().insert(table.table_name, data)
        return _json(row)

    def _list(self, table: TableSchema, args: Dict[str, Any]) -> CallToolResult:
        limit, offset = parse_pagination(args)
        query = ListQuery(offset=offset, limit=limit)

        # Filters only on declared fields
        field_map = table.field_map
        for key, value in args.items():
            if key in LIST_CONTROL_KEYS or value is None:
                continue
            field = field_map.get(key)
            if field is None:
                continue
            error = validate_value(value, field)
            if error:
                logger.info(f"Filter error on list {table.plural}: {error}")
                return _error(f"Filter error: {error}")
            query.filters[key] = value

        search = args.get("search")
        if isinstance(search, str) and search and table.has_name_field:
            query.search = search

        order_by = args.get("order_by")
        if isinstance(order_by, str) and order_by:
            if order_by.startswith("-"):
                query.order_by, query.ascending = order_by[1:], False
            else:
                query.order_by, query.ascending = order_by, True
        else:
            query.order_by, query.ascending = DEFAULT_ORDER_COLUMN, False

        rows = self._require_store().select(table.table_name, query)
        return _json({"count": len(rows), "offset": offset, "limit": limit, "data": rows})

    def _update(self, table: TableSchema, args: Dict[str, Any]) -> CallToolResult:
        row_id = args.get("id")
        if not is_valid_uuid(row_id):
            return _error("Validation error: id must be a valid UUID")

        data, error = sanitize_input(args, table, require_required=False)
        if error:
            logger.info(f"Validation error on update {table.singular}: {error}")
            return _error(f"Validation error: {error}")

        if not data:
            return _error("No fields to update")

        row = self._require_store().update(table.table_name, row_id, data)
        return _json(row)

    def _delete(self, table: TableSchema, args: Dict[str, Any]) -> CallToolResult:
        row_id = args.get("id")
        if not is_valid_uuid(row_id):
            return _error("Validation error: id must be a valid UUID")

        self._require_store().delete(table.table_name, row_id)
        return _text(f"Deleted {table.singular} {row_id}")
