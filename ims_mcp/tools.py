"""
MCP tool generation from the table schemas.

Every registered table yields four tools (create, list, update and delete),
each with a JSON schema derived from the table's field definitions. The
schema fragments here must accept exactly what ``validate_value`` accepts.
"""

import copy
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from mcp.types import Tool

from ims_mcp.schema import Field, FieldType, TableSchema


logger = logging.getLogger(__name__)


class Operation(str, Enum):
    """Operations generated for every table."""

    CREATE = "create"
    LIST = "list"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class ToolMapping:
    """Which table and operation a generated tool name routes to."""

    table: TableSchema
    operation: Operation


@dataclass
class ToolCatalog:
    """The advertised tools plus the dispatch table built alongside them."""

    tools: List[Tool] = field(default_factory=list)
    mappings: Dict[str, ToolMapping] = field(default_factory=dict)

    def add(self, tool: Tool, table: TableSchema, operation: Operation) -> None:
        if tool.name in self.mappings:
            raise ValueError(f"Duplicate tool name generated: {tool.name}")
        self.tools.append(tool)
        self.mappings[tool.name] = ToolMapping(table=table, operation=operation)

    def lookup(self, name: str) -> Optional[ToolMapping]:
        return self.mappings.get(name)


_TYPE_FRAGMENTS: Dict[FieldType, Dict[str, Any]] = {
    FieldType.STRING: {"type": "string"},
    FieldType.NUMBER: {"type": "number"},
    FieldType.INTEGER: {"type": "integer"},
    FieldType.BOOLEAN: {"type": "boolean"},
    FieldType.UUID: {"type": "string", "format": "uuid"},
    FieldType.DATE: {"type": "string", "format": "date"},
    FieldType.TIMESTAMP: {"type": "string", "format": "date-time"},
    FieldType.STRING_ARRAY: {"type": "array", "items": {"type": "string"}},
    FieldType.JSON: {},  # accepts any type
}


def field_to_json_schema(f: Field) -> Dict[str, Any]:
    """Translate a field definition into a JSON schema property."""
    prop: Dict[str, Any] = {"description": f.description}
    prop.update(copy.deepcopy(_TYPE_FRAGMENTS[f.type]))
    if f.type == FieldType.DATE:
        prop["description"] = f"{f.description} (YYYY-MM-DD)"
    if f.enum is not None:
        prop["enum"] = list(f.enum)
    return prop


def _id_property(table: TableSchema, verb: str) -> Dict[str, Any]:
    return {
        "type": "string",
        "format": "uuid",
        "description": f"ID of the {table.singular} to {verb}",
    }


def _input_schema(properties: Dict[str, Any], required: List[str]) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


def build_create_tool(table: TableSchema) -> Tool:
    properties = {f.name: field_to_json_schema(f) for f in table.fields}
    required = [f.name for f in table.required_fields]
    return Tool(
        name=f"create_{table.singular}",
        description=f"Create a new {table.singular} - {table.description}",
        inputSchema=_input_schema(properties, required),
    )


def build_list_tool(table: TableSchema) -> Tool:
    """
    Build the list tool for a table.

    Only exact-match filterable fields (uuid, boolean, enum) become filter
    parameters; ``search`` is offered only when the table has a ``name`` field.
    """
    properties: Dict[str, Any] = {
        "limit": {
            "type": "integer",
            "description": "Max records to return (default 50, max 200)",
        },
        "offset": {
            "type": "integer",
            "description": "Number of records to skip (for pagination)",
        },
        "order_by": {
            "type": "string",
            "description": "Column to sort by (prefix with - for descending, e.g. '-created_at')",
        },
    }
    for f in table.filterable_fields:
        properties[f.name] = field_to_json_schema(f)

    if table.has_name_field:
        properties["search"] = {
            "type": "string",
            "description": "Case-insensitive search on name field",
        }

    return Tool(
        name=f"list_{table.plural}",
        description=f"List {table.plural} with optional filters - {table.description}",
        inputSchema=_input_schema(properties, []),
    )


def build_update_tool(table: TableSchema) -> Tool:
    properties: Dict[str, Any] = {"id": _id_property(table, "update")}
    for f in table.fields:
        properties[f.name] = field_to_json_schema(f)
    return Tool(
        name=f"update_{table.singular}",
        description=f"Update an existing {table.singular} by ID",
        inputSchema=_input_schema(properties, ["id"]),
    )


def build_delete_tool(table: TableSchema) -> Tool:
    return Tool(
        name=f"delete_{table.singular}",
        description=f"Delete a {table.singular} by ID",
        inputSchema=_input_schema({"id": _id_property(table, "delete")}, ["id"]),
    )


_BUILDERS = (
    (Operation.CREATE, build_create_tool),
    (Operation.LIST, build_list_tool),
    (Operation.UPDATE, build_update_tool),
    (Operation.DELETE, build_delete_tool),
)


def generate_tools(tables: Iterable[TableSchema]) -> ToolCatalog:
    """
    Generate the tool catalogue for a set of tables.

    Args:
        tables: Table schemas, in the order tools should be advertised

    Returns:
        ToolCatalog with four tools per table

    Raises:
        ValueError: If two tables produce the same tool name
    """
    catalog = ToolCatalog()
    table_count = 0
    for table in tables:
        for operation, builder in _BUILDERS:
            catalog.add(builder(table), table, operation)
        table_count += 1

    logger.debug(f"Generated {len(catalog.tools)} tools for {table_count} tables")
    return catalog
