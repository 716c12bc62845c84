"""
Input validation for the IMS MCP Server.

This module checks raw tool arguments against the table schemas and strips
anything that is not a declared column, so that only well-formed values for
known fields ever reach the database.
"""

import re
from typing import Any, Dict, Optional, Tuple

from ims_mcp.schema import RESERVED_KEYS, Field, FieldType, TableSchema


UUID_RE = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.IGNORECASE
)
DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
TIMESTAMP_RE = re.compile(
    r"[0-9]{4}-[0-9]{2}-[0-9]{2}"
    r"(T[0-9]{2}:[0-9]{2}(:[0-9]{2})?(\.[0-9]+)?(Z|[+-][0-9]{2}:[0-9]{2})?)?"
)


def is_valid_uuid(value: Any) -> bool:
    """Return True if value is a canonical 8-4-4-4-12 hex UUID string."""
    return isinstance(value, str) and UUID_RE.fullmatch(value) is not None


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a JSON number
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_integer(value: Any) -> bool:
    if not _is_number(value):
        return False
    return isinstance(value, int) or value.is_integer()


def validate_value(value: Any, field: Field) -> Optional[str]:
    """
    Check a single value against a field definition.

    Dates and timestamps are checked for shape only, so a calendar-invalid
    date such as 2024-02-30 is accepted.

    Args:
        value: Raw value taken from the tool arguments
        field: Field definition to validate against

    Returns:
        None if the value is acceptable, otherwise a message naming the field
    """
    if value is None:
        return None

    if field.type == FieldType.UUID:
        if not is_valid_uuid(value):
            return f"{field.name} must be a valid UUID"

    elif field.type == FieldType.STRING:
        if not isinstance(value, str):
            return f"{field.name} must be a string"
        if field.enum is not None and value not in field.enum:
            return f"{field.name} must be one of: {', '.join(field.enum)}"

    elif field.type == FieldType.NUMBER:
        if not _is_number(value):
            return f"{field.name} must be a number"

    elif field.type == FieldType.INTEGER:
        if not _is_integer(value):
            return f"{field.name} must be an integer"

    elif field.type == FieldType.BOOLEAN:
        if not isinstance(value, bool):
            return f"{field.name} must be a boolean"

    elif field.type == FieldType.DATE:
        if not isinstance(value, str) or DATE_RE.fullmatch(value) is None:
            return f"{field.name} must be a date in YYYY-MM-DD format"

    elif field.type == FieldType.TIMESTAMP:
        if not isinstance(value, str) or TIMESTAMP_RE.fullmatch(value) is None:
            return f"{field.name} must be a valid timestamp"

    elif field.type == FieldType.STRING_ARRAY:
        if not isinstance(value, (list, tuple)) or not all(
            isinstance(item, str) for item in value
        ):
            return f"{field.name} must be an array of strings"

    elif field.type == FieldType.JSON:
        if not isinstance(value, (dict, list)):
            return f"{field.name} must be a JSON object or array"

    return None


def sanitize_input(
    arguments: Dict[str, Any],
    table: TableSchema,
    require_required: bool,
) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
    """
    Validate and clean tool arguments for a table.

    Only declared fields are copied through. Reserved keys and unknown keys
    are dropped silently, null values are treated as not provided, and the
    first invalid value aborts the whole call.

    Args:
        arguments: Raw tool arguments
        table: Target table schema
        require_required: Enforce the table's required fields (create only)

    Returns:
        Tuple of (cleaned data, None) on success or (None, error message)
    """
    if require_required:
        for field in table.required_fields:
            if arguments.get(field.name) is None:
                return None, f"Missing required field: {field.name}"

    field_map = table.field_map
    data: Dict[str, Any] = {}

    for key, value in arguments.items():
        if key in RESERVED_KEYS:
            continue
        field = field_map.get(key)
        if field is None:
            continue
        if value is None:
            continue

        error = validate_value(value, field)
        if error:
            return None, error
        data[key] = value

    return data, None
