"""Tests for the MCP server handlers."""

import asyncio

import pytest
from mcp import types

from ims_mcp import server
from ims_mcp.dispatcher import Dispatcher
from ims_mcp.schema import TABLES


VALID_UUID = "11111111-1111-1111-1111-111111111111"


@pytest.fixture
def wired_store(monkeypatch, store):
    """Route the server's call_tool through a recording store."""
    monkeypatch.setattr(server, "dispatcher", Dispatcher(server.catalog, store))
    return store


class TestListTools:
    """Tests for the list_tools handler."""

    def test_lists_generated_tools(self):
        tools = asyncio.run(server.list_tools())
        assert len(tools) == 4 * len(TABLES)
        names = {t.name for t in tools}
        assert "create_company" in names
        assert "list_ai_usage_records" in names
        assert "delete_support_ticket" in names

    def test_tool_schemas_are_objects(self):
        for tool in asyncio.run(server.list_tools()):
            assert tool.inputSchema["type"] == "object"
            assert tool.description


class TestCallTool:
    """Tests for the call_tool handler."""

    def test_unknown_tool(self, wired_store):
        result = asyncio.run(server.call_tool("create_invoice", {}))
        assert result.isError is True
        assert result.content[0].text == "Unknown tool: create_invoice"
        assert wired_store.calls == []

    def test_create_round_trip(self, wired_store):
        result = asyncio.run(
            server.call_tool("create_capacity_record", {"team_member": "Sam", "total_hours_per_week": 38})
        )
        assert not result.isError
        assert wired_store.calls == [
            ("insert", "capacity", {"team_member": "Sam", "total_hours_per_week": 38})
        ]

    def test_none_arguments(self, wired_store):
        result = asyncio.run(server.call_tool("list_mcps", None))
        assert not result.isError
        assert wired_store.calls[0][:2] == ("select", "mcps")

    def test_validation_error_shape(self, wired_store):
        result = asyncio.run(server.call_tool("delete_mcp", {"id": "abc"}))
        assert result.isError is True
        assert len(result.content) == 1
        assert result.content[0].text == "Validation error: id must be a valid UUID"


class TestCallToolRequestHandler:
    """Tests for call_tool as registered with the MCP request handlers."""

    def _send(self, name, arguments):
        handler = server.app.request_handlers[types.CallToolRequest]
        request = types.CallToolRequest(
            method="tools/call",
            params=types.CallToolRequestParams(name=name, arguments=arguments),
        )
        return asyncio.run(handler(request)).root

    def test_validation_message_not_replaced(self, wired_store):
        """Test argument errors carry the server's own message, not a schema error."""
        result = self._send("create_contact", {"company_id": VALID_UUID})
        assert result.isError is True
        assert len(result.content) == 1
        assert result.content[0].text == "Validation error: Missing required field: name"
        assert wired_store.calls == []

    def test_wrong_type_reaches_dispatcher(self, wired_store):
        result = self._send("list_companies", {"limit": "ten"})
        assert not result.isError
        assert wired_store.calls[0][:2] == ("select", "companies")

    def test_dispatch_result_passed_through(self, monkeypatch):
        expected = types.CallToolResult(
            content=[types.TextContent(type="text", text="Deleted company x")],
            isError=False,
        )
        dispatched = []

        class FixedDispatcher:
            def dispatch(self, name, arguments):
                dispatched.append((name, arguments))
                return expected

        monkeypatch.setattr(server, "dispatcher", FixedDispatcher())
        result = self._send("delete_company", {"id": VALID_UUID})
        assert result == expected
        assert result.structuredContent is None
        assert dispatched == [("delete_company", {"id": VALID_UUID})]
