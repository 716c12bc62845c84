#!/usr/bin/env python3
"""
IMS MCP Server

A Model Context Protocol (MCP) server that exposes CRUD operations over the
IMS tables (sales pipeline, assessment, delivery, and measurement) stored in
Supabase.

Tools are generated from the table schemas in ``ims_mcp.schema``. Each table
provides four tools:
1. create_<singular> - Insert a record (required fields enforced)
2. list_<plural> - List records with filters, search, ordering and pagination
3. update_<singular> - Partially update a record by ID
4. delete_<singular> - Delete a record by ID
"""

import os
import sys
import logging
import asyncio
from pathlib import Path
from typing import Any, Dict, Optional

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

try:
    from dotenv import load_dotenv
    from mcp.server import Server
    from mcp.types import CallToolResult, Tool
except ImportError as e:
    print(f"Error: Required package not found: {e}", file=sys.stderr)
    print("Please run: pip install -e .", file=sys.stderr)
    sys.exit(1)

from ims_mcp.dispatcher import Dispatcher
from ims_mcp.schema import TABLES
from ims_mcp.storage import StorageError, create_store_from_env
from ims_mcp.tools import generate_tools


# Load environment variables
load_dotenv()

# Configure logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stderr)],
)
logger = logging.getLogger(__name__)

SERVER_NAME = "promptai-ims"

# Initialize MCP server
app = Server(SERVER_NAME)

# Tool catalogue, built once from the table schemas
catalog = generate_tools(TABLES)

# Global storage instance
try:
    store = create_store_from_env()
except StorageError as e:
    logger.error(f"Failed to initialize storage: {e}")
    store = None

dispatcher = Dispatcher(catalog, store)


@app.list_tools()
async def list_tools() -> list[Tool]:
    """List all generated MCP tools."""
    return catalog.tools


@app.call_tool(validate_input=False)
async def call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> CallToolResult:
    """Handle tool calls."""
    return dispatcher.dispatch(name, arguments)


async def _run():
    """Async server startup logic."""
    logger.info("Starting IMS MCP Server...")
    logger.info(f"Tables: {len(TABLES)}, tools: {len(catalog.tools)}")
    logger.info(f"Storage: {'configured' if store is not None else 'NOT configured'}")

    from mcp.server.stdio import stdio_server

    async with stdio_server() as (read_stream, write_stream):
        await app.run(read_stream, write_stream, app.create_initialization_options())


def main():
    """Entry point for the MCP server (console script)."""
    asyncio.run(_run())


if __name__ == "__main__":
    main()
