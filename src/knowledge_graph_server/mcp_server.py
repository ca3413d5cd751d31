"""MCP stdio transport.

Exposes the nine knowledge graph tools over the Model Context Protocol.
stdout carries the protocol stream, so nothing else may write to it; logs
go to stderr (see :func:`knowledge_graph_server.main.configure_logging`).
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import CallToolResult, TextContent, Tool

from knowledge_graph_server.config import Settings, get_settings
from knowledge_graph_server.knowledge.manager import KnowledgeGraphManager
from knowledge_graph_server.storage.json_file import JsonFileStorage
from knowledge_graph_server.tools.dispatcher import ToolDispatcher

logger = structlog.get_logger(__name__)

SERVER_NAME = "knowledge-graph-server"


def list_tool_specs(dispatcher: ToolDispatcher) -> list[Tool]:
    return [
        Tool(
            name=definition.name,
            description=definition.description,
            inputSchema=definition.input_schema(),
        )
        for definition in dispatcher.list_tools()
    ]


async def handle_tool_call(
    dispatcher: ToolDispatcher,
    name: str,
    arguments: dict[str, Any] | None,
) -> CallToolResult:
    """Run a tool and render its result as MCP text content.

    A failed tool call is reported with ``isError`` set and the error text
    as content.
    """
    result = await dispatcher.call(name, arguments)
    return CallToolResult(
        content=[TextContent(type="text", text=result.render_text())],
        isError=not result.success,
    )


def create_mcp_server(dispatcher: ToolDispatcher) -> Server:
    """Build an MCP server whose handlers delegate to ``dispatcher``."""
    server: Server = Server(SERVER_NAME)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        return list_tool_specs(dispatcher)

    # Arguments are validated by the dispatcher so clients get its messages
    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: dict[str, Any] | None) -> CallToolResult:
        return await handle_tool_call(dispatcher, name, arguments)

    return server


async def serve_stdio(
    settings: Settings | None = None,
    storage_path: Path | None = None,
) -> None:
    """Load the graph and serve MCP requests over stdin/stdout until EOF.

    Args:
        settings: Application settings. Defaults to loading from environment.
        storage_path: Overrides the configured storage directory.

    Raises:
        PersistenceReadError: If the stored graph cannot be loaded.
    """
    settings = settings or get_settings()
    log = logger.bind(component="mcp_server")

    storage = JsonFileStorage.from_settings(settings, storage_path=storage_path)
    manager = KnowledgeGraphManager(storage)
    await manager.load()

    dispatcher = ToolDispatcher(manager, error_locale=settings.app.error_locale)
    server = create_mcp_server(dispatcher)

    log.info("mcp_server_starting", server=SERVER_NAME, storage=storage.location)
    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )
    log.info("mcp_server_stopped", pending_writes=manager.pending_writes)


__all__ = [
    "SERVER_NAME",
    "create_mcp_server",
    "handle_tool_call",
    "list_tool_specs",
    "serve_stdio",
]
