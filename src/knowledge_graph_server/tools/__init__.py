"""Tool-call boundary shared by the MCP and HTTP transports."""

from knowledge_graph_server.tools.definitions import TOOLS, ToolDefinition, get_tool
from knowledge_graph_server.tools.dispatcher import ToolDispatcher

__all__ = [
    "TOOLS",
    "ToolDefinition",
    "ToolDispatcher",
    "get_tool",
]
