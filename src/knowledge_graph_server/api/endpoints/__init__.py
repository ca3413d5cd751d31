"""HTTP gateway endpoints.

This module exports the endpoint routers for the FastAPI application.
"""

from knowledge_graph_server.api.endpoints import health, tools

__all__ = [
    "health",
    "tools",
]
