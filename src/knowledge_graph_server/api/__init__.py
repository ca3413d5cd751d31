"""HTTP gateway module.

This module provides the FastAPI application and API routers for the
knowledge graph server.
"""

from knowledge_graph_server.api.router import create_api_router, create_app

__all__ = [
    "create_app",
    "create_api_router",
]
