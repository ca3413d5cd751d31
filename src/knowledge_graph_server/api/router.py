"""Main API router for the knowledge graph HTTP gateway.

This module provides the API router that includes all endpoint routers and
the application factory whose lifespan loads the graph before serving.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

import structlog
from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from knowledge_graph_server.api.endpoints import health, tools
from knowledge_graph_server.config import Settings, get_settings
from knowledge_graph_server.knowledge.manager import KnowledgeGraphManager
from knowledge_graph_server.storage.base import GraphPersistence
from knowledge_graph_server.storage.json_file import JsonFileStorage
from knowledge_graph_server.tools.dispatcher import ToolDispatcher

logger = structlog.get_logger(__name__)


def create_api_router() -> APIRouter:
    """Create the main API router with all endpoint routers included.

    Returns:
        APIRouter configured with all endpoint routers.
    """
    api_router = APIRouter()

    api_router.include_router(health.router)
    api_router.include_router(tools.router)

    logger.info(
        "api_router_created",
        routes=["/health", "/tools", "/tools/{name}"],
    )

    return api_router


def create_app(
    settings: Settings | None = None,
    storage_path: Path | None = None,
    persistence: GraphPersistence | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    The manager is built and loaded in the lifespan handler and kept on
    ``app.state`` together with its dispatcher.

    Args:
        settings: Application settings. If not provided, loads from environment.
        storage_path: Overrides the configured storage directory.
        persistence: Storage backend to use instead of the JSON file.

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        log = logger.bind(component="lifespan")
        backend = persistence or JsonFileStorage.from_settings(
            settings, storage_path=storage_path
        )
        manager = KnowledgeGraphManager(backend)
        await manager.load()

        app.state.manager = manager
        app.state.dispatcher = ToolDispatcher(manager, error_locale=settings.app.error_locale)

        log.info(
            "application_started",
            app_name=settings.app.app_name,
            version=settings.app.app_version,
            storage=backend.location,
        )
        try:
            yield
        finally:
            log.info("application_shutdown_complete", pending_writes=manager.pending_writes)

    app = FastAPI(
        title="Knowledge Graph Server API",
        description=(
            "HTTP gateway to a persistent knowledge graph of entities, relations "
            "and observations. Exposes the same tools as the MCP server."
        ),
        version=settings.app.app_version,
        debug=settings.app.debug,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(create_api_router(), prefix="/api/v1")

    # Also mount health check at root level for easier access
    app.include_router(health.router, tags=["health"])

    logger.info(
        "fastapi_app_created",
        title=app.title,
        version=app.version,
        debug=app.debug,
    )

    return app


__all__ = [
    "create_app",
    "create_api_router",
]
