"""Health check endpoint for the knowledge graph server.

Reports the in-memory graph size and whether the storage file is readable.
"""

from __future__ import annotations

import time
from enum import Enum

import structlog
from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from knowledge_graph_server.config import Settings
from knowledge_graph_server.knowledge.errors import PersistenceError
from knowledge_graph_server.knowledge.manager import KnowledgeGraphManager

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["health"])


class ComponentStatus(str, Enum):
    """Status values for individual components."""

    UP = "up"
    DOWN = "down"


class OverallStatus(str, Enum):
    """Overall health status values."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"


class StorageHealth(BaseModel):
    """Health status of the storage backend."""

    status: ComponentStatus = Field(description="Storage status")
    location: str = Field(description="Storage location")
    latency_ms: float | None = Field(default=None, description="Read latency in milliseconds")
    error: str | None = Field(default=None, description="Error message if unreadable")


class HealthResponse(BaseModel):
    """Health check response model."""

    status: OverallStatus = Field(description="Overall system health status")
    version: str = Field(description="Application version")
    entity_count: int = Field(description="Entities in the in-memory graph")
    relation_count: int = Field(description="Relations in the in-memory graph")
    pending_writes: int = Field(description="Mutations running or queued")
    storage: StorageHealth = Field(description="Storage backend health")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "status": "healthy",
                    "version": "1.0.0",
                    "entity_count": 12,
                    "relation_count": 7,
                    "pending_writes": 0,
                    "storage": {
                        "status": "up",
                        "location": "/home/user/knowledge-graph.json",
                        "latency_ms": 0.8,
                    },
                }
            ]
        }
    }


def get_manager(request: Request) -> KnowledgeGraphManager:
    """Return the manager created by the application lifespan."""
    return request.app.state.manager


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


async def _check_storage_health(manager: KnowledgeGraphManager) -> StorageHealth:
    """Check that the persisted graph can still be read.

    Args:
        manager: Manager whose storage backend is probed.

    Returns:
        StorageHealth with the status of the backend.
    """
    location = manager.persistence.location
    start_time = time.perf_counter()
    try:
        await manager.persistence.load()
    except PersistenceError as e:
        latency_ms = (time.perf_counter() - start_time) * 1000
        logger.warning("storage_health_check_failed", error=e.message)
        return StorageHealth(
            status=ComponentStatus.DOWN,
            location=location,
            latency_ms=latency_ms,
            error=e.message,
        )

    latency_ms = (time.perf_counter() - start_time) * 1000
    logger.debug("storage_health_check_passed", latency_ms=latency_ms)
    return StorageHealth(status=ComponentStatus.UP, location=location, latency_ms=latency_ms)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="Returns graph counts and the status of the storage backend.",
)
async def health_check(
    manager: KnowledgeGraphManager = Depends(get_manager),  # noqa: B008 - Dependency injection
    settings: Settings = Depends(get_app_settings),  # noqa: B008
) -> HealthResponse:
    """Check the health of the knowledge graph server."""
    storage = await _check_storage_health(manager)
    stats = manager.stats()
    overall_status = (
        OverallStatus.HEALTHY if storage.status == ComponentStatus.UP else OverallStatus.DEGRADED
    )

    logger.info(
        "health_check_completed",
        overall_status=overall_status.value,
        entity_count=stats["entity_count"],
        relation_count=stats["relation_count"],
    )

    return HealthResponse(
        status=overall_status,
        version=settings.app.app_version,
        entity_count=stats["entity_count"],
        relation_count=stats["relation_count"],
        pending_writes=stats["pending_writes"],
        storage=storage,
    )


__all__ = [
    "router",
    "HealthResponse",
    "StorageHealth",
    "ComponentStatus",
    "OverallStatus",
    "get_manager",
]
