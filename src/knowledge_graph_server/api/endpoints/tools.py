"""Tool endpoints for the HTTP gateway.

This module exposes the same nine tools as the MCP transport: one endpoint
lists the catalogue, another executes a tool by name and returns the
``OperationResult`` envelope with a matching HTTP status code.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Body, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from knowledge_graph_server.knowledge.errors import ErrorKind
from knowledge_graph_server.schemas.results import OperationResult
from knowledge_graph_server.tools.dispatcher import INTERNAL_ERROR, UNKNOWN_TOOL, ToolDispatcher

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/tools", tags=["tools"])

_STATUS_BY_KIND: dict[str, int] = {
    ErrorKind.VALIDATION.value: status.HTTP_400_BAD_REQUEST,
    ErrorKind.EMPTY_NAME.value: status.HTTP_409_CONFLICT,
    ErrorKind.DUPLICATE_ENTITY.value: status.HTTP_409_CONFLICT,
    ErrorKind.ENTITIES_NOT_FOUND.value: status.HTTP_404_NOT_FOUND,
    ErrorKind.PERSISTENCE_READ.value: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.PERSISTENCE_WRITE.value: status.HTTP_500_INTERNAL_SERVER_ERROR,
    UNKNOWN_TOOL: status.HTTP_404_NOT_FOUND,
    INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class ToolInfo(BaseModel):
    """A tool as advertised to HTTP clients."""

    name: str = Field(description="Tool name")
    description: str = Field(description="What the tool does")
    input_schema: dict[str, Any] = Field(
        alias="inputSchema", description="JSON schema of the tool arguments"
    )

    model_config = {"populate_by_name": True}


class ToolListResponse(BaseModel):
    """Response model for the tool catalogue."""

    tools: list[ToolInfo] = Field(description="Available tools")


def get_dispatcher(request: Request) -> ToolDispatcher:
    """Return the dispatcher created by the application lifespan."""
    return request.app.state.dispatcher


def status_code_for(result: OperationResult) -> int:
    if result.success:
        return status.HTTP_200_OK
    return _STATUS_BY_KIND.get(result.error_kind or "", status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get(
    "",
    response_model=ToolListResponse,
    response_model_by_alias=True,
    summary="List Tools",
    description="Returns the available tools with their argument schemas.",
)
async def list_tools(
    dispatcher: ToolDispatcher = Depends(get_dispatcher),  # noqa: B008 - Dependency injection
) -> ToolListResponse:
    return ToolListResponse(
        tools=[ToolInfo(**tool.to_dict()) for tool in dispatcher.list_tools()],
    )


@router.post(
    "/{name}",
    summary="Call Tool",
    description="Execute a tool with a JSON object of arguments.",
    responses={
        200: {"description": "Tool succeeded"},
        400: {"description": "Invalid arguments"},
        404: {"description": "Unknown tool or entities not found"},
        409: {"description": "Duplicate or empty entity name"},
        500: {"description": "Storage failure"},
    },
)
async def call_tool(
    name: str,
    arguments: dict[str, Any] | None = Body(default=None),  # noqa: B008
    dispatcher: ToolDispatcher = Depends(get_dispatcher),  # noqa: B008
) -> JSONResponse:
    """Execute a tool call.

    The body is the tool's argument object; tools without arguments accept
    an empty body.

    Returns:
        The ``OperationResult`` envelope. The status code reflects the error kind.
    """
    logger.info("tool_call_received", tool=name)
    result = await dispatcher.call(name, arguments)
    return JSONResponse(status_code=status_code_for(result), content=result.to_wire())


__all__ = [
    "router",
    "ToolInfo",
    "ToolListResponse",
    "get_dispatcher",
    "status_code_for",
]
