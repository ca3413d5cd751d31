"""Tool dispatcher: the boundary between transports and the manager.

Validates tool arguments, invokes the matching manager operation and turns
the outcome into an :class:`OperationResult`. Transports (MCP stdio, HTTP)
only ever talk to this class.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from typing import Any

import structlog
from pydantic import BaseModel, ValidationError

from knowledge_graph_server.knowledge.errors import KnowledgeGraphError, ToolArgumentError
from knowledge_graph_server.knowledge.manager import KnowledgeGraphManager
from knowledge_graph_server.schemas.graph import Entity, Relation
from knowledge_graph_server.schemas.results import OperationResult
from knowledge_graph_server.tools.definitions import (
    TOOLS,
    AddObservationsArguments,
    CreateEntitiesArguments,
    CreateRelationsArguments,
    DeleteEntitiesArguments,
    DeleteObservationsArguments,
    DeleteRelationsArguments,
    OpenNodesArguments,
    SearchNodesArguments,
    ToolDefinition,
    get_tool,
)

logger = structlog.get_logger(__name__)

UNKNOWN_TOOL = "unknown_tool"
INTERNAL_ERROR = "internal_error"


def _entities(entities: list[Entity]) -> list[dict[str, Any]]:
    return [entity.model_dump(mode="json", by_alias=True) for entity in entities]


def _relations(relations: list[Relation]) -> list[dict[str, Any]]:
    return [relation.model_dump(mode="json", by_alias=True) for relation in relations]


def format_validation_error(error: ValidationError) -> str:
    """Summarize pydantic errors as ``location: message`` pairs."""
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "arguments"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)


class ToolDispatcher:
    """Dispatch tool calls to a :class:`KnowledgeGraphManager`.

    Usage:
        dispatcher = ToolDispatcher(manager)
        result = await dispatcher.call("search_nodes", {"query": "alice"})
        print(result.render_text())
    """

    def __init__(self, manager: KnowledgeGraphManager, error_locale: str = "ko") -> None:
        """Initialize the dispatcher.

        Args:
            manager: Manager that executes the operations.
            error_locale: ``"ko"`` attaches the Korean message to failures,
                ``"en"`` attaches nothing.
        """
        self._manager = manager
        self._error_locale = error_locale
        self._handlers: dict[str, Callable[[Any], Awaitable[Any]]] = {
            "create_entities": self._create_entities,
            "create_relations": self._create_relations,
            "add_observations": self._add_observations,
            "delete_entities": self._delete_entities,
            "delete_observations": self._delete_observations,
            "delete_relations": self._delete_relations,
            "read_graph": self._read_graph,
            "search_nodes": self._search_nodes,
            "open_nodes": self._open_nodes,
        }
        self._log = logger.bind(component="tool_dispatcher")

    @property
    def manager(self) -> KnowledgeGraphManager:
        return self._manager

    def list_tools(self) -> list[ToolDefinition]:
        return list(TOOLS)

    async def call(self, name: str, arguments: Mapping[str, Any] | None) -> OperationResult:
        """Execute a tool call.

        Never raises for domain, validation or storage errors; those become
        failed results. Unexpected exceptions are logged and reported as
        ``Tool execution failed``.

        Args:
            name: Tool name.
            arguments: JSON object with the tool arguments.

        Returns:
            The result envelope.
        """
        tool = get_tool(name)
        if tool is None:
            self._log.warning("unknown_tool_called", tool=name)
            return OperationResult.fail(
                f"Unknown tool: {name}",
                self._localized(f"알 수 없는 도구: {name}"),
                UNKNOWN_TOOL,
            )

        log = self._log.bind(tool=name)
        try:
            validated = self._validate(tool, arguments)
            data = await self._handlers[name](validated)
        except KnowledgeGraphError as e:
            log.info("tool_call_failed", error_kind=e.kind.value, error_message=e.message)
            return OperationResult.fail(
                e.message,
                self._localized(e.localized_message),
                e.kind.value,
            )
        except Exception as e:
            log.exception(
                "tool_call_crashed",
                error_type=type(e).__name__,
                error_message=str(e),
            )
            return OperationResult.fail(
                f"Tool execution failed: {e}",
                self._localized(f"도구 실행 실패: {e}"),
                INTERNAL_ERROR,
            )

        log.debug("tool_call_succeeded")
        return OperationResult.ok(data)

    def _localized(self, message: str | None) -> str | None:
        return message if self._error_locale == "ko" else None

    def _validate(self, tool: ToolDefinition, arguments: Mapping[str, Any] | None) -> BaseModel:
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, Mapping):
            raise ToolArgumentError("arguments must be a JSON object")
        try:
            return tool.arguments.model_validate(dict(arguments))
        except ValidationError as e:
            raise ToolArgumentError(
                format_validation_error(e),
                details=[str(item["loc"]) for item in e.errors()],
            ) from e

    async def _create_entities(self, args: CreateEntitiesArguments) -> list[dict[str, Any]]:
        return _entities(await self._manager.create_entities(args.entities))

    async def _create_relations(self, args: CreateRelationsArguments) -> list[dict[str, Any]]:
        return _relations(await self._manager.create_relations(args.relations))

    async def _add_observations(self, args: AddObservationsArguments) -> list[dict[str, Any]]:
        results = await self._manager.add_observations(args.observations)
        return [result.model_dump(mode="json", by_alias=True) for result in results]

    async def _delete_entities(self, args: DeleteEntitiesArguments) -> dict[str, Any]:
        deleted = await self._manager.delete_entities(args.entity_names)
        return {"deletedEntities": deleted}

    async def _delete_observations(self, args: DeleteObservationsArguments) -> dict[str, Any]:
        removed = await self._manager.delete_observations(args.deletions)
        return {"deletedObservations": removed}

    async def _delete_relations(self, args: DeleteRelationsArguments) -> dict[str, Any]:
        removed = await self._manager.delete_relations(args.relations)
        return {"deletedRelations": removed}

    async def _read_graph(self, _args: BaseModel) -> dict[str, Any]:
        return self._manager.read_graph().to_wire()

    async def _search_nodes(self, args: SearchNodesArguments) -> list[dict[str, Any]]:
        return _entities(self._manager.search_nodes(args.query))

    async def _open_nodes(self, args: OpenNodesArguments) -> list[dict[str, Any]]:
        return _entities(self._manager.open_nodes(args.names))


__all__ = ["ToolDispatcher", "format_validation_error", "UNKNOWN_TOOL", "INTERNAL_ERROR"]
