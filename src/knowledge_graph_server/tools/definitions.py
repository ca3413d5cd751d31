"""Tool catalogue: names, descriptions and argument models of the nine tools.

Argument models validate strictly: wrong types, missing fields and empty
top-level arrays are rejected before the manager is ever called. The JSON
input schema advertised to clients is generated from the same models.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field, StrictStr, field_validator

from knowledge_graph_server.schemas.graph import (
    Entity,
    ObservationAddition,
    ObservationDeletion,
    Relation,
)

_ARGUMENTS_CONFIG: dict[str, Any] = {
    "populate_by_name": True,
    "extra": "ignore",
}


class CreateEntitiesArguments(BaseModel):
    entities: list[Entity] = Field(min_length=1, description="Array of entities to create")

    model_config = {**_ARGUMENTS_CONFIG}


class CreateRelationsArguments(BaseModel):
    relations: list[Relation] = Field(min_length=1, description="Array of relations to create")

    model_config = {**_ARGUMENTS_CONFIG}


class AddObservationsArguments(BaseModel):
    observations: list[ObservationAddition] = Field(
        min_length=1, description="Array of observations to add"
    )

    model_config = {**_ARGUMENTS_CONFIG}


class DeleteEntitiesArguments(BaseModel):
    entity_names: list[StrictStr] = Field(
        alias="entityNames", min_length=1, description="Array of entity names to delete"
    )

    model_config = {**_ARGUMENTS_CONFIG}


class DeleteObservationsArguments(BaseModel):
    deletions: list[ObservationDeletion] = Field(
        min_length=1, description="Array of observation deletions"
    )

    model_config = {**_ARGUMENTS_CONFIG}


class DeleteRelationsArguments(BaseModel):
    relations: list[Relation] = Field(min_length=1, description="Array of relations to delete")

    model_config = {**_ARGUMENTS_CONFIG}


class ReadGraphArguments(BaseModel):
    model_config = {**_ARGUMENTS_CONFIG}


class SearchNodesArguments(BaseModel):
    query: StrictStr = Field(description="Search query string")

    model_config = {**_ARGUMENTS_CONFIG}

    @field_validator("query")
    @classmethod
    def query_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("query cannot be empty")
        return v


class OpenNodesArguments(BaseModel):
    names: list[StrictStr] = Field(min_length=1, description="Array of entity names to retrieve")

    model_config = {**_ARGUMENTS_CONFIG}


@dataclass(frozen=True)
class ToolDefinition:
    """A tool exposed to clients.

    Attributes:
        name: Tool name used in calls.
        description: Human-readable purpose of the tool.
        arguments: Pydantic model validating the call arguments.
        mutating: Whether the tool changes the graph.
    """

    name: str
    description: str
    arguments: type[BaseModel]
    mutating: bool

    def input_schema(self) -> dict[str, Any]:
        """JSON schema of the tool arguments, using wire field names."""
        schema = self.arguments.model_json_schema(by_alias=True)
        schema.pop("title", None)
        return schema

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema(),
        }


TOOLS: tuple[ToolDefinition, ...] = (
    ToolDefinition(
        name="create_entities",
        description="Create new entities in the knowledge graph",
        arguments=CreateEntitiesArguments,
        mutating=True,
    ),
    ToolDefinition(
        name="create_relations",
        description=(
            "Create relations between entities in the knowledge graph. "
            "Relations should be in active voice"
        ),
        arguments=CreateRelationsArguments,
        mutating=True,
    ),
    ToolDefinition(
        name="add_observations",
        description="Add observations to existing entities",
        arguments=AddObservationsArguments,
        mutating=True,
    ),
    ToolDefinition(
        name="delete_entities",
        description="Delete entities and their associated relations from the knowledge graph",
        arguments=DeleteEntitiesArguments,
        mutating=True,
    ),
    ToolDefinition(
        name="delete_observations",
        description="Delete specific observations from entities",
        arguments=DeleteObservationsArguments,
        mutating=True,
    ),
    ToolDefinition(
        name="delete_relations",
        description="Delete specific relations from the knowledge graph",
        arguments=DeleteRelationsArguments,
        mutating=True,
    ),
    ToolDefinition(
        name="read_graph",
        description="Read the entire knowledge graph with all entities and relations",
        arguments=ReadGraphArguments,
        mutating=False,
    ),
    ToolDefinition(
        name="search_nodes",
        description=(
            "Search for entities by name, type, or observations. Whitespace-separated "
            "words are matched case-insensitively; an entity matches if any word matches"
        ),
        arguments=SearchNodesArguments,
        mutating=False,
    ),
    ToolDefinition(
        name="open_nodes",
        description="Open and retrieve specific entities by their names",
        arguments=OpenNodesArguments,
        mutating=False,
    ),
)

_TOOLS_BY_NAME = {tool.name: tool for tool in TOOLS}


def get_tool(name: str) -> ToolDefinition | None:
    return _TOOLS_BY_NAME.get(name)


__all__ = [
    "TOOLS",
    "ToolDefinition",
    "get_tool",
    "AddObservationsArguments",
    "CreateEntitiesArguments",
    "CreateRelationsArguments",
    "DeleteEntitiesArguments",
    "DeleteObservationsArguments",
    "DeleteRelationsArguments",
    "OpenNodesArguments",
    "ReadGraphArguments",
    "SearchNodesArguments",
]
