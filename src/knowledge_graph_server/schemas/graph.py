"""Knowledge graph data models.

These models define both the in-memory value types handled by the manager
and the wire format used for tool arguments, tool results and the persisted
JSON file. Field names follow the camelCase wire format through aliases
(``entityType``, ``relationType``, ``entityName``) while Python code uses
snake_case attributes. ``from`` is a keyword, so relations expose it as
``from_``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, StrictStr

_MODEL_CONFIG: dict[str, Any] = {
    "populate_by_name": True,
    "extra": "ignore",
}


class Entity(BaseModel):
    """A named node of the knowledge graph.

    Attributes:
        name: Unique identity of the entity.
        entity_type: Free-form type label (e.g. "person", "project").
        observations: Ordered facts about the entity. Duplicates are allowed.
    """

    name: StrictStr = Field(description="Unique name of the entity")
    entity_type: StrictStr = Field(alias="entityType", description="Type of the entity")
    observations: list[StrictStr] = Field(description="Observations about the entity")

    model_config = {
        **_MODEL_CONFIG,
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Alice",
                    "entityType": "person",
                    "observations": ["Works on the search team", "Prefers Python"],
                }
            ]
        },
    }

    def copy_entity(self) -> Entity:
        """Return an independent copy with its own observation list."""
        return Entity(
            name=self.name,
            entity_type=self.entity_type,
            observations=list(self.observations),
        )


class Relation(BaseModel):
    """A directed, typed edge between two entities.

    Relations are plain values: two relations with the same endpoints and
    type compare equal and hash identically.
    """

    from_: StrictStr = Field(alias="from", description="Source entity name")
    to: StrictStr = Field(description="Target entity name")
    relation_type: StrictStr = Field(
        alias="relationType",
        description="Type of relation in active voice",
    )

    model_config = {**_MODEL_CONFIG, "frozen": True}

    def key(self) -> tuple[str, str, str]:
        return (self.from_, self.to, self.relation_type)

    def touches(self, name: str) -> bool:
        """Check whether the relation starts or ends at the named entity."""
        return self.from_ == name or self.to == name


class ObservationAddition(BaseModel):
    """Observations to append to an existing entity."""

    entity_name: StrictStr = Field(
        alias="entityName",
        description="Name of the entity to add observations to",
    )
    contents: list[StrictStr] = Field(description="Observation contents to add")

    model_config = {**_MODEL_CONFIG}


class ObservationAdditionResult(BaseModel):
    """Observations that were appended to one entity."""

    entity_name: StrictStr = Field(alias="entityName")
    added_observations: list[StrictStr] = Field(alias="addedObservations")

    model_config = {**_MODEL_CONFIG}


class ObservationDeletion(BaseModel):
    """Observation values to remove from an existing entity."""

    entity_name: StrictStr = Field(
        alias="entityName",
        description="Name of the entity to delete observations from",
    )
    observations: list[StrictStr] = Field(description="Observation contents to delete")

    model_config = {**_MODEL_CONFIG}


class KnowledgeGraph(BaseModel):
    """Serializable form of the whole graph.

    Entities are listed in insertion order of the store. This is the shape
    of the persisted JSON file and of the ``read_graph`` result. Both arrays
    are required and unknown top-level keys are rejected, so a document of
    some other shape never loads as an empty graph.
    """

    entities: list[Entity]
    relations: list[Relation]

    model_config = {**_MODEL_CONFIG, "extra": "forbid"}

    @classmethod
    def empty(cls) -> KnowledgeGraph:
        return cls(entities=[], relations=[])

    def to_wire(self) -> dict[str, Any]:
        """Dump the graph using wire field names."""
        return self.model_dump(mode="json", by_alias=True)


__all__ = [
    "Entity",
    "Relation",
    "ObservationAddition",
    "ObservationAdditionResult",
    "ObservationDeletion",
    "KnowledgeGraph",
]
