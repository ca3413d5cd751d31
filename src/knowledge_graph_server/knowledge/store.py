"""In-memory graph store.

Holds the authoritative mapping of entities (by name, insertion ordered) and
the ordered list of relations. The store does no locking of its own: writers
are serialized by :class:`~knowledge_graph_server.knowledge.serializer.WriteSerializer`,
and every method here is synchronous, so a caller that does not ``await``
between two store calls applies them as one step on the event loop.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator

from knowledge_graph_server.schemas.graph import Entity, KnowledgeGraph, Relation


class GraphStore:
    """Mutable container for entities and relations.

    Example:
        >>> store = GraphStore()
        >>> store.put(Entity(name="Alice", entity_type="person", observations=[]))
        >>> store.put(Entity(name="Acme", entity_type="company", observations=[]))
        >>> store.add_relation(Relation(from_="Alice", to="Acme", relation_type="works_at"))
        >>> store.remove_entity("Acme")
        True
        >>> store.relation_count
        0
    """

    def __init__(self) -> None:
        self._entities: dict[str, Entity] = {}
        self._relations: list[Relation] = []

    @property
    def entity_count(self) -> int:
        return len(self._entities)

    @property
    def relation_count(self) -> int:
        return len(self._relations)

    def get(self, name: str) -> Entity | None:
        """Return the live entity stored under ``name``, if any."""
        return self._entities.get(name)

    def contains(self, name: str) -> bool:
        return name in self._entities

    def put(self, entity: Entity) -> None:
        """Insert an entity, or overwrite the one with the same name in place."""
        self._entities[entity.name] = entity

    def remove_entity(self, name: str) -> bool:
        """Remove an entity and every relation where it is ``from`` or ``to``.

        Args:
            name: Name of the entity to remove.

        Returns:
            True if the entity existed.
        """
        existed = self._entities.pop(name, None) is not None
        self.remove_relations(lambda relation: relation.touches(name))
        return existed

    def add_relation(self, relation: Relation) -> None:
        self._relations.append(relation)

    def remove_relations(self, predicate: Callable[[Relation], bool]) -> int:
        """Remove all relations matching ``predicate``, keeping the others in order.

        Returns:
            Number of relations removed.
        """
        kept = [relation for relation in self._relations if not predicate(relation)]
        removed = len(self._relations) - len(kept)
        self._relations = kept
        return removed

    def entities(self) -> Iterator[Entity]:
        """Iterate live entities in insertion order."""
        return iter(list(self._entities.values()))

    def relations(self) -> Iterator[Relation]:
        return iter(list(self._relations))

    def entity_names(self) -> list[str]:
        return list(self._entities)

    def dangling_relations(self) -> list[Relation]:
        """Relations whose ``from`` or ``to`` names a missing entity."""
        return [
            relation
            for relation in self._relations
            if relation.from_ not in self._entities or relation.to not in self._entities
        ]

    def snapshot(self) -> KnowledgeGraph:
        """Return a copy of the current graph that shares no mutable state."""
        return KnowledgeGraph(
            entities=[entity.copy_entity() for entity in self._entities.values()],
            relations=list(self._relations),
        )

    def replace(self, graph: KnowledgeGraph) -> None:
        """Replace the whole content of the store with ``graph``.

        Later entities with a duplicate name overwrite earlier ones.
        """
        self._entities = {entity.name: entity.copy_entity() for entity in graph.entities}
        self._relations = list(graph.relations)


__all__ = ["GraphStore"]
