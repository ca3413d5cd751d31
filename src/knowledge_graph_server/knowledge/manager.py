"""Knowledge graph manager.

Validates requests against the current graph, applies mutations to the
in-memory store and persists the whole graph after every successful
mutation.

Every mutating operation runs inside the :class:`WriteSerializer`, validates
all of its input before touching the store, and applies its store changes
without yielding to the event loop, so concurrent readers never observe a
half-applied mutation. Persistence happens afterwards; if it fails, the error
propagates to the caller and the in-memory change stays in place.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import structlog

from knowledge_graph_server.knowledge.errors import (
    DuplicateEntityError,
    EmptyNameError,
    EntitiesNotFoundError,
    KnowledgeGraphError,
)
from knowledge_graph_server.knowledge.serializer import WriteSerializer
from knowledge_graph_server.knowledge.store import GraphStore
from knowledge_graph_server.schemas.graph import (
    Entity,
    KnowledgeGraph,
    ObservationAddition,
    ObservationAdditionResult,
    ObservationDeletion,
    Relation,
)

if TYPE_CHECKING:
    from knowledge_graph_server.storage.base import GraphPersistence

logger = structlog.get_logger(__name__)

DEFAULT_USER = "default_user"


def _unique(names: list[str]) -> list[str]:
    """Deduplicate while keeping first-seen order."""
    return list(dict.fromkeys(names))


def tokenize_query(query: str) -> list[str]:
    """Split a search query into case-folded, non-empty whitespace tokens."""
    return query.casefold().split()


def entity_matches(entity: Entity, tokens: list[str]) -> bool:
    """Check whether any token is a substring of the entity's name, type or observations.

    Matching is case-insensitive; ``tokens`` must already be case-folded.
    An empty token list matches every entity.
    """
    if not tokens:
        return True
    haystacks = [entity.name.casefold(), entity.entity_type.casefold()]
    haystacks.extend(observation.casefold() for observation in entity.observations)
    return any(token in haystack for token in tokens for haystack in haystacks)


class KnowledgeGraphManager:
    """Entry point for all knowledge graph operations.

    Usage:
        manager = KnowledgeGraphManager(JsonFileStorage(path))
        await manager.load()
        await manager.create_entities(
            [Entity(name="Alice", entity_type="person", observations=["Likes tea"])]
        )
        matches = manager.search_nodes("alice")
    """

    def __init__(self, persistence: GraphPersistence) -> None:
        """Initialize the manager with an empty store.

        Args:
            persistence: Backend used to load and save the graph.
        """
        self._persistence = persistence
        self._store = GraphStore()
        self._serializer = WriteSerializer()
        self._log = logger.bind(
            component="knowledge_graph_manager",
            storage=persistence.location,
        )

    @property
    def persistence(self) -> GraphPersistence:
        return self._persistence

    @property
    def pending_writes(self) -> int:
        """Mutations currently running or queued."""
        return self._serializer.pending

    async def load(self) -> None:
        """Replace the in-memory graph with the persisted one.

        Relations that reference missing entities are dropped so the
        referential-integrity invariant holds from the start.

        Raises:
            PersistenceReadError: If the persisted graph cannot be read.
        """

        async def body() -> None:
            graph = await self._persistence.load()
            self._store.replace(graph)
            dangling = set(self._store.dangling_relations())
            if dangling:
                removed = self._store.remove_relations(lambda relation: relation in dangling)
                self._log.warning("dangling_relations_dropped", relation_count=removed)
            self._log.info(
                "graph_loaded",
                entity_count=self._store.entity_count,
                relation_count=self._store.relation_count,
            )

        await self._serializer.run(body)

    async def _persist(self) -> None:
        await self._persistence.save(self._store.snapshot())

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create_entities(self, inputs: Sequence[Entity]) -> list[Entity]:
        """Create entities, in order.

        ``default_user`` is an upsert: if it already exists, the existing
        entity is returned unchanged. Any other existing name fails the call.
        Entities created before the failing input stay created (and are
        persisted); entities after it are not processed.

        Args:
            inputs: Entities to create.

        Returns:
            Created or upserted entities, in input order.

        Raises:
            EmptyNameError: If a name is empty after trimming.
            DuplicateEntityError: If a name other than ``default_user`` exists.
            PersistenceWriteError: If the graph cannot be saved.
        """

        async def body() -> list[Entity]:
            touched: list[Entity] = []
            created = 0
            failure: KnowledgeGraphError | None = None

            for item in inputs:
                if not item.name.strip():
                    failure = EmptyNameError()
                    break
                existing = self._store.get(item.name)
                if existing is not None:
                    if item.name == DEFAULT_USER:
                        touched.append(existing.copy_entity())
                        continue
                    failure = DuplicateEntityError(item.name)
                    break
                entity = item.copy_entity()
                self._store.put(entity)
                touched.append(entity.copy_entity())
                created += 1

            if failure is not None:
                self._log.info(
                    "create_entities_rejected",
                    reason=failure.kind.value,
                    committed_before_failure=created,
                )
                if created:
                    await self._persist()
                raise failure

            await self._persist()
            self._log.info("entities_created", created=created, upserted=len(touched) - created)
            return touched

        return await self._serializer.run(body)

    async def delete_entities(self, names: Sequence[str]) -> list[str]:
        """Delete entities and every relation that touches them.

        Unknown names are ignored.

        Returns:
            Names of the entities that existed and were removed.
        """

        async def body() -> list[str]:
            before = self._store.relation_count
            removed = [name for name in names if self._store.remove_entity(name)]
            await self._persist()
            self._log.info(
                "entities_deleted",
                entity_count=len(removed),
                relation_count=before - self._store.relation_count,
            )
            return removed

        return await self._serializer.run(body)

    async def create_relations(self, inputs: Sequence[Relation]) -> list[Relation]:
        """Create relations between existing entities.

        All endpoints are checked first; if any is missing, nothing is created.
        Exact duplicates of existing relations are appended as well.

        Returns:
            The created relations, in input order.

        Raises:
            EntitiesNotFoundError: Listing every missing endpoint once.
        """

        async def body() -> list[Relation]:
            missing = _unique(
                [
                    name
                    for relation in inputs
                    for name in (relation.from_, relation.to)
                    if not self._store.contains(name)
                ]
            )
            if missing:
                self._log.info("create_relations_rejected", missing=missing)
                raise EntitiesNotFoundError(missing)

            for relation in inputs:
                self._store.add_relation(relation)
            await self._persist()
            self._log.info("relations_created", relation_count=len(inputs))
            return list(inputs)

        return await self._serializer.run(body)

    async def delete_relations(self, inputs: Sequence[Relation]) -> int:
        """Delete every relation exactly matching one of ``inputs``.

        Returns:
            Number of relations removed.
        """

        async def body() -> int:
            targets = {relation.key() for relation in inputs}
            removed = self._store.remove_relations(lambda relation: relation.key() in targets)
            await self._persist()
            self._log.info("relations_deleted", relation_count=removed)
            return removed

        return await self._serializer.run(body)

    async def add_observations(
        self, additions: Sequence[ObservationAddition]
    ) -> list[ObservationAdditionResult]:
        """Append observations to existing entities.

        Raises:
            EntitiesNotFoundError: If any target entity is missing; nothing is added.
        """

        async def body() -> list[ObservationAdditionResult]:
            self._require_entities([addition.entity_name for addition in additions])

            results = []
            for addition in additions:
                entity = self._store.get(addition.entity_name)
                entity.observations.extend(addition.contents)
                results.append(
                    ObservationAdditionResult(
                        entity_name=addition.entity_name,
                        added_observations=list(addition.contents),
                    )
                )
            await self._persist()
            self._log.info(
                "observations_added",
                entity_count=len(additions),
                observation_count=sum(len(a.contents) for a in additions),
            )
            return results

        return await self._serializer.run(body)

    async def delete_observations(self, deletions: Sequence[ObservationDeletion]) -> int:
        """Remove every occurrence of the listed observation values.

        Values that are not present are ignored.

        Returns:
            Number of observations removed.

        Raises:
            EntitiesNotFoundError: If any target entity is missing; nothing is removed.
        """

        async def body() -> int:
            self._require_entities([deletion.entity_name for deletion in deletions])

            removed = 0
            for deletion in deletions:
                entity = self._store.get(deletion.entity_name)
                unwanted = set(deletion.observations)
                kept = [obs for obs in entity.observations if obs not in unwanted]
                removed += len(entity.observations) - len(kept)
                entity.observations = kept
            await self._persist()
            self._log.info("observations_deleted", observation_count=removed)
            return removed

        return await self._serializer.run(body)

    def _require_entities(self, names: list[str]) -> None:
        missing = _unique([name for name in names if not self._store.contains(name)])
        if missing:
            self._log.info("entities_missing", missing=missing)
            raise EntitiesNotFoundError(missing)

    # ------------------------------------------------------------------
    # Reads (not serialized)
    # ------------------------------------------------------------------

    def open_nodes(self, names: Sequence[str]) -> list[Entity]:
        """Return the named entities in the order requested.

        Raises:
            EntitiesNotFoundError: Listing every missing name, in argument order.
        """
        found: list[Entity] = []
        missing: list[str] = []
        for name in names:
            entity = self._store.get(name)
            if entity is None:
                missing.append(name)
            else:
                found.append(entity.copy_entity())
        if missing:
            raise EntitiesNotFoundError(missing)
        return found

    def get_entity(self, name: str) -> Entity | None:
        entity = self._store.get(name)
        return entity.copy_entity() if entity is not None else None

    def read_graph(self) -> KnowledgeGraph:
        """Return a copy of the whole graph; mutating it never affects the store."""
        return self._store.snapshot()

    def search_nodes(self, query: str) -> list[Entity]:
        """Find entities matching any whitespace-separated token of ``query``.

        A token matches when it is a case-insensitive substring of the
        entity's name, type or any observation. A query without tokens
        returns every entity. Results keep insertion order.
        """
        tokens = tokenize_query(query)
        results = [
            entity.copy_entity()
            for entity in self._store.entities()
            if entity_matches(entity, tokens)
        ]
        self._log.debug("search_completed", token_count=len(tokens), result_count=len(results))
        return results

    def stats(self) -> dict[str, Any]:
        """Counts used by health reporting."""
        return {
            "entity_count": self._store.entity_count,
            "relation_count": self._store.relation_count,
            "pending_writes": self._serializer.pending,
            "storage": self._persistence.location,
        }


__all__ = [
    "DEFAULT_USER",
    "KnowledgeGraphManager",
    "entity_matches",
    "tokenize_query",
]
