"""In-memory persistence backend.

Stores the graph as wire-format JSON text so that saved and loaded graphs
never share objects with the live store, exactly like a file would.
"""

from __future__ import annotations

import json

from knowledge_graph_server.knowledge.errors import GraphFileCorruptedError, PersistenceError
from knowledge_graph_server.schemas.graph import KnowledgeGraph
from knowledge_graph_server.storage.base import GraphPersistence


class InMemoryStorage(GraphPersistence):
    """Volatile storage, mainly for tests and embedding.

    Attributes:
        save_count: Number of successful saves so far.
    """

    def __init__(self, initial: KnowledgeGraph | None = None) -> None:
        self._document: str | None = (
            json.dumps(initial.to_wire()) if initial is not None else None
        )
        self.save_count = 0
        self._fail_next_save: PersistenceError | None = None
        self._fail_next_load: PersistenceError | None = None

    @property
    def location(self) -> str:
        return "memory://knowledge-graph"

    @property
    def document(self) -> str | None:
        """The last saved graph as JSON text."""
        return self._document

    def fail_next_save(self, error: PersistenceError) -> None:
        self._fail_next_save = error

    def fail_next_load(self, error: PersistenceError) -> None:
        self._fail_next_load = error

    def set_document(self, text: str) -> None:
        """Install raw JSON text, bypassing validation."""
        self._document = text

    async def load(self) -> KnowledgeGraph:
        if self._fail_next_load is not None:
            error, self._fail_next_load = self._fail_next_load, None
            raise error
        if self._document is None:
            return KnowledgeGraph.empty()
        try:
            return KnowledgeGraph.model_validate_json(self._document)
        except ValueError as e:
            raise GraphFileCorruptedError(self.location, reason=type(e).__name__) from e

    async def save(self, graph: KnowledgeGraph) -> None:
        if self._fail_next_save is not None:
            error, self._fail_next_save = self._fail_next_save, None
            raise error
        self._document = json.dumps(graph.to_wire())
        self.save_count += 1

    def saved_graph(self) -> KnowledgeGraph:
        """Return the last saved graph (empty if nothing was saved)."""
        if self._document is None:
            return KnowledgeGraph.empty()
        return KnowledgeGraph.model_validate_json(self._document)
