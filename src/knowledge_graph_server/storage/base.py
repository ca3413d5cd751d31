"""Persistence port for the knowledge graph.

The manager depends only on this interface, so it can run against the JSON
file backend in production and against an in-memory fake in tests.
"""

from abc import ABC, abstractmethod

from knowledge_graph_server.schemas.graph import KnowledgeGraph


class GraphPersistence(ABC):
    """Abstract durable storage for a whole knowledge graph.

    Implementations must:
    - return an empty graph from ``load`` when nothing has been saved yet
    - raise ``GraphFileCorruptedError`` for unparseable content and
      ``PersistenceReadError`` for any other read failure
    - raise ``PermissionDeniedError``, ``StorageFullError`` or
      ``PersistenceWriteError`` from ``save``
    """

    @property
    @abstractmethod
    def location(self) -> str:
        """Human-readable description of where the graph is stored."""
        ...

    @abstractmethod
    async def load(self) -> KnowledgeGraph:
        """Load the stored graph.

        Returns:
            The stored graph, or an empty graph if none exists yet.

        Raises:
            PersistenceReadError: If the stored graph cannot be read.
        """
        ...

    @abstractmethod
    async def save(self, graph: KnowledgeGraph) -> None:
        """Replace the stored graph with ``graph``.

        Raises:
            PersistenceWriteError: If the graph cannot be written.
        """
        ...
