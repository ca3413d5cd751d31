"""Knowledge graph core: store, write serialization, manager and errors."""

from knowledge_graph_server.knowledge.errors import (
    DuplicateEntityError,
    EmptyNameError,
    EntitiesNotFoundError,
    ErrorKind,
    GraphFileCorruptedError,
    KnowledgeGraphError,
    PermissionDeniedError,
    PersistenceError,
    PersistenceReadError,
    PersistenceWriteError,
    StorageFullError,
    ToolArgumentError,
)
from knowledge_graph_server.knowledge.manager import DEFAULT_USER, KnowledgeGraphManager
from knowledge_graph_server.knowledge.serializer import WriteSerializer
from knowledge_graph_server.knowledge.store import GraphStore

__all__ = [
    "DEFAULT_USER",
    "DuplicateEntityError",
    "EmptyNameError",
    "EntitiesNotFoundError",
    "ErrorKind",
    "GraphFileCorruptedError",
    "GraphStore",
    "KnowledgeGraphError",
    "KnowledgeGraphManager",
    "PermissionDeniedError",
    "PersistenceError",
    "PersistenceReadError",
    "PersistenceWriteError",
    "StorageFullError",
    "ToolArgumentError",
    "WriteSerializer",
]
