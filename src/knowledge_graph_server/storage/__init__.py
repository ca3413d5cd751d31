"""Persistence backends for the knowledge graph."""

from knowledge_graph_server.storage.base import GraphPersistence
from knowledge_graph_server.storage.json_file import (
    DEFAULT_FILE_NAME,
    JsonFileStorage,
    resolve_storage_file,
)
from knowledge_graph_server.storage.memory import InMemoryStorage

__all__ = [
    "DEFAULT_FILE_NAME",
    "GraphPersistence",
    "InMemoryStorage",
    "JsonFileStorage",
    "resolve_storage_file",
]
