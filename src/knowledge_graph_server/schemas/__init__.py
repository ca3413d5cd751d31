"""Schemas for knowledge graph data models and tool results."""

from knowledge_graph_server.schemas.graph import (
    Entity,
    KnowledgeGraph,
    ObservationAddition,
    ObservationAdditionResult,
    ObservationDeletion,
    Relation,
)
from knowledge_graph_server.schemas.results import OperationResult

__all__ = [
    "Entity",
    "KnowledgeGraph",
    "ObservationAddition",
    "ObservationAdditionResult",
    "ObservationDeletion",
    "OperationResult",
    "Relation",
]
