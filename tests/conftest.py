"""Shared test fixtures and configuration for knowledge graph server tests."""

from collections.abc import AsyncIterator, Iterator
from pathlib import Path

import pytest
import pytest_asyncio

from knowledge_graph_server.config import Settings, get_settings
from knowledge_graph_server.knowledge.manager import KnowledgeGraphManager
from knowledge_graph_server.schemas.graph import Entity, Relation
from knowledge_graph_server.storage.json_file import JsonFileStorage
from knowledge_graph_server.storage.memory import InMemoryStorage
from knowledge_graph_server.tools.dispatcher import ToolDispatcher


def make_entity(name: str, entity_type: str = "person", *observations: str) -> Entity:
    """Create an entity with the given observations."""
    return Entity(name=name, entity_type=entity_type, observations=list(observations))


def make_relation(source: str, target: str, relation_type: str = "knows") -> Relation:
    """Create a relation using Python field names."""
    return Relation(from_=source, to=target, relation_type=relation_type)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Isolate tests from the developer's environment and ``.env`` file."""
    for name in [
        "KG_STORAGE_PATH",
        "KG_STORAGE_FILE_NAME",
        "KG_SAVE_RETRY_ATTEMPTS",
        "KG_SAVE_RETRY_MAX_WAIT",
        "KG_RUN_MODE",
        "KG_ERROR_LOCALE",
        "LOG_LEVEL",
        "LOG_FORMAT",
        "API_HOST",
        "API_PORT",
        "DEBUG",
    ]:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    """Settings built from a clean environment."""
    return Settings()


@pytest.fixture
def memory_storage() -> InMemoryStorage:
    """Create an empty in-memory storage backend."""
    return InMemoryStorage()


@pytest_asyncio.fixture
async def manager(memory_storage: InMemoryStorage) -> AsyncIterator[KnowledgeGraphManager]:
    """Create a loaded manager backed by in-memory storage."""
    graph_manager = KnowledgeGraphManager(memory_storage)
    await graph_manager.load()
    yield graph_manager


@pytest.fixture
def dispatcher(manager: KnowledgeGraphManager) -> ToolDispatcher:
    """Create a dispatcher with Korean error details enabled."""
    return ToolDispatcher(manager, error_locale="ko")


@pytest.fixture
def graph_file(tmp_path: Path) -> Path:
    """Path of a graph file inside a not yet existing directory."""
    return tmp_path / "data" / "knowledge-graph.json"


@pytest.fixture
def json_storage(graph_file: Path) -> JsonFileStorage:
    """Create a JSON file storage without retry backoff."""
    return JsonFileStorage(graph_file, retry_attempts=3, retry_max_wait=0)


@pytest.fixture
def sample_entities() -> list[Entity]:
    """Create a small set of entities of mixed types."""
    return [
        make_entity("Alice", "person", "Works on the search team", "Prefers Python"),
        make_entity("Bob", "person", "Maintains the billing service"),
        make_entity("Acme", "company", "Headquartered in Seoul"),
        make_entity("SearchService", "project", "Written in Rust"),
    ]


@pytest.fixture
def sample_relations() -> list[Relation]:
    """Create relations between the sample entities."""
    return [
        make_relation("Alice", "Acme", "works_at"),
        make_relation("Bob", "Acme", "works_at"),
        make_relation("Alice", "SearchService", "maintains"),
        make_relation("Alice", "Bob", "knows"),
    ]


@pytest_asyncio.fixture
async def populated_manager(
    manager: KnowledgeGraphManager,
    sample_entities: list[Entity],
    sample_relations: list[Relation],
) -> KnowledgeGraphManager:
    """Manager preloaded with the sample entities and relations."""
    await manager.create_entities(sample_entities)
    await manager.create_relations(sample_relations)
    return manager
