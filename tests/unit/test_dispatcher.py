"""Unit tests for ToolDispatcher.

Tests cover:
1. Argument validation (missing fields, wrong types, empty top-level arrays)
2. Result envelopes and payload shapes for all nine tools
3. Error mapping, localized details and text rendering
"""

from typing import Any

import pytest

from knowledge_graph_server.knowledge.errors import PermissionDeniedError
from knowledge_graph_server.knowledge.manager import KnowledgeGraphManager
from knowledge_graph_server.schemas.results import OperationResult
from knowledge_graph_server.storage.memory import InMemoryStorage
from knowledge_graph_server.tools.definitions import TOOLS, get_tool
from knowledge_graph_server.tools.dispatcher import ToolDispatcher

ALICE: dict[str, Any] = {"name": "Alice", "entityType": "person", "observations": ["Likes tea"]}
ACME: dict[str, Any] = {"name": "Acme", "entityType": "company", "observations": []}


async def _seed(dispatcher: ToolDispatcher) -> None:
    result = await dispatcher.call("create_entities", {"entities": [ALICE, ACME]})
    assert result.success
    result = await dispatcher.call(
        "create_relations",
        {"relations": [{"from": "Alice", "to": "Acme", "relationType": "works_at"}]},
    )
    assert result.success


class TestCatalogue:
    """Tests for the tool catalogue."""

    def test_nine_tools_in_order(self) -> None:
        assert [tool.name for tool in TOOLS] == [
            "create_entities",
            "create_relations",
            "add_observations",
            "delete_entities",
            "delete_observations",
            "delete_relations",
            "read_graph",
            "search_nodes",
            "open_nodes",
        ]

    def test_input_schema_uses_wire_names(self) -> None:
        schema = get_tool("create_relations").input_schema()
        relation = schema["$defs"]["Relation"]

        assert schema["required"] == ["relations"]
        assert set(relation["properties"]) == {"from", "to", "relationType"}
        assert sorted(relation["required"]) == ["from", "relationType", "to"]

    def test_read_graph_schema_has_no_properties(self) -> None:
        assert get_tool("read_graph").input_schema().get("properties", {}) == {}


class TestValidation:
    """Argument validation happens before the manager is called."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("tool", "arguments"),
        [
            ("create_entities", {}),
            ("create_entities", {"entities": []}),
            ("create_entities", {"entities": [{"name": "x", "entityType": "t"}]}),
            ("create_entities", {"entities": [{"name": 1, "entityType": "t", "observations": []}]}),
            ("create_entities", {"entities": "Alice"}),
            ("create_relations", {"relations": [{"from": "a", "to": "b"}]}),
            ("add_observations", {"observations": [{"entityName": "a"}]}),
            ("delete_entities", {"entityNames": []}),
            ("delete_entities", {"entityNames": [1, 2]}),
            ("delete_observations", {"deletions": [{"entityName": "a", "observations": [3]}]}),
            ("search_nodes", {}),
            ("search_nodes", {"query": 42}),
            ("open_nodes", {"names": []}),
        ],
    )
    async def test_invalid_arguments_rejected(
        self,
        dispatcher: ToolDispatcher,
        manager: KnowledgeGraphManager,
        tool: str,
        arguments: dict[str, Any],
    ) -> None:
        result = await dispatcher.call(tool, arguments)

        assert result.success is False
        assert result.error_kind == "validation_error"
        assert result.error.startswith("Invalid arguments: ")
        assert result.error_detail_in_user_locale.startswith("잘못된 인자: ")
        assert manager.read_graph().entities == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   ", "\t\n"])
    async def test_blank_search_query_rejected(
        self, dispatcher: ToolDispatcher, query: str
    ) -> None:
        await _seed(dispatcher)

        result = await dispatcher.call("search_nodes", {"query": query})

        assert result.success is False
        assert result.error_kind == "validation_error"
        assert "query cannot be empty" in result.error

    @pytest.mark.asyncio
    async def test_non_object_arguments(self, dispatcher: ToolDispatcher) -> None:
        result = await dispatcher.call("read_graph", ["not", "an", "object"])  # type: ignore[arg-type]
        assert result.error_kind == "validation_error"

    @pytest.mark.asyncio
    async def test_inner_arrays_may_be_empty(self, dispatcher: ToolDispatcher) -> None:
        result = await dispatcher.call(
            "create_entities", {"entities": [{"name": "x", "entityType": "t", "observations": []}]}
        )
        assert result.success

    @pytest.mark.asyncio
    async def test_read_graph_without_arguments(self, dispatcher: ToolDispatcher) -> None:
        result = await dispatcher.call("read_graph", None)
        assert result.to_wire() == {"success": True, "data": {"entities": [], "relations": []}}


class TestToolResults:
    """Payload shapes of successful calls."""

    @pytest.mark.asyncio
    async def test_create_entities_returns_wire_entities(self, dispatcher: ToolDispatcher) -> None:
        result = await dispatcher.call("create_entities", {"entities": [ALICE]})
        assert result.data == [ALICE]

    @pytest.mark.asyncio
    async def test_create_relations_returns_wire_relations(
        self, dispatcher: ToolDispatcher
    ) -> None:
        await dispatcher.call("create_entities", {"entities": [ALICE, ACME]})
        relation = {"from": "Alice", "to": "Acme", "relationType": "works_at"}

        result = await dispatcher.call("create_relations", {"relations": [relation]})

        assert result.data == [relation]

    @pytest.mark.asyncio
    async def test_add_observations(self, dispatcher: ToolDispatcher) -> None:
        await _seed(dispatcher)

        result = await dispatcher.call(
            "add_observations",
            {"observations": [{"entityName": "Acme", "contents": ["Founded 1999"]}]},
        )

        assert result.data == [{"entityName": "Acme", "addedObservations": ["Founded 1999"]}]

    @pytest.mark.asyncio
    async def test_delete_tools_report_counts(self, dispatcher: ToolDispatcher) -> None:
        await _seed(dispatcher)

        relations = await dispatcher.call(
            "delete_relations",
            {"relations": [{"from": "Alice", "to": "Acme", "relationType": "works_at"}]},
        )
        observations = await dispatcher.call(
            "delete_observations",
            {"deletions": [{"entityName": "Alice", "observations": ["Likes tea"]}]},
        )
        entities = await dispatcher.call("delete_entities", {"entityNames": ["Acme", "Ghost"]})

        assert relations.data == {"deletedRelations": 1}
        assert observations.data == {"deletedObservations": 1}
        assert entities.data == {"deletedEntities": ["Acme"]}

    @pytest.mark.asyncio
    async def test_read_search_and_open(self, dispatcher: ToolDispatcher) -> None:
        await _seed(dispatcher)

        graph = await dispatcher.call("read_graph", {})
        search = await dispatcher.call("search_nodes", {"query": "COMPANY"})
        opened = await dispatcher.call("open_nodes", {"names": ["Alice"]})

        assert graph.data["relations"] == [
            {"from": "Alice", "to": "Acme", "relationType": "works_at"}
        ]
        assert [e["name"] for e in search.data] == ["Acme"]
        assert opened.data == [ALICE]

    @pytest.mark.asyncio
    async def test_success_renders_indented_json(self, dispatcher: ToolDispatcher) -> None:
        result = await dispatcher.call("open_nodes", {"names": ["Ghost"]})
        assert not result.success

        await dispatcher.call("create_entities", {"entities": [ACME]})
        result = await dispatcher.call("open_nodes", {"names": ["Acme"]})

        assert result.render_text() == (
            "[\n"
            "  {\n"
            '    "name": "Acme",\n'
            '    "entityType": "company",\n'
            '    "observations": []\n'
            "  }\n"
            "]"
        )


class TestErrors:
    """Domain and storage errors become failed results."""

    @pytest.mark.asyncio
    async def test_unknown_tool(self, dispatcher: ToolDispatcher) -> None:
        result = await dispatcher.call("drop_database", {})

        assert result.to_wire() == {
            "success": False,
            "error": "Unknown tool: drop_database",
            "errorDetailInUserLocale": "알 수 없는 도구: drop_database",
            "errorKind": "unknown_tool",
        }

    @pytest.mark.asyncio
    async def test_duplicate_entity_rendering(self, dispatcher: ToolDispatcher) -> None:
        await dispatcher.call("create_entities", {"entities": [ALICE]})

        result = await dispatcher.call("create_entities", {"entities": [ALICE]})

        assert result.error_kind == "duplicate_entity"
        assert result.render_text() == (
            'Entity with name "Alice" already exists\n'
            '"Alice" 이름을 가진 엔티티가 이미 존재합니다'
        )

    @pytest.mark.asyncio
    async def test_entities_not_found(self, dispatcher: ToolDispatcher) -> None:
        result = await dispatcher.call(
            "add_observations",
            {"observations": [{"entityName": "Ghost", "contents": ["boo"]}]},
        )

        assert result.error == 'Entities not found: ["Ghost"]'
        assert result.error_kind == "entities_not_found"

    @pytest.mark.asyncio
    async def test_english_locale_omits_localized_detail(
        self, manager: KnowledgeGraphManager
    ) -> None:
        dispatcher = ToolDispatcher(manager, error_locale="en")

        result = await dispatcher.call("open_nodes", {"names": ["Ghost"]})

        assert "errorDetailInUserLocale" not in result.to_wire()
        assert result.render_text() == 'Entities not found: ["Ghost"]'

    @pytest.mark.asyncio
    async def test_storage_failure(self, dispatcher: ToolDispatcher) -> None:
        storage = dispatcher.manager.persistence
        assert isinstance(storage, InMemoryStorage)
        storage.fail_next_save(PermissionDeniedError("/readonly/knowledge-graph.json"))

        result = await dispatcher.call("create_entities", {"entities": [ALICE]})

        assert result.error == (
            "Permission denied: Cannot write to /readonly/knowledge-graph.json"
        )
        assert result.error_kind == "persistence_write_error"

    @pytest.mark.asyncio
    async def test_unexpected_exception(
        self, dispatcher: ToolDispatcher, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def explode(query: str) -> None:
            raise RuntimeError("index exploded")

        monkeypatch.setattr(dispatcher.manager, "search_nodes", explode)

        result = await dispatcher.call("search_nodes", {"query": "x"})

        assert result.error == "Tool execution failed: index exploded"
        assert result.error_kind == "internal_error"


class TestOperationResult:
    """Tests for the result envelope itself."""

    def test_failure_without_locale_renders_error_only(self) -> None:
        assert OperationResult.fail("boom").render_text() == "boom"

    def test_success_keeps_non_ascii(self) -> None:
        assert OperationResult.ok({"name": "김철수"}).render_text() == '{\n  "name": "김철수"\n}'
