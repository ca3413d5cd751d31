"""Unit tests for GraphStore."""

from knowledge_graph_server.knowledge.store import GraphStore
from knowledge_graph_server.schemas.graph import KnowledgeGraph
from tests.conftest import make_entity, make_relation


class TestEntityStorage:
    """Tests for inserting, replacing and removing entities."""

    def test_put_keeps_insertion_order(self) -> None:
        store = GraphStore()
        for name in ["c", "a", "b"]:
            store.put(make_entity(name))

        assert store.entity_names() == ["c", "a", "b"]
        assert store.entity_count == 3

    def test_put_same_name_overwrites_in_place(self) -> None:
        store = GraphStore()
        store.put(make_entity("a", "person"))
        store.put(make_entity("b"))
        store.put(make_entity("a", "robot"))

        assert store.entity_names() == ["a", "b"]
        assert store.get("a").entity_type == "robot"

    def test_remove_entity_cascades_relations(self) -> None:
        store = GraphStore()
        for name in ["a", "b", "c"]:
            store.put(make_entity(name))
        store.add_relation(make_relation("a", "b"))
        store.add_relation(make_relation("b", "c"))
        store.add_relation(make_relation("c", "a"))

        assert store.remove_entity("b") is True

        assert [r.key() for r in store.relations()] == [("c", "a", "knows")]

    def test_remove_unknown_entity_returns_false(self) -> None:
        store = GraphStore()
        assert store.remove_entity("ghost") is False


class TestRelationStorage:
    """Tests for relation bookkeeping."""

    def test_remove_relations_preserves_order_of_survivors(self) -> None:
        store = GraphStore()
        relations = [make_relation("a", "b", t) for t in ["r1", "r2", "r3", "r4"]]
        for relation in relations:
            store.add_relation(relation)

        removed = store.remove_relations(lambda r: r.relation_type in {"r1", "r3"})

        assert removed == 2
        assert [r.relation_type for r in store.relations()] == ["r2", "r4"]

    def test_dangling_relations(self) -> None:
        store = GraphStore()
        store.put(make_entity("a"))
        store.add_relation(make_relation("a", "missing"))

        assert [r.to for r in store.dangling_relations()] == ["missing"]


class TestSnapshots:
    """Tests for snapshot isolation and replacement."""

    def test_snapshot_does_not_share_observation_lists(self) -> None:
        store = GraphStore()
        store.put(make_entity("a", "person", "one"))

        snapshot = store.snapshot()
        snapshot.entities[0].observations.append("two")

        assert store.get("a").observations == ["one"]

    def test_replace_later_duplicates_win(self) -> None:
        store = GraphStore()
        graph = KnowledgeGraph(
            entities=[make_entity("a", "first"), make_entity("a", "second")],
            relations=[],
        )

        store.replace(graph)

        assert store.entity_count == 1
        assert store.get("a").entity_type == "second"
