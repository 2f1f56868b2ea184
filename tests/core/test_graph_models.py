# tests/core/test_graph_models.py
"""Tests for the immutable graph value types."""

import networkx as nx
import pytest

from datacanvas.contracts import ChartKind, EdgeID, NodeDataError, NodeID, NodeKind
from datacanvas.core.graph import (
    DEFAULT_QUERY,
    Edge,
    Graph,
    GraphIntegrityError,
    Node,
    SinkData,
    SourceData,
    TransformData,
)
from datacanvas.core.graph.models import data_for_kind, patch_data


def _node(node_id: str, data: SourceData | TransformData | SinkData) -> Node:
    return Node(node_id=NodeID(node_id), position=(0.0, 0.0), data=data)


def _edge(edge_id: str, source: str, target: str) -> Edge:
    return Edge(EdgeID(edge_id), NodeID(source), NodeID(target))


@pytest.fixture
def chain() -> Graph:
    """source-1 -> transform-2 -> sink-3"""
    return Graph(
        nodes={
            "source-1": _node("source-1", SourceData(path="/d/users.csv")),
            "transform-2": _node("transform-2", TransformData()),
            "sink-3": _node("sink-3", SinkData()),
        },
        edges=(_edge("edge-4", "source-1", "transform-2"), _edge("edge-5", "transform-2", "sink-3")),
    )


class TestNodeData:
    def test_kind_follows_variant(self) -> None:
        assert _node("a", SourceData(path="/x.csv")).kind == NodeKind.SOURCE
        assert _node("b", TransformData()).kind == NodeKind.TRANSFORM
        assert _node("c", SinkData()).kind == NodeKind.SINK

    def test_defaults(self) -> None:
        transform = TransformData()
        assert transform.query_text == DEFAULT_QUERY
        assert not transform.is_bound
        assert transform.running is False
        assert SinkData().chart_kind == ChartKind.BAR

    def test_data_for_kind_rejects_foreign_fields(self) -> None:
        """A sink can never carry query text."""
        with pytest.raises(NodeDataError, match="query_text"):
            data_for_kind("sink-1", NodeKind.SINK, {"query_text": "SELECT 1"})

    def test_patch_returns_same_object_when_unchanged(self) -> None:
        data = TransformData(query_text="SELECT 1")
        assert patch_data("t", data, {"query_text": "SELECT 1"}) is data

    def test_patch_is_shallow_merge(self) -> None:
        data = TransformData(query_text="SELECT 1", input_path="/d/a.csv", table_name="a")
        patched = patch_data("t", data, {"query_text": "SELECT 2"})
        assert patched == TransformData(query_text="SELECT 2", input_path="/d/a.csv", table_name="a")
        assert data.query_text == "SELECT 1"


class TestGraphInvariants:
    def test_empty_graph(self) -> None:
        graph = Graph()
        assert not graph.nodes
        assert graph.edges == ()

    def test_dangling_edge_cannot_be_constructed(self) -> None:
        with pytest.raises(GraphIntegrityError, match="missing node"):
            Graph(nodes={"a": _node("a", SinkData())}, edges=(_edge("e", "a", "ghost"),))

    def test_nodes_mapping_is_read_only(self, chain: Graph) -> None:
        with pytest.raises(TypeError):
            chain.nodes["x"] = _node("x", SinkData())  # type: ignore[index]


class TestGraphReads:
    def test_lookup(self, chain: Graph) -> None:
        assert chain.get("transform-2") is chain.nodes["transform-2"]
        assert chain.get("missing") is None
        assert chain.has_node("sink-3")

    def test_nodes_of_kind_in_insertion_order(self) -> None:
        graph = Graph(nodes={"b": _node("b", SinkData()), "a": _node("a", SinkData())})
        assert [n.node_id for n in graph.nodes_of_kind(NodeKind.SINK)] == ["b", "a"]

    def test_edge_queries(self, chain: Graph) -> None:
        assert chain.get_edge("edge-4") == _edge("edge-4", "source-1", "transform-2")
        assert chain.get_edge("edge-99") is None
        assert [e.edge_id for e in chain.incoming("transform-2")] == ["edge-4"]
        assert [e.edge_id for e in chain.outgoing("transform-2")] == ["edge-5"]
        assert len(chain.edges_between("transform-2", "sink-3")) == 1
        assert chain.edges_between("sink-3", "transform-2") == ()

    def test_to_networkx_is_frozen(self, chain: Graph) -> None:
        nx_graph = chain.to_networkx()
        assert nx_graph.number_of_nodes() == 3
        assert nx_graph.number_of_edges() == 2
        with pytest.raises(nx.NetworkXError):
            nx_graph.add_node("extra")

    def test_acyclic_chain_has_no_cycle(self, chain: Graph) -> None:
        assert chain.find_cycle() is None

    def test_cycle_found(self, chain: Graph) -> None:
        looped = chain.with_edge(_edge("edge-6", "sink-3", "source-1"))
        cycle = looped.find_cycle()
        assert cycle is not None
        assert set(cycle) == {"source-1", "transform-2", "sink-3"}


class TestCopyOnWrite:
    def test_without_node_cascades_edges(self, chain: Graph) -> None:
        smaller = chain.without_node("transform-2")
        assert not smaller.has_node("transform-2")
        assert smaller.edges == ()
        # original snapshot untouched
        assert chain.has_node("transform-2")
        assert len(chain.edges) == 2

    def test_without_missing_node_is_identity(self, chain: Graph) -> None:
        assert chain.without_node("ghost") is chain

    def test_without_edge(self, chain: Graph) -> None:
        assert [e.edge_id for e in chain.without_edge("edge-4").edges] == ["edge-5"]
        assert chain.without_edge("edge-99") is chain

    def test_with_node_data_shares_other_nodes(self, chain: Graph) -> None:
        updated = chain.with_node_data("transform-2", {"query_text": "SELECT 2"})
        assert updated.nodes["transform-2"].data.query_text == "SELECT 2"  # type: ignore[union-attr]
        assert updated.nodes["source-1"] is chain.nodes["source-1"]
        assert chain.nodes["transform-2"].data.query_text == DEFAULT_QUERY  # type: ignore[union-attr]

    def test_with_node_data_noop_cases(self, chain: Graph) -> None:
        assert chain.with_node_data("ghost", {"query_text": "x"}) is chain
        assert chain.with_node_data("transform-2", {"query_text": DEFAULT_QUERY}) is chain

    def test_with_node_data_rejects_foreign_field(self, chain: Graph) -> None:
        with pytest.raises(NodeDataError):
            chain.with_node_data("source-1", {"last_result": None})

    def test_with_position(self, chain: Graph) -> None:
        moved = chain.with_position("sink-3", (10.0, 20.0))
        assert moved.nodes["sink-3"].position == (10.0, 20.0)
        assert moved.with_position("sink-3", (10.0, 20.0)) is moved
