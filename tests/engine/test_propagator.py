# tests/engine/test_propagator.py
"""Tests for sink result propagation.

The store runs the propagator inside every commit, so most tests observe
it through GraphStore. A few call ``reconcile`` directly to check the
fixed-point property.
"""

from datacanvas.contracts import EdgeID, MutationCause, NodeID, NodeKind
from datacanvas.core.graph import Edge, Graph, GraphStore, Node, SinkData, SourceData, TransformData
from datacanvas.engine.propagator import ResultPropagator
from tests.conftest import RecordedEvents, make_result

SALES = make_result(["month", "sales"], [["jan", 10], ["feb", 12]])
REGIONS = make_result(["region", "total", "count"], [["north", 3, 1]])


def _chain(store: GraphStore) -> tuple[NodeID, NodeID]:
    """transform -> sink, returning both ids."""
    sql = store.add_node(NodeKind.TRANSFORM)
    chart = store.add_node(NodeKind.SINK)
    store.add_edge(sql, chart)
    return sql, chart


def _sink(store: GraphStore, node_id: NodeID) -> SinkData:
    data = store.graph.nodes[node_id].data
    assert isinstance(data, SinkData)
    return data


class TestPropagationThroughStore:
    def test_result_reaches_sink_in_same_commit(self, store: GraphStore, recorded: RecordedEvents) -> None:
        sql, chart = _chain(store)
        recorded.graph_changes.clear()

        store.update_node_data(sql, {"last_result": SALES})

        assert len(recorded.graph_changes) == 1
        event = recorded.graph_changes[0]
        assert event.cause == MutationCause.DATA_UPDATED
        sink = event.graph.nodes[chart].data
        assert isinstance(sink, SinkData)
        assert sink.bound_result == SALES

    def test_absent_to_present_picks_axes(self, store: GraphStore) -> None:
        sql, chart = _chain(store)
        assert _sink(store, chart).bound_result is None
        assert _sink(store, chart).x_field is None

        store.update_node_data(sql, {"last_result": SALES})

        sink = _sink(store, chart)
        assert sink.bound_result == SALES
        assert (sink.x_field, sink.y_field) == ("month", "sales")

    def test_chosen_axes_survive_new_result(self, store: GraphStore) -> None:
        sql, chart = _chain(store)
        store.update_node_data(sql, {"last_result": SALES})
        store.update_node_data(chart, {"x_field": "sales", "y_field": "month"})

        store.update_node_data(sql, {"last_result": REGIONS})

        sink = _sink(store, chart)
        assert sink.bound_result == REGIONS
        assert (sink.x_field, sink.y_field) == ("sales", "month")

    def test_failed_run_clears_sink(self, store: GraphStore) -> None:
        sql, chart = _chain(store)
        store.update_node_data(sql, {"last_result": SALES})

        store.update_node_data(sql, {"last_result": None, "last_error": "syntax error"})

        sink = _sink(store, chart)
        assert sink.bound_result is None
        assert sink.source_node_id == sql

    def test_every_bound_sink_refreshed(self, store: GraphStore) -> None:
        sql = store.add_node(NodeKind.TRANSFORM)
        charts = [store.add_node(NodeKind.SINK) for _ in range(3)]
        for chart in charts:
            store.add_edge(sql, chart)

        store.update_node_data(sql, {"last_result": SALES})

        assert all(_sink(store, chart).bound_result == SALES for chart in charts)

    def test_deleting_transform_unbinds_sink(self, store: GraphStore) -> None:
        sql, chart = _chain(store)
        store.update_node_data(sql, {"last_result": SALES})

        store.remove_node(sql)

        sink = _sink(store, chart)
        assert sink.source_node_id is None
        assert sink.bound_result is None

    def test_disconnecting_edge_unbinds_sink(self, store: GraphStore) -> None:
        sql = store.add_node(NodeKind.TRANSFORM, {"last_result": SALES})
        chart = store.add_node(NodeKind.SINK)
        edge_id = store.add_edge(sql, chart)
        assert edge_id is not None
        assert _sink(store, chart).bound_result == SALES

        store.remove_edge(edge_id)

        assert _sink(store, chart).source_node_id is None
        assert _sink(store, chart).bound_result is None

    def test_parallel_edge_keeps_binding(self, store: GraphStore) -> None:
        sql = store.add_node(NodeKind.TRANSFORM, {"last_result": SALES})
        chart = store.add_node(NodeKind.SINK)
        first = store.add_edge(sql, chart)
        store.add_edge(sql, chart)
        assert first is not None

        store.remove_edge(first)

        assert _sink(store, chart).source_node_id == sql
        assert _sink(store, chart).bound_result == SALES

    def test_equal_result_writes_nothing(self, store: GraphStore) -> None:
        sql, chart = _chain(store)
        store.update_node_data(sql, {"last_result": SALES})
        sink_before = store.graph.nodes[chart]

        # Structurally equal, but a different object.
        store.update_node_data(sql, {"last_result": make_result(["month", "sales"], [["jan", 10], ["feb", 12]])})

        assert store.graph.nodes[chart] is sink_before


class TestReconcile:
    def test_fixed_point_after_commit(self, store: GraphStore) -> None:
        sql, chart = _chain(store)
        store.update_node_data(sql, {"last_result": SALES})
        store.remove_node(sql)

        assert ResultPropagator().reconcile(store.graph) == []

    def test_unbound_sinks_ignored(self) -> None:
        graph = Graph().with_node(Node(NodeID("sink-1"), (0.0, 0.0), SinkData()))

        assert ResultPropagator().reconcile(graph) == []

    def test_sink_pointing_at_non_transform_unbound(self) -> None:
        source = Node(NodeID("source-1"), (0.0, 0.0), SourceData(path="/d/users.csv"))
        sink = Node(NodeID("sink-2"), (0.0, 0.0), SinkData(source_node_id=NodeID("source-1")))
        graph = Graph(
            nodes={source.node_id: source, sink.node_id: sink},
            edges=(Edge(EdgeID("edge-3"), source.node_id, sink.node_id),),
        )

        [command] = ResultPropagator().reconcile(graph)

        assert command.node_id == "sink-2"
        assert dict(command.patch) == {"source_node_id": None, "bound_result": None}

    def test_stale_copy_patched(self) -> None:
        transform = Node(NodeID("transform-1"), (0.0, 0.0), TransformData(last_result=REGIONS))
        sink = Node(
            NodeID("sink-2"),
            (0.0, 0.0),
            SinkData(source_node_id=NodeID("transform-1"), bound_result=SALES, x_field="month", y_field="sales"),
        )
        graph = Graph(
            nodes={transform.node_id: transform, sink.node_id: sink},
            edges=(Edge(EdgeID("edge-3"), transform.node_id, sink.node_id),),
        )

        [command] = ResultPropagator().reconcile(graph)

        assert dict(command.patch) == {"bound_result": REGIONS}
