# src/datacanvas/core/graph/models.py
"""Node, edge and graph value types.

Leaf module for the graph package: everything here is a frozen value.
A Graph is never mutated; every ``with_*``/``without_*`` method returns a
new Graph that shares unchanged nodes with the old one. Readers holding a
snapshot therefore never see a half-applied mutation.

Node payloads are a tagged union. The variant class determines the node's
kind, so a sink can never carry query text and a source can never carry a
result.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field, fields, replace
from types import MappingProxyType
from typing import Any, ClassVar

import networkx as nx
from networkx import MultiDiGraph

from datacanvas.contracts.enums import ChartKind, NodeKind
from datacanvas.contracts.errors import NodeDataError
from datacanvas.contracts.results import ColumnSchema, QueryResult
from datacanvas.contracts.types import EdgeID, NodeID, Position

DEFAULT_QUERY = "SELECT * FROM input LIMIT 10"


class GraphIntegrityError(ValueError):
    """Raised when a graph value would contain an edge to a missing node."""


@dataclass(frozen=True, slots=True)
class SourceData:
    """A data file dropped on the canvas."""

    kind: ClassVar[NodeKind] = NodeKind.SOURCE

    path: str
    schema: tuple[ColumnSchema, ...] = ()
    label: str = ""


@dataclass(frozen=True, slots=True)
class TransformData:
    """A SQL step. Bound to a file by an inbound edge from a source."""

    kind: ClassVar[NodeKind] = NodeKind.TRANSFORM

    query_text: str = DEFAULT_QUERY
    input_path: str | None = None
    table_name: str | None = None
    last_result: QueryResult | None = None
    last_error: str | None = None
    running: bool = False

    @property
    def is_bound(self) -> bool:
        """True when both the input file and its table name are set."""
        return self.input_path is not None and self.table_name is not None


@dataclass(frozen=True, slots=True)
class SinkData:
    """A chart. ``bound_result`` caches the bound transform's last_result."""

    kind: ClassVar[NodeKind] = NodeKind.SINK

    chart_kind: ChartKind = ChartKind.BAR
    x_field: str | None = None
    y_field: str | None = None
    source_node_id: NodeID | None = None
    bound_result: QueryResult | None = None


type NodeData = SourceData | TransformData | SinkData

_VARIANTS: dict[NodeKind, type[SourceData] | type[TransformData] | type[SinkData]] = {
    NodeKind.SOURCE: SourceData,
    NodeKind.TRANSFORM: TransformData,
    NodeKind.SINK: SinkData,
}


def data_for_kind(node_id: str, kind: NodeKind, initial: Mapping[str, Any]) -> NodeData:
    """Build the data variant for ``kind`` from a plain mapping.

    Raises:
        NodeDataError: If the mapping names fields the variant does not have
    """
    variant = _VARIANTS[kind]
    allowed = {f.name for f in fields(variant)}
    unknown = tuple(sorted(set(initial) - allowed))
    if unknown:
        raise NodeDataError(node_id, kind.value, unknown)
    return variant(**initial)


def patch_data(node_id: str, data: NodeData, patch: Mapping[str, Any]) -> NodeData:
    """Shallow-merge ``patch`` into ``data``.

    Returns ``data`` itself when every patched value is already equal, so
    callers can detect a no-op by identity.

    Raises:
        NodeDataError: If the patch names fields the variant does not have
    """
    allowed = {f.name for f in fields(data)}
    unknown = tuple(sorted(set(patch) - allowed))
    if unknown:
        raise NodeDataError(node_id, data.kind.value, unknown)
    if all(getattr(data, name) == value for name, value in patch.items()):
        return data
    return replace(data, **patch)


@dataclass(frozen=True, slots=True)
class Node:
    """A node on the canvas. Its kind is the kind of its data variant."""

    node_id: NodeID
    position: Position
    data: NodeData

    @property
    def kind(self) -> NodeKind:
        return self.data.kind


@dataclass(frozen=True, slots=True)
class Edge:
    """A directed link from ``source_node_id`` to ``target_node_id``.

    Parallel edges between the same ordered pair are allowed; ``edge_id``
    tells them apart for disconnection.
    """

    edge_id: EdgeID
    source_node_id: NodeID
    target_node_id: NodeID

    @property
    def pair(self) -> tuple[NodeID, NodeID]:
        return (self.source_node_id, self.target_node_id)


@dataclass(frozen=True, slots=True)
class Graph:
    """Immutable snapshot of the canvas: id-keyed nodes plus ordered edges.

    Invariant: every edge's endpoints are present in ``nodes``. Enforced at
    construction, so no Graph value with a dangling edge can exist.
    """

    nodes: Mapping[NodeID, Node] = field(default_factory=dict)
    edges: tuple[Edge, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "nodes", MappingProxyType(dict(self.nodes)))
        object.__setattr__(self, "edges", tuple(self.edges))
        for edge in self.edges:
            if edge.source_node_id not in self.nodes or edge.target_node_id not in self.nodes:
                raise GraphIntegrityError(
                    f"Edge {edge.edge_id} references missing node(s): {edge.source_node_id} -> {edge.target_node_id}"
                )

    # -- reads ---------------------------------------------------------------

    def get(self, node_id: str) -> Node | None:
        """Node by id, or None if absent."""
        return self.nodes.get(NodeID(node_id))

    def has_node(self, node_id: str) -> bool:
        return node_id in self.nodes

    def nodes_of_kind(self, kind: NodeKind) -> tuple[Node, ...]:
        """Nodes of one kind, in insertion order."""
        return tuple(node for node in self.nodes.values() if node.kind == kind)

    def iter_nodes(self) -> Iterator[Node]:
        return iter(self.nodes.values())

    def get_edge(self, edge_id: str) -> Edge | None:
        for edge in self.edges:
            if edge.edge_id == edge_id:
                return edge
        return None

    def edges_between(self, source_id: str, target_id: str) -> tuple[Edge, ...]:
        return tuple(e for e in self.edges if e.source_node_id == source_id and e.target_node_id == target_id)

    def incoming(self, node_id: str) -> tuple[Edge, ...]:
        return tuple(e for e in self.edges if e.target_node_id == node_id)

    def outgoing(self, node_id: str) -> tuple[Edge, ...]:
        return tuple(e for e in self.edges if e.source_node_id == node_id)

    def to_networkx(self) -> MultiDiGraph[str]:
        """Frozen NetworkX view of the topology (edge keys are edge ids)."""
        graph: MultiDiGraph[str] = nx.MultiDiGraph()
        for node in self.nodes.values():
            graph.add_node(node.node_id, kind=node.kind)
        for edge in self.edges:
            graph.add_edge(edge.source_node_id, edge.target_node_id, key=edge.edge_id)
        return nx.freeze(graph)  # type: ignore[no-any-return]

    def find_cycle(self) -> list[NodeID] | None:
        """Node ids along one directed cycle, or None if the graph is acyclic."""
        try:
            cycle = nx.find_cycle(self.to_networkx(), orientation="original")
        except nx.NetworkXNoCycle:
            return None
        # MultiDiGraph yields (u, v, key, direction) tuples
        return [NodeID(step[0]) for step in cycle]

    # -- copy-on-write updates ----------------------------------------------

    def with_node(self, node: Node) -> Graph:
        """Insert or replace a node, keeping its place in iteration order."""
        nodes = dict(self.nodes)
        nodes[node.node_id] = node
        return Graph(nodes=nodes, edges=self.edges)

    def without_node(self, node_id: str) -> Graph:
        """Remove a node and every edge incident to it. Absent id: same graph."""
        if node_id not in self.nodes:
            return self
        nodes = {nid: node for nid, node in self.nodes.items() if nid != node_id}
        edges = tuple(e for e in self.edges if node_id not in e.pair)
        return Graph(nodes=nodes, edges=edges)

    def with_edge(self, edge: Edge) -> Graph:
        return Graph(nodes=self.nodes, edges=(*self.edges, edge))

    def without_edge(self, edge_id: str) -> Graph:
        """Remove one edge by id. Absent id: same graph."""
        edges = tuple(e for e in self.edges if e.edge_id != edge_id)
        if len(edges) == len(self.edges):
            return self
        return Graph(nodes=self.nodes, edges=edges)

    def with_node_data(self, node_id: str, patch: Mapping[str, Any]) -> Graph:
        """Shallow-merge ``patch`` into a node's data.

        Returns the same graph when the node is absent or the patch changes
        nothing.
        """
        node = self.get(node_id)
        if node is None:
            return self
        data = patch_data(node_id, node.data, patch)
        if data is node.data:
            return self
        return self.with_node(replace(node, data=data))

    def with_position(self, node_id: str, position: Position) -> Graph:
        node = self.get(node_id)
        if node is None or node.position == position:
            return self
        return self.with_node(replace(node, position=position))
