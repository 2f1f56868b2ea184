# src/datacanvas/core/graph/store.py
"""GraphStore - the single writer of the canvas graph.

All mutations go through this class. Each one builds a new Graph value,
restores consistency (connection policy on edge creation, result
propagation on every change) and only then swaps the snapshot in and
publishes GraphChanged. Propagation patches are folded into the same
commit instead of being fed back through the store, which is what keeps
propagation from re-triggering itself.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, Protocol

from datacanvas.contracts.commands import UpdateNode
from datacanvas.contracts.enums import MutationCause, NodeKind
from datacanvas.contracts.events import GraphChanged
from datacanvas.contracts.types import EdgeID, NodeID, Position
from datacanvas.core.events import EventBusProtocol, NullEventBus
from datacanvas.core.graph.models import Edge, Graph, Node, NodeData, data_for_kind
from datacanvas.core.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = get_logger(__name__)

type ConnectionPolicy = Callable[[Node, Node], UpdateNode | None]
"""Decides what a new edge copies from its source node into its target node."""


class Reconciler(Protocol):
    """Computes the patches that make dependent nodes match their producers."""

    def reconcile(self, graph: Graph) -> list[UpdateNode]: ...


class GraphStore:
    """Owns the authoritative canvas graph.

    Readers call ``graph`` and get an immutable snapshot. Writers call the
    mutation methods; there is no other way to change the graph.

    Example:
        store = GraphStore()
        src = store.add_node(NodeKind.SOURCE, {"path": "/d/users.csv"}, (0, 0))
        sql = store.add_node(NodeKind.TRANSFORM, {}, (300, 0))
        store.add_edge(src, sql)
        store.graph.get(sql).data.table_name  # "users"
    """

    def __init__(
        self,
        *,
        event_bus: EventBusProtocol | None = None,
        connection_policy: ConnectionPolicy | None = None,
        propagator: Reconciler | None = None,
    ) -> None:
        if connection_policy is None:
            from datacanvas.engine.connection_policy import apply_connection_policy

            connection_policy = apply_connection_policy
        if propagator is None:
            from datacanvas.engine.propagator import ResultPropagator

            propagator = ResultPropagator()

        self._event_bus: EventBusProtocol = event_bus if event_bus is not None else NullEventBus()
        self._connection_policy = connection_policy
        self._propagator = propagator
        self._graph = Graph()
        # Shared by nodes and edges; ids are never handed out twice.
        self._sequence = itertools.count(1)

    @property
    def graph(self) -> Graph:
        """Current snapshot. Never mutated; replaced on every commit."""
        return self._graph

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._sequence)}"

    # -- mutations -----------------------------------------------------------

    def add_node(
        self,
        kind: NodeKind,
        initial_data: NodeData | Mapping[str, Any] | None = None,
        position: Position = (0.0, 0.0),
    ) -> NodeID:
        """Insert a new node and return its freshly allocated id.

        Args:
            kind: Node kind
            initial_data: Either a data variant instance of the right kind or
                a mapping of that variant's fields
            position: Canvas coordinates

        Raises:
            NodeDataError: If the mapping names fields ``kind`` does not carry
            ValueError: If a data variant of another kind is supplied
        """
        node_id = NodeID(self._next_id(kind.value))
        if initial_data is None:
            initial_data = {}
        if isinstance(initial_data, Mapping):
            data = data_for_kind(node_id, kind, initial_data)
        else:
            if initial_data.kind != kind:
                raise ValueError(f"Cannot add {kind} node with {initial_data.kind} data")
            data = initial_data

        node = Node(node_id=node_id, position=(float(position[0]), float(position[1])), data=data)
        self._commit(self._graph.with_node(node), MutationCause.NODE_ADDED, node_id)
        logger.debug("node_added", node_id=node_id, kind=kind.value)
        return node_id

    def remove_node(self, node_id: str) -> None:
        """Remove a node and its incident edges. Unknown ids are a no-op."""
        graph = self._graph.without_node(node_id)
        if graph is self._graph:
            return
        removed_edges = len(self._graph.edges) - len(graph.edges)
        self._commit(graph, MutationCause.NODE_REMOVED, NodeID(node_id))
        logger.debug("node_removed", node_id=node_id, edges_removed=removed_edges)

    def add_edge(self, source_id: str, target_id: str) -> EdgeID | None:
        """Link two nodes and apply the connection policy to the new edge.

        Returns None, leaving the graph unchanged, if either endpoint is
        missing. Duplicate and cycle-closing edges are accepted.
        """
        source = self._graph.get(source_id)
        target = self._graph.get(target_id)
        if source is None or target is None:
            logger.warning(
                "edge_rejected",
                source_id=source_id,
                target_id=target_id,
                reason="missing endpoint",
            )
            return None

        edge_id = EdgeID(self._next_id("edge"))
        graph = self._graph.with_edge(Edge(edge_id, source.node_id, target.node_id))

        cycle = graph.find_cycle()
        if cycle is not None:
            logger.warning("edge_forms_cycle", edge_id=edge_id, cycle=" -> ".join(cycle))

        command = self._connection_policy(source, target)
        if command is not None:
            graph = graph.with_node_data(command.node_id, command.patch)

        self._commit(graph, MutationCause.EDGE_ADDED, target.node_id)
        logger.debug("edge_added", edge_id=edge_id, source_id=source_id, target_id=target_id)
        return edge_id

    def remove_edge(self, edge_id: str) -> None:
        """Remove one edge by id. Unknown ids are a no-op."""
        edge = self._graph.get_edge(edge_id)
        if edge is None:
            return
        self._commit(self._graph.without_edge(edge_id), MutationCause.EDGE_REMOVED, edge.target_node_id)
        logger.debug("edge_removed", edge_id=edge_id)

    def update_node_data(self, node_id: str, patch: Mapping[str, Any]) -> None:
        """Shallow-merge ``patch`` into a node's data.

        A missing node is a no-op, which is what makes late async callbacks
        for deleted nodes harmless.

        Raises:
            NodeDataError: If the patch names fields the node's kind does not carry
        """
        graph = self._graph.with_node_data(node_id, patch)
        if graph is self._graph:
            return
        self._commit(graph, MutationCause.DATA_UPDATED, NodeID(node_id))

    def dispatch(self, command: UpdateNode) -> None:
        """Apply an UpdateNode command."""
        self.update_node_data(command.node_id, command.patch)

    def dispatch_all(self, commands: Iterable[UpdateNode]) -> None:
        for command in commands:
            self.dispatch(command)

    def move_node(self, node_id: str, position: Position) -> None:
        graph = self._graph.with_position(node_id, (float(position[0]), float(position[1])))
        if graph is self._graph:
            return
        self._commit(graph, MutationCause.NODE_MOVED, NodeID(node_id))

    # -- commit --------------------------------------------------------------

    def _commit(self, graph: Graph, cause: MutationCause, node_id: NodeID | None) -> None:
        """Propagate results into ``graph``, publish it, then notify listeners."""
        for command in self._propagator.reconcile(graph):
            graph = graph.with_node_data(command.node_id, command.patch)
        self._graph = graph
        self._event_bus.emit(GraphChanged(graph=graph, cause=cause, node_id=node_id))
