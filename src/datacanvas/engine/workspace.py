"""Workspace - the canvas controller the presentation layer talks to.

Wires the GraphStore, ExecutionGate and event bus together and exposes
the user-facing operations: drop files, add nodes, connect, disconnect,
run, delete, plus the small edits a user makes inside a node (query
text, chart settings, position).

The presentation layer never writes results, bindings or the running
flag; those fields are reachable only through the store's own policy,
propagation and gate paths.
"""

from __future__ import annotations

import asyncio
from pathlib import PurePath
from typing import TYPE_CHECKING, Any

from datacanvas.contracts.enums import ChartKind, NodeKind, NoticeSeverity, RunDisposition
from datacanvas.contracts.errors import ValidationError
from datacanvas.contracts.events import DropEvent, UserNotice
from datacanvas.contracts.types import EdgeID, NodeID, Position
from datacanvas.core.config import CanvasSettings
from datacanvas.core.events import EventBus, EventBusProtocol
from datacanvas.core.graph.models import Graph, SinkData, TransformData
from datacanvas.core.graph.store import GraphStore
from datacanvas.core.logging import get_logger
from datacanvas.engine.gate import ExecutionGate
from datacanvas.engine.status import summarize_status

if TYPE_CHECKING:
    from datacanvas.plugins.protocols import QueryExecutor, SchemaProvider

logger = get_logger(__name__)


class Workspace:
    """One canvas: its graph, its async gate and its event stream.

    Example:
        workspace = Workspace(DuckDBSchemaProvider(), DuckDBQueryExecutor())
        workspace.event_bus.subscribe(GraphChanged, lambda e: redraw(e.graph))
        [src] = await workspace.handle_drop(DropEvent(("/d/users.csv",), 40, 40))
        sql = workspace.add_transform()
        workspace.connect(src, sql)
        await workspace.run_transform(sql)
        workspace.status()  # "1 file(s) | 1 query result(s)"
    """

    def __init__(
        self,
        schema_provider: SchemaProvider,
        executor: QueryExecutor,
        *,
        settings: CanvasSettings | None = None,
        event_bus: EventBusProtocol | None = None,
    ) -> None:
        self._settings = settings if settings is not None else CanvasSettings()
        self._event_bus: EventBusProtocol = event_bus if event_bus is not None else EventBus()
        self._store = GraphStore(event_bus=self._event_bus)
        self._gate = ExecutionGate(
            self._store,
            schema_provider,
            executor,
            event_bus=self._event_bus,
            placeholder_token=self._settings.placeholder_token,
        )

    @property
    def graph(self) -> Graph:
        """Current snapshot."""
        return self._store.graph

    @property
    def event_bus(self) -> EventBusProtocol:
        return self._event_bus

    @property
    def store(self) -> GraphStore:
        return self._store

    @property
    def gate(self) -> ExecutionGate:
        return self._gate

    def status(self) -> str:
        """Status bar text for the current snapshot."""
        return summarize_status(self._store.graph)

    # -- sources -------------------------------------------------------------

    def accepts_path(self, path: str) -> bool:
        """True if ``path`` has one of the configured file extensions."""
        return PurePath(path).suffix.lower() in self._settings.accepted_extensions

    async def handle_drop(self, event: DropEvent) -> list[NodeID]:
        """Create a source for every accepted path in a drop, all at (x, y).

        Unaccepted paths are skipped without notice. Schemas are fetched
        concurrently; paths whose schema cannot be read produce no node.

        Returns:
            Ids of the created sources, in the order the paths were dropped
        """
        accepted = [path for path in event.paths if self.accepts_path(path)]
        skipped = len(event.paths) - len(accepted)
        if skipped:
            logger.debug("drop_paths_ignored", count=skipped)
        created = await asyncio.gather(*(self._gate.create_source(path, (event.x, event.y)) for path in accepted))
        return [node_id for node_id in created if node_id is not None]

    async def add_source_from_path(self, path: str, position: Position = (0.0, 0.0)) -> NodeID | None:
        """Create a source for one file; None if it is not accepted or unreadable."""
        if not self.accepts_path(path):
            logger.debug("drop_paths_ignored", count=1)
            return None
        return await self._gate.create_source(path, position)

    # -- other nodes ---------------------------------------------------------

    def add_transform(self, position: Position | None = None, query_text: str | None = None) -> NodeID:
        data = TransformData(query_text=query_text if query_text is not None else self._settings.default_query)
        return self._store.add_node(
            NodeKind.TRANSFORM,
            data,
            position if position is not None else self._settings.transform_position,
        )

    def add_sink(self, position: Position | None = None, chart_kind: ChartKind | None = None) -> NodeID:
        data = SinkData(chart_kind=chart_kind if chart_kind is not None else self._settings.default_chart_kind)
        return self._store.add_node(
            NodeKind.SINK,
            data,
            position if position is not None else self._settings.sink_position,
        )

    def delete_node(self, node_id: str) -> None:
        self._store.remove_node(node_id)

    # -- edges ---------------------------------------------------------------

    def connect(self, source_id: str, target_id: str) -> EdgeID | None:
        """Link two nodes; None if either no longer exists."""
        return self._store.add_edge(source_id, target_id)

    def disconnect(self, edge_id: str) -> None:
        self._store.remove_edge(edge_id)

    # -- runs ----------------------------------------------------------------

    async def run_transform(self, node_id: str) -> RunDisposition | None:
        """Run a transform's query.

        A rejected run (unbound input, run already in flight, not a
        transform) is published as a UserNotice and returns None; the
        node's state is left untouched.
        """
        try:
            return await self._gate.run_transform(node_id)
        except ValidationError as exc:
            logger.info("run_rejected", node_id=node_id, reason=type(exc).__name__)
            self._event_bus.emit(UserNotice(NoticeSeverity.WARNING, exc.message, NodeID(node_id)))
            return None

    # -- in-node edits -------------------------------------------------------

    def set_query_text(self, node_id: str, query_text: str) -> None:
        """Replace a transform's query text.

        Raises:
            NodeDataError: If the node is not a transform
        """
        self._store.update_node_data(node_id, {"query_text": query_text})

    def configure_chart(
        self,
        node_id: str,
        *,
        chart_kind: ChartKind | None = None,
        x_field: str | None = None,
        y_field: str | None = None,
    ) -> None:
        """Change a sink's chart kind and/or axes; omitted arguments are kept.

        Raises:
            NodeDataError: If the node is not a sink
        """
        patch: dict[str, Any] = {}
        if chart_kind is not None:
            patch["chart_kind"] = ChartKind(chart_kind)
        if x_field is not None:
            patch["x_field"] = x_field
        if y_field is not None:
            patch["y_field"] = y_field
        if patch:
            self._store.update_node_data(node_id, patch)

    def move_node(self, node_id: str, position: Position) -> None:
        self._store.move_node(node_id, position)
