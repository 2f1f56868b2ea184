"""ExecutionGate - guards the asynchronous calls a node makes.

Two calls leave the event loop: reading a file's schema when a source is
created, and running a transform's query. For queries the gate:

- rejects the run locally when the transform has no bound file, or when a
  run for the same node is already in flight (no queueing, no cancelling);
- rewrites the ``input`` placeholder in the query to the bound table name;
- captures the request context (node id, input path, table name) at issue
  time in an immutable RunRequest;
- on delivery, re-checks that context against the *current* snapshot and
  drops the outcome as stale if the node is gone or was rebound.

The issue and delivery halves are separate methods so a caller that owns
its own scheduling can drive them directly; ``run_transform`` is the
awaitable composition of both.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from functools import lru_cache
from typing import TYPE_CHECKING

from datacanvas.contracts.enums import NodeKind, NoticeSeverity, RunDisposition
from datacanvas.contracts.errors import (
    FormatError,
    InputNotBoundError,
    NodeKindError,
    QueryError,
    RunInProgressError,
)
from datacanvas.contracts.events import UserNotice
from datacanvas.contracts.results import QueryResult
from datacanvas.contracts.types import NodeID, Position
from datacanvas.core.events import EventBusProtocol, NullEventBus
from datacanvas.core.graph.models import SourceData, TransformData
from datacanvas.core.logging import get_logger
from datacanvas.engine.connection_policy import derive_table_name

if TYPE_CHECKING:
    from datacanvas.core.graph.store import GraphStore
    from datacanvas.plugins.protocols import QueryExecutor, SchemaProvider

logger = get_logger(__name__)

DEFAULT_PLACEHOLDER = "input"


@lru_cache(maxsize=8)
def _placeholder_pattern(token: str) -> re.Pattern[str]:
    # Word boundary = neither side is an ASCII letter, digit or underscore.
    return re.compile(rf"(?<![A-Za-z0-9_]){re.escape(token)}(?![A-Za-z0-9_])", re.IGNORECASE)


def rewrite_placeholder(query_text: str, table_name: str, token: str = DEFAULT_PLACEHOLDER) -> str:
    """Replace every whole-word, case-insensitive ``token`` with ``table_name``.

    Example:
        >>> rewrite_placeholder("SELECT * FROM input WHERE inputId > 1", "orders")
        'SELECT * FROM orders WHERE inputId > 1'
    """
    return _placeholder_pattern(token).sub(lambda _match: table_name, query_text)


@dataclass(frozen=True, slots=True)
class RunRequest:
    """Immutable context of one issued query run.

    Attributes:
        node_id: Transform the run belongs to
        input_path: File bound to the transform when the run was issued
        table_name: Table name bound when the run was issued
        query: Query text after placeholder rewriting
        request_id: Distinguishes successive runs of the same node
    """

    node_id: NodeID
    input_path: str
    table_name: str
    query: str
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex)


class ExecutionGate:
    """At most one in-flight run per transform; late results are discarded."""

    def __init__(
        self,
        store: GraphStore,
        schema_provider: SchemaProvider,
        executor: QueryExecutor,
        *,
        event_bus: EventBusProtocol | None = None,
        placeholder_token: str = DEFAULT_PLACEHOLDER,
    ) -> None:
        self._store = store
        self._schema_provider = schema_provider
        self._executor = executor
        self._event_bus: EventBusProtocol = event_bus if event_bus is not None else NullEventBus()
        self._placeholder_token = placeholder_token
        self._in_flight: dict[NodeID, RunRequest] = {}

    def in_flight(self, node_id: str) -> RunRequest | None:
        """The run currently outstanding for ``node_id``, if any."""
        return self._in_flight.get(NodeID(node_id))

    # -- sources -------------------------------------------------------------

    async def create_source(self, path: str, position: Position) -> NodeID | None:
        """Read ``path``'s schema and add a source node for it.

        On a read failure no node is created; the failure is logged and
        published as a UserNotice. There is no retry.
        """
        label = derive_label(path)
        try:
            schema = await self._schema_provider.fetch_schema(path)
        except (OSError, FormatError) as exc:
            logger.warning("schema_fetch_failed", path=path, error=str(exc), error_type=type(exc).__name__)
            self._event_bus.emit(UserNotice(NoticeSeverity.ERROR, f"Could not load {label}: {exc}"))
            return None

        node_id = self._store.add_node(
            NodeKind.SOURCE,
            SourceData(path=path, schema=schema.as_columns(), label=label),
            position,
        )
        logger.info("source_created", node_id=node_id, path=path, columns=len(schema.columns))
        return node_id

    # -- queries -------------------------------------------------------------

    def begin_run(self, node_id: str) -> RunRequest:
        """Validate and issue a run, marking the transform as running.

        Raises:
            NodeKindError: Node is missing or is not a transform
            RunInProgressError: A run for this node is already in flight
            InputNotBoundError: No file is connected to the transform
        """
        node = self._store.graph.get(node_id)
        if node is None:
            raise NodeKindError(node_id, None)
        data = node.data
        if not isinstance(data, TransformData):
            raise NodeKindError(node_id, node.kind.value)
        if data.running:
            raise RunInProgressError(node_id)
        if data.input_path is None or data.table_name is None:
            raise InputNotBoundError(node_id)

        request = RunRequest(
            node_id=node.node_id,
            input_path=data.input_path,
            table_name=data.table_name,
            query=rewrite_placeholder(data.query_text, data.table_name, self._placeholder_token),
        )
        self._in_flight[node.node_id] = request
        self._store.update_node_data(node.node_id, {"running": True})
        logger.info("run_issued", node_id=node.node_id, table_name=request.table_name, request_id=request.request_id)
        return request

    def deliver(
        self,
        request: RunRequest,
        *,
        result: QueryResult | None = None,
        error: str | None = None,
    ) -> RunDisposition:
        """Write a run's outcome if ``request`` still matches the current graph.

        Exactly one of ``result`` and ``error`` must be given. A failure
        clears last_result so a stale table is never shown next to an error.

        Returns:
            ACCEPTED or FAILED when written, STALE when discarded
        """
        if (result is None) == (error is None):
            raise ValueError("deliver() takes exactly one of result or error")

        if not self._is_current(request):
            logger.debug("run_stale", node_id=request.node_id, request_id=request.request_id)
            self._release(request)
            return RunDisposition.STALE

        del self._in_flight[request.node_id]
        if result is not None:
            self._store.update_node_data(
                request.node_id,
                {"last_result": result, "last_error": None, "running": False},
            )
            logger.info("run_accepted", node_id=request.node_id, row_count=result.row_count)
            return RunDisposition.ACCEPTED

        self._store.update_node_data(
            request.node_id,
            {"last_result": None, "last_error": error, "running": False},
        )
        logger.warning("run_failed", node_id=request.node_id, error=error)
        return RunDisposition.FAILED

    async def run_transform(self, node_id: str) -> RunDisposition:
        """Issue a run, await the executor, and deliver its outcome.

        Raises:
            ValidationError: When the run is rejected before reaching the executor
        """
        request = self.begin_run(node_id)
        try:
            result = await self._executor.run_query(request.query, request.table_name, request.input_path)
        except QueryError as exc:
            return self.deliver(request, error=exc.message)
        except BaseException:
            # Executor bug or cancellation: free the node, then propagate.
            self._release(request)
            raise
        return self.deliver(request, result=result)

    def _is_current(self, request: RunRequest) -> bool:
        if self._in_flight.get(request.node_id) is not request:
            return False
        node = self._store.graph.get(request.node_id)
        if node is None or not isinstance(node.data, TransformData):
            return False
        return node.data.input_path == request.input_path and node.data.table_name == request.table_name

    def _release(self, request: RunRequest) -> None:
        """Clear the running flag, but only if ``request`` is still the node's run."""
        if self._in_flight.get(request.node_id) is not request:
            return
        del self._in_flight[request.node_id]
        self._store.update_node_data(request.node_id, {"running": False})


def derive_label(path: str) -> str:
    """Display label for a source: the file's base name."""
    return re.split(r"[\\/]+", path.rstrip("\\/"))[-1]
