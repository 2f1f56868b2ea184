"""Observability events for the canvas.

These are emitted on the EventBus by the GraphStore and the Workspace and
consumed by the presentation layer (status bar, notices, redraw).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from datacanvas.contracts.enums import MutationCause, NoticeSeverity
from datacanvas.contracts.types import NodeID

if TYPE_CHECKING:
    from datacanvas.core.graph import Graph


@dataclass(frozen=True, slots=True)
class GraphChanged:
    """A mutation was committed and propagation has already run.

    Attributes:
        graph: The new snapshot
        cause: Which store operation produced it
        node_id: Node the mutation targeted, if any
    """

    graph: Graph
    cause: MutationCause
    node_id: NodeID | None = None


@dataclass(frozen=True, slots=True)
class UserNotice:
    """Message for the user about a rejected or failed action."""

    severity: NoticeSeverity
    message: str
    node_id: NodeID | None = None


@dataclass(frozen=True, slots=True)
class DropEvent:
    """Files dropped on the canvas at (x, y)."""

    paths: tuple[str, ...]
    x: float
    y: float
