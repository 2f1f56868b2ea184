"""Shared contracts: identifiers, enums, result types, errors, events.

Leaf package. Nothing here imports from core/, engine/ or plugins/ at
runtime.
"""

from datacanvas.contracts.commands import UpdateNode
from datacanvas.contracts.enums import (
    ChartKind,
    MutationCause,
    NodeKind,
    NoticeSeverity,
    RunDisposition,
)
from datacanvas.contracts.errors import (
    FormatError,
    InputNotBoundError,
    NodeDataError,
    NodeKindError,
    QueryError,
    RunInProgressError,
    ValidationError,
)
from datacanvas.contracts.events import DropEvent, GraphChanged, UserNotice
from datacanvas.contracts.results import ColumnSchema, QueryResult, TableSchema
from datacanvas.contracts.types import EdgeID, NodeID, Position, Scalar

__all__ = [
    "ChartKind",
    "ColumnSchema",
    "DropEvent",
    "EdgeID",
    "FormatError",
    "GraphChanged",
    "InputNotBoundError",
    "MutationCause",
    "NodeDataError",
    "NodeID",
    "NodeKind",
    "NodeKindError",
    "NoticeSeverity",
    "Position",
    "QueryError",
    "QueryResult",
    "RunDisposition",
    "RunInProgressError",
    "Scalar",
    "TableSchema",
    "UpdateNode",
    "UserNotice",
    "ValidationError",
]
