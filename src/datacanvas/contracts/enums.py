"""Kinds, modes and dispositions used across subsystem boundaries."""

from enum import StrEnum


class NodeKind(StrEnum):
    """Kind of node on the canvas.

    The kind selects which data variant a node carries:
    SOURCE -> SourceData, TRANSFORM -> TransformData, SINK -> SinkData.
    """

    SOURCE = "source"
    TRANSFORM = "transform"
    SINK = "sink"


class ChartKind(StrEnum):
    """Chart rendering style of a sink node."""

    BAR = "bar"
    LINE = "line"
    AREA = "area"
    PIE = "pie"
    SCATTER = "scatter"


class RunDisposition(StrEnum):
    """What happened to a delivered query outcome.

    Values:
        ACCEPTED: Result written to the node (last_result set, last_error cleared)
        FAILED: Executor error written to the node (last_error set, last_result cleared)
        STALE: Node deleted or rebound since the run was issued; nothing written
    """

    ACCEPTED = "accepted"
    FAILED = "failed"
    STALE = "stale"


class MutationCause(StrEnum):
    """Which GraphStore operation produced a new snapshot."""

    NODE_ADDED = "node_added"
    NODE_REMOVED = "node_removed"
    EDGE_ADDED = "edge_added"
    EDGE_REMOVED = "edge_removed"
    DATA_UPDATED = "data_updated"
    NODE_MOVED = "node_moved"


class NoticeSeverity(StrEnum):
    """Severity of a user-facing notice."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
