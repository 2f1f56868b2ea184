"""Exception taxonomy for the canvas core.

Failures are contained to the node that caused them. Nothing here is
raised for a stale query result: a late delivery is reported as
RunDisposition.STALE and dropped.
"""

from __future__ import annotations


class FormatError(ValueError):
    """Raised by a schema provider when a file cannot be read as a table.

    Missing or unreadable files are reported with the builtin OSError
    instead, so callers catch ``(OSError, FormatError)``.
    """

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read {path} as a table: {reason}")


class QueryError(Exception):
    """Raised by a query executor when a query fails.

    Attributes:
        message: Executor's message, shown on the failing node
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(ValueError):
    """A run was rejected locally and never reached the executor."""

    def __init__(self, node_id: str, message: str) -> None:
        self.node_id = node_id
        self.message = message
        super().__init__(message)


class InputNotBoundError(ValidationError):
    """Run requested on a transform with no connected file."""

    def __init__(self, node_id: str) -> None:
        super().__init__(node_id, f"Connect a file to {node_id} before running its query")


class RunInProgressError(ValidationError):
    """Run requested while the same transform already has a query in flight."""

    def __init__(self, node_id: str) -> None:
        super().__init__(node_id, f"A query is already running on {node_id}")


class NodeKindError(ValidationError):
    """Run requested on a node that is missing or is not a transform."""

    def __init__(self, node_id: str, kind: str | None) -> None:
        if kind is None:
            message = f"Node {node_id} does not exist"
        else:
            message = f"Node {node_id} is a {kind} node; only transform nodes can run queries"
        super().__init__(node_id, message)


class NodeDataError(ValueError):
    """A data patch names fields that the node's kind does not carry."""

    def __init__(self, node_id: str, kind: str, fields: tuple[str, ...]) -> None:
        self.node_id = node_id
        self.kind = kind
        self.fields = fields
        super().__init__(f"{kind} node {node_id} has no field(s): {', '.join(fields)}")
