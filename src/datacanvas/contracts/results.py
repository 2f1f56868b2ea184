"""Result contracts exchanged with the schema provider and query executor.

Both types are frozen and hold tuples only, so dataclass equality is a
structural (deep) comparison. The result propagator relies on this to
decide whether a sink's cached copy is out of date.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from datacanvas.contracts.types import Scalar


@dataclass(frozen=True, slots=True)
class ColumnSchema:
    """One column of a file's schema as reported by the schema provider."""

    name: str
    declared_type: str


@dataclass(frozen=True, slots=True)
class TableSchema:
    """Ordered column names with their positionally aligned declared types."""

    columns: tuple[str, ...]
    column_types: tuple[str, ...]

    def __post_init__(self) -> None:
        if len(self.columns) != len(self.column_types):
            raise ValueError(
                f"TableSchema has {len(self.columns)} columns but {len(self.column_types)} column types"
            )

    @classmethod
    def of(cls, columns: Iterable[str], column_types: Iterable[str]) -> TableSchema:
        """Build a schema from any iterables (lists from a backend, typically)."""
        return cls(columns=tuple(columns), column_types=tuple(column_types))

    def as_columns(self) -> tuple[ColumnSchema, ...]:
        """Zip names and types into ColumnSchema entries, preserving order."""
        return tuple(ColumnSchema(name, declared) for name, declared in zip(self.columns, self.column_types, strict=True))


@dataclass(frozen=True, slots=True)
class QueryResult:
    """Tabular output of a SQL transform.

    Attributes:
        columns: Ordered column names
        column_types: Declared types, aligned with columns
        rows: Ordered rows, each a tuple of scalars aligned with columns
        row_count: Number of rows reported by the executor
    """

    columns: tuple[str, ...]
    column_types: tuple[str, ...]
    rows: tuple[tuple[Scalar, ...], ...]
    row_count: int

    def __post_init__(self) -> None:
        if len(self.columns) != len(self.column_types):
            raise ValueError(
                f"QueryResult has {len(self.columns)} columns but {len(self.column_types)} column types"
            )
        width = len(self.columns)
        for index, row in enumerate(self.rows):
            if len(row) != width:
                raise ValueError(f"QueryResult row {index} has {len(row)} values, expected {width}")
        if self.row_count < 0:
            raise ValueError(f"row_count must be non-negative, got {self.row_count}")

    @classmethod
    def of(
        cls,
        columns: Sequence[str],
        column_types: Sequence[str],
        rows: Iterable[Sequence[Scalar]],
        row_count: int | None = None,
    ) -> QueryResult:
        """Build a result from list-shaped backend output.

        row_count defaults to the number of rows supplied.
        """
        frozen_rows = tuple(tuple(row) for row in rows)
        return cls(
            columns=tuple(columns),
            column_types=tuple(column_types),
            rows=frozen_rows,
            row_count=len(frozen_rows) if row_count is None else row_count,
        )

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> QueryResult:
        """Build a result from an executor's record-shaped payload.

        Accepts both ``row_count`` and ``rowCount`` spellings, and both
        ``column_types`` and ``columnTypes``.
        """
        column_types = payload["column_types"] if "column_types" in payload else payload["columnTypes"]
        if "row_count" in payload:
            row_count = payload["row_count"]
        elif "rowCount" in payload:
            row_count = payload["rowCount"]
        else:
            row_count = None
        return cls.of(payload["columns"], column_types, payload["rows"], row_count)

    def records(self) -> list[dict[str, Scalar]]:
        """Rows as ``{column: value}`` dicts, in row order."""
        return [dict(zip(self.columns, row, strict=True)) for row in self.rows]
