"""DuckDB-backed schema provider and query executor.

Each call opens a throw-away in-memory connection, so calls are
independent and safe to run on worker threads. The async methods hand
the blocking DuckDB work to ``asyncio.to_thread`` to keep the event loop
free while a file is scanned.
"""

from __future__ import annotations

import asyncio
import errno
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from pathlib import Path
from typing import Any

import duckdb

from datacanvas.contracts.errors import FormatError, QueryError
from datacanvas.contracts.results import QueryResult, TableSchema
from datacanvas.contracts.types import Scalar
from datacanvas.core.logging import get_logger

logger = get_logger(__name__)

# Table function used to scan each accepted file type.
_READERS: dict[str, str] = {
    ".csv": "read_csv_auto",
    ".parquet": "read_parquet",
    ".json": "read_json_auto",
}


def _quote_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def _quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def reader_sql(path: str) -> str:
    """``read_xxx('<path>')`` table function call for ``path``.

    Raises:
        FormatError: If the extension has no DuckDB reader
    """
    suffix = Path(path).suffix.lower()
    if suffix not in _READERS:
        raise FormatError(path, f"unsupported file type {suffix or '(none)'!r}")
    return f"{_READERS[suffix]}({_quote_literal(path)})"


def to_scalar(value: Any) -> Scalar:
    """Convert a DuckDB cell value to a chart-friendly scalar.

    Decimals become floats; temporal values become ISO strings; anything
    else that is not already a primitive is rendered with str().
    """
    if value is None or isinstance(value, str | bool | int | float):
        return value
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, datetime | date | time):
        return value.isoformat()
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, bytes):
        return value.hex()
    return str(value)


class DuckDBSchemaProvider:
    """Reads a file's schema with ``DESCRIBE SELECT * FROM read_xxx(path)``."""

    async def fetch_schema(self, path: str) -> TableSchema:
        return await asyncio.to_thread(self.describe, path)

    def describe(self, path: str) -> TableSchema:
        """Blocking schema read.

        Raises:
            FileNotFoundError: ``path`` is not an existing file
            FormatError: DuckDB cannot read the file as a table
        """
        if not Path(path).is_file():
            raise FileNotFoundError(errno.ENOENT, "No such file", path)
        source = reader_sql(path)
        with duckdb.connect(":memory:") as conn:
            try:
                described = conn.execute(f"DESCRIBE SELECT * FROM {source}").fetchall()
            except duckdb.Error as exc:
                raise FormatError(path, str(exc)) from exc
        # DESCRIBE rows: (column_name, column_type, null, key, default, extra)
        schema = TableSchema.of([row[0] for row in described], [row[1] for row in described])
        logger.debug("schema_described", path=path, columns=len(schema.columns))
        return schema


class DuckDBQueryExecutor:
    """Runs a query against a file exposed as a view named ``table_name``.

    Args:
        max_rows: Keep at most this many rows of a result (None keeps all).
            row_count still reports the full count.
    """

    def __init__(self, *, max_rows: int | None = None) -> None:
        if max_rows is not None and max_rows < 0:
            raise ValueError(f"max_rows must be non-negative, got {max_rows}")
        self._max_rows = max_rows

    async def run_query(self, query: str, table_name: str, input_path: str) -> QueryResult:
        return await asyncio.to_thread(self.execute, query, table_name, input_path)

    def execute(self, query: str, table_name: str, input_path: str) -> QueryResult:
        """Blocking query run.

        Raises:
            QueryError: Unreadable file, bad SQL, or a statement with no result set
        """
        try:
            source = reader_sql(input_path)
        except FormatError as exc:
            raise QueryError(str(exc)) from exc

        with duckdb.connect(":memory:") as conn:
            try:
                conn.execute(f"CREATE VIEW {_quote_identifier(table_name)} AS SELECT * FROM {source}")
                relation = conn.sql(query)
                if relation is None:
                    raise QueryError("Query did not return a result set")
                columns = list(relation.columns)
                column_types = [str(column_type) for column_type in relation.types]
                rows = relation.fetchall()
            except duckdb.Error as exc:
                raise QueryError(str(exc)) from exc

        row_count = len(rows)
        if self._max_rows is not None:
            rows = rows[: self._max_rows]
        return QueryResult.of(
            columns,
            column_types,
            [tuple(to_scalar(value) for value in row) for row in rows],
            row_count,
        )
