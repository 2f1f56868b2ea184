"""External collaborators: schema provider and query executor."""

from datacanvas.plugins.duckdb_backend import DuckDBQueryExecutor, DuckDBSchemaProvider
from datacanvas.plugins.protocols import QueryExecutor, SchemaProvider

__all__ = [
    "DuckDBQueryExecutor",
    "DuckDBSchemaProvider",
    "QueryExecutor",
    "SchemaProvider",
]
