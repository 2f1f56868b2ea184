"""Contracts for the two external collaborators the canvas calls out to.

These protocols are used for type checking; any object with matching
async methods can be handed to the Workspace.

- SchemaProvider: reads a data file's column names and types
- QueryExecutor: runs SQL against a data file exposed under a table name
"""

from typing import Protocol, runtime_checkable

from datacanvas.contracts.results import QueryResult, TableSchema


@runtime_checkable
class SchemaProvider(Protocol):
    """Reads the schema of a dropped file.

    Example:
        class StaticSchemas:
            async def fetch_schema(self, path: str) -> TableSchema:
                return TableSchema.of(["id", "name"], ["BIGINT", "VARCHAR"])
    """

    async def fetch_schema(self, path: str) -> TableSchema:
        """Return the ordered columns and declared types of ``path``.

        Raises:
            OSError: File is missing or unreadable
            FormatError: File is not readable as a table
        """
        ...


@runtime_checkable
class QueryExecutor(Protocol):
    """Runs a transform's query.

    The query has already had its placeholder replaced by ``table_name``;
    the executor must expose the file at ``input_path`` under that name.
    """

    async def run_query(self, query: str, table_name: str, input_path: str) -> QueryResult:
        """Execute ``query`` and return its full result.

        Raises:
            QueryError: The query (or the file behind it) could not be evaluated
        """
        ...
