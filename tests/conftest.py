# tests/conftest.py
"""Shared test fixtures and fakes.

The canvas talks to two external collaborators. Tests replace them with:

- FakeSchemaProvider: canned schemas per path, or a canned exception
- InstantExecutor: answers every query immediately from a lookup table
- GatedExecutor: parks every query on a future the test resolves later,
  which is how out-of-order and late deliveries are reproduced

Async code is driven with asyncio.run() from ordinary test functions.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import pytest

from datacanvas.contracts import (
    FormatError,
    GraphChanged,
    QueryError,
    QueryResult,
    TableSchema,
    UserNotice,
)
from datacanvas.core.events import EventBus
from datacanvas.core.graph import GraphStore

# =============================================================================
# Result helpers
# =============================================================================


def make_result(columns: Sequence[str], rows: Sequence[Sequence[Any]], types: Sequence[str] | None = None) -> QueryResult:
    """QueryResult with VARCHAR types unless given."""
    return QueryResult.of(columns, types if types is not None else ["VARCHAR"] * len(columns), rows)


USERS_SCHEMA = TableSchema.of(["id", "name", "age"], ["BIGINT", "VARCHAR", "INTEGER"])
ORDERS_SCHEMA = TableSchema.of(["order_id", "total"], ["BIGINT", "DOUBLE"])


# =============================================================================
# Fake collaborators
# =============================================================================


class FakeSchemaProvider:
    """SchemaProvider returning canned schemas.

    Unknown paths raise FileNotFoundError, the way a real provider reports
    a missing file. Entries that are exceptions are raised as-is.
    """

    def __init__(self, schemas: Mapping[str, TableSchema | Exception] | None = None) -> None:
        self._schemas = dict(schemas or {})
        self.calls: list[str] = []

    async def fetch_schema(self, path: str) -> TableSchema:
        self.calls.append(path)
        if path not in self._schemas:
            raise FileNotFoundError(2, "No such file", path)
        entry = self._schemas[path]
        if isinstance(entry, Exception):
            raise entry
        return entry


class InstantExecutor:
    """QueryExecutor that answers from a table keyed by rewritten query text.

    ``default`` answers queries missing from the table; a string value
    is raised as QueryError.
    """

    def __init__(
        self,
        answers: Mapping[str, QueryResult | str] | None = None,
        default: QueryResult | str | None = None,
    ) -> None:
        self._answers = dict(answers or {})
        self._default = default
        self.calls: list[tuple[str, str, str]] = []

    async def run_query(self, query: str, table_name: str, input_path: str) -> QueryResult:
        self.calls.append((query, table_name, input_path))
        answer = self._answers.get(query, self._default)
        if answer is None:
            raise QueryError(f"no canned answer for {query!r}")
        if isinstance(answer, str):
            raise QueryError(answer)
        return answer


@dataclass
class PendingCall:
    """One query parked on a GatedExecutor."""

    query: str
    table_name: str
    input_path: str
    future: asyncio.Future[QueryResult]

    def succeed(self, result: QueryResult) -> None:
        self.future.set_result(result)

    def fail(self, message: str) -> None:
        self.future.set_exception(QueryError(message))

    def crash(self, exc: BaseException) -> None:
        self.future.set_exception(exc)


@dataclass
class GatedExecutor:
    """QueryExecutor whose calls complete only when the test says so."""

    calls: list[PendingCall] = field(default_factory=list)

    async def run_query(self, query: str, table_name: str, input_path: str) -> QueryResult:
        future: asyncio.Future[QueryResult] = asyncio.get_running_loop().create_future()
        self.calls.append(PendingCall(query, table_name, input_path, future))
        return await future

    async def wait_for_calls(self, count: int) -> None:
        """Yield to the loop until ``count`` calls have arrived."""
        for _ in range(100):
            if len(self.calls) >= count:
                return
            await asyncio.sleep(0)
        raise AssertionError(f"expected {count} executor call(s), got {len(self.calls)}")


# =============================================================================
# Fixtures
# =============================================================================


@dataclass
class RecordedEvents:
    """Events captured from an EventBus."""

    graph_changes: list[GraphChanged] = field(default_factory=list)
    notices: list[UserNotice] = field(default_factory=list)


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def recorded(event_bus: EventBus) -> RecordedEvents:
    """Subscribe to every canvas event on ``event_bus``."""
    events = RecordedEvents()
    event_bus.subscribe(GraphChanged, events.graph_changes.append)
    event_bus.subscribe(UserNotice, events.notices.append)
    return events


@pytest.fixture
def store(event_bus: EventBus) -> GraphStore:
    return GraphStore(event_bus=event_bus)


@pytest.fixture
def schemas() -> FakeSchemaProvider:
    return FakeSchemaProvider(
        {
            "/d/users.csv": USERS_SCHEMA,
            "/d/orders.csv": ORDERS_SCHEMA,
            "/d/orders.parquet": ORDERS_SCHEMA,
            "/d/broken.json": FormatError("/d/broken.json", "unexpected character at line 1"),
        }
    )

