# src/datacanvas/cli.py
"""DataCanvas Command Line Interface.

Headless access to the canvas engine: inspect a file's schema, or build a
file -> SQL -> chart pipeline, run it, and print what the canvas would show.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

import typer
from pydantic import ValidationError

from datacanvas import __version__
from datacanvas.contracts import ChartKind, FormatError, RunDisposition, UserNotice
from datacanvas.core.config import DataCanvasSettings, load_settings
from datacanvas.core.graph.models import SinkData, TransformData

__all__ = ["app"]

app = typer.Typer(
    name="datacanvas",
    help="DataCanvas: file sources, SQL transforms and charts on one canvas.",
    no_args_is_help=True,
)


@dataclass
class _CliState:
    settings: DataCanvasSettings = field(default_factory=DataCanvasSettings)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"datacanvas version {__version__}")
        raise typer.Exit()


def _load_dotenv(env_file: Path | None = None) -> bool:
    """Load environment variables from a .env file without overriding existing ones.

    Raises:
        typer.Exit: If an explicit env_file does not exist.
    """
    from dotenv import load_dotenv

    if env_file is not None:
        if not env_file.exists():
            typer.secho(f"Error: .env file not found: {env_file}", fg=typer.colors.RED, err=True)
            raise typer.Exit(1)
        return load_dotenv(env_file, override=False)
    return load_dotenv(override=False)


@app.callback()
def main(
    ctx: typer.Context,
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to settings YAML file.",
    ),
    no_dotenv: bool = typer.Option(
        False,
        "--no-dotenv",
        help="Skip loading .env file.",
    ),
    env_file: Path | None = typer.Option(
        None,
        "--env-file",
        help="Path to .env file (skips automatic search).",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging (overrides the configured level).",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs.",
    ),
) -> None:
    """DataCanvas: file sources, SQL transforms and charts on one canvas."""
    from datacanvas.core.logging import configure_logging

    # Settings may reference ${VARS} from .env, so load it first.
    if not no_dotenv:
        _load_dotenv(env_file=env_file)

    settings = DataCanvasSettings()
    if config is not None:
        try:
            settings = load_settings(config)
        except FileNotFoundError as exc:
            typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
            raise typer.Exit(1) from None
        except ValidationError as exc:
            typer.secho(f"Invalid configuration in {config}:\n{exc}", fg=typer.colors.RED, err=True)
            raise typer.Exit(1) from None

    configure_logging(
        json_output=json_logs or settings.logging.json_output,
        level="DEBUG" if verbose else settings.logging.level,
    )
    ctx.obj = _CliState(settings=settings)


def _state(ctx: typer.Context) -> _CliState:
    if isinstance(ctx.obj, _CliState):
        return ctx.obj
    return _CliState()


@app.command()
def schema(
    path: Path = typer.Argument(..., help="CSV, Parquet or JSON file."),
) -> None:
    """Print a file's columns and their types."""
    from datacanvas.plugins.duckdb_backend import DuckDBSchemaProvider

    try:
        table = DuckDBSchemaProvider().describe(str(path))
    except (OSError, FormatError) as exc:
        typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from None

    width = max((len(name) for name in table.columns), default=0)
    for name, declared in zip(table.columns, table.column_types, strict=True):
        typer.echo(f"{name.ljust(width)}  {declared}")


@app.command()
def query(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="CSV, Parquet or JSON file."),
    sql: str | None = typer.Option(
        None,
        "--sql",
        "-q",
        help="Query text; 'input' refers to the file. Defaults to the configured default query.",
    ),
    chart: ChartKind | None = typer.Option(
        None,
        "--chart",
        help="Chart kind of the sink node.",
    ),
    max_rows: int | None = typer.Option(
        None,
        "--max-rows",
        min=0,
        help="Keep at most this many rows of the result.",
    ),
    output_format: Literal["console", "json"] = typer.Option(
        "console",
        "--format",
        "-f",
        help="Output format: 'console' (table) or 'json'.",
    ),
) -> None:
    """Run a one-off file -> SQL -> chart pipeline and print the result."""
    from datacanvas.core.events import EventBus
    from datacanvas.engine.workspace import Workspace
    from datacanvas.plugins.duckdb_backend import DuckDBQueryExecutor, DuckDBSchemaProvider

    settings = _state(ctx).settings
    bus = EventBus()
    notices: list[UserNotice] = []
    bus.subscribe(UserNotice, notices.append)
    workspace = Workspace(
        DuckDBSchemaProvider(),
        DuckDBQueryExecutor(max_rows=max_rows),
        settings=settings.canvas,
        event_bus=bus,
    )

    async def _build_and_run() -> tuple[str | None, str | None, RunDisposition | None]:
        source_id = await workspace.add_source_from_path(str(path), (0.0, 0.0))
        if source_id is None:
            return None, None, None
        transform_id = workspace.add_transform(query_text=sql)
        sink_id = workspace.add_sink(chart_kind=chart)
        workspace.connect(source_id, transform_id)
        workspace.connect(transform_id, sink_id)
        disposition = await workspace.run_transform(transform_id)
        return transform_id, sink_id, disposition

    transform_id, sink_id, disposition = asyncio.run(_build_and_run())

    for notice in notices:
        typer.secho(notice.message, fg=typer.colors.YELLOW, err=True)
    if transform_id is None or sink_id is None:
        if not notices:
            typer.secho(f"Error: {path} is not an accepted file type", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    transform = workspace.graph.get(transform_id)
    sink = workspace.graph.get(sink_id)
    assert transform is not None and isinstance(transform.data, TransformData)
    assert sink is not None and isinstance(sink.data, SinkData)

    if disposition is not RunDisposition.ACCEPTED or transform.data.last_result is None:
        typer.secho(f"Query failed: {transform.data.last_error}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    result = transform.data.last_result
    if output_format == "json":
        payload = {
            "columns": list(result.columns),
            "column_types": list(result.column_types),
            "rows": [list(row) for row in result.rows],
            "row_count": result.row_count,
            "chart": {"kind": sink.data.chart_kind.value, "x": sink.data.x_field, "y": sink.data.y_field},
            "status": workspace.status(),
        }
        typer.echo(json.dumps(payload, default=str))
        return

    _echo_table(result.columns, result.rows)
    typer.echo(f"({result.row_count} row(s))")
    typer.echo(f"chart: {sink.data.chart_kind.value} x={sink.data.x_field} y={sink.data.y_field}")
    typer.echo(f"status: {workspace.status()}")


def _echo_table(columns: tuple[str, ...], rows: tuple[tuple[object, ...], ...]) -> None:
    cells = [[str(value) for value in row] for row in rows]
    widths = [len(name) for name in columns]
    for row in cells:
        widths = [max(width, len(cell)) for width, cell in zip(widths, row, strict=True)]
    typer.echo("  ".join(name.ljust(width) for name, width in zip(columns, widths, strict=True)))
    typer.echo("  ".join("-" * width for width in widths))
    for row in cells:
        typer.echo("  ".join(cell.ljust(width) for cell, width in zip(row, widths, strict=True)))


if __name__ == "__main__":
    app()
