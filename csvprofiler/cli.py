"""
csvprofiler CLI — command-line transport for the profiling service.

Commands
--------
- ``profile`` — profile a CSV file (or stdin) and store the result.
- ``show`` — print a stored analysis.
- ``export`` — write a stored analysis as a JSON document.
- ``delete`` — remove a stored analysis.

Usage::

    csvprofiler profile scores.csv
    csvprofiler --db ./profiles.db show 3 --json
    csvprofiler export 3 -o analysis.json
    csvprofiler delete 3

Settings come from ``CSVPROFILER_*`` environment variables (a ``.env``
file is loaded first); ``--db`` overrides the database path.
"""

from __future__ import annotations

import dataclasses
import json
import logging
from typing import IO, NoReturn

import click
from dotenv import find_dotenv, load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from csvprofiler.config import ProfilerConfig
from csvprofiler.errors import ProfilerError, StoreError
from csvprofiler.models.result import AnalysisResult
from csvprofiler.service import ProfilingService
from csvprofiler.store.duck_store import DuckStore

console = Console()
err_console = Console(stderr=True)


# ── Shared options ───────────────────────────────────────────────────

@click.group()
@click.version_option(package_name="csvprofiler")
@click.option("--db", "db_path", default=None, help="DuckDB file path (overrides CSVPROFILER_DUCKDB_PATH).")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, db_path: str | None, verbose: bool) -> None:
    """csvprofiler — profile CSV data and deduplicate by content."""
    load_dotenv(find_dotenv(usecwd=True))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        config = ProfilerConfig.from_env()
    except ValueError as e:
        raise click.UsageError(str(e)) from e
    if db_path is not None:
        config = dataclasses.replace(config, duckdb_path=db_path)

    ctx.obj = config


def _open_service(ctx: click.Context) -> ProfilingService:
    config: ProfilerConfig = ctx.obj
    store = DuckStore.from_config(config)
    ctx.call_on_close(store.close)
    return ProfilingService(store, config)


def _fail(ctx: click.Context, error: ProfilerError) -> NoReturn:
    err_console.print(f"[red]Error: {escape(error.message)}[/]")
    ctx.exit(3 if isinstance(error, StoreError) else 1)


# ── Rendering ────────────────────────────────────────────────────────

def _fmt(value: float | None) -> str:
    return "—" if value is None else f"{value:.6g}"


def _render(result: AnalysisResult) -> None:
    status = "[yellow]already profiled[/]" if result.already_exists else "[green]new[/]"
    console.print(
        f"[bold]Analysis {result.id}[/] ({status}) — "
        f"{result.row_count} rows, {result.column_count} columns, "
        f"{result.total_characters} characters, "
        f"created {result.created_at.isoformat(timespec='seconds')}"
    )

    table = Table()
    table.add_column("Column")
    table.add_column("Nulls", justify="right")
    table.add_column("Unique", justify="right")
    table.add_column("Numeric")
    table.add_column("Min", justify="right")
    table.add_column("Max", justify="right")
    table.add_column("Mean", justify="right")
    table.add_column("Median", justify="right")
    table.add_column("Std", justify="right")
    table.add_column("Percentiles", style="dim")

    for col in result.columns:
        pcts = col.percentiles
        table.add_row(
            escape(col.name),
            str(col.null_count),
            str(col.unique_count),
            "yes" if col.is_numeric else "no",
            _fmt(col.min),
            _fmt(col.max),
            _fmt(col.mean),
            _fmt(col.median),
            _fmt(col.standard_deviation),
            " ".join(_fmt(p) for p in pcts) if pcts is not None else "—",
        )
    console.print(table)


def _emit(result: AnalysisResult, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        _render(result)


# ── profile ──────────────────────────────────────────────────────────

@main.command("profile")
@click.argument("source", type=click.File("rb"))
@click.option("--json", "as_json", is_flag=True, help="Print the JSON document instead of a table.")
@click.pass_context
def profile(ctx: click.Context, source: IO[bytes], as_json: bool) -> None:
    """Profile a CSV file (use '-' for stdin)."""
    # Read bytes so line endings reach the engine untouched.
    try:
        raw = source.read().decode("utf-8")
    except UnicodeDecodeError as e:
        raise click.BadParameter(f"input is not valid UTF-8 ({e.reason})", param_hint="SOURCE") from e

    try:
        result = _open_service(ctx).profile(raw)
    except ProfilerError as e:
        _fail(ctx, e)
    _emit(result, as_json)


# ── show ─────────────────────────────────────────────────────────────

@main.command("show")
@click.argument("analysis_id", type=int)
@click.option("--json", "as_json", is_flag=True, help="Print the JSON document instead of a table.")
@click.pass_context
def show(ctx: click.Context, analysis_id: int, as_json: bool) -> None:
    """Print a stored analysis."""
    try:
        result = _open_service(ctx).get_by_id(analysis_id)
    except ProfilerError as e:
        _fail(ctx, e)
    _emit(result, as_json)


# ── export ───────────────────────────────────────────────────────────

@main.command("export")
@click.argument("analysis_id", type=int)
@click.option("-o", "--output", type=click.File("w", encoding="utf-8"), default="-", show_default=True,
              help="Destination file.")
@click.pass_context
def export(ctx: click.Context, analysis_id: int, output: IO[str]) -> None:
    """Write a stored analysis as an indented JSON document."""
    try:
        document = _open_service(ctx).export_json(analysis_id)
    except ProfilerError as e:
        _fail(ctx, e)
    output.write(document + "\n")


# ── delete ───────────────────────────────────────────────────────────

@main.command("delete")
@click.argument("analysis_id", type=int)
@click.pass_context
def delete(ctx: click.Context, analysis_id: int) -> None:
    """Delete a stored analysis."""
    try:
        _open_service(ctx).delete_by_id(analysis_id)
    except ProfilerError as e:
        _fail(ctx, e)
    console.print(f"[bold green]✓[/] Deleted analysis {analysis_id}")


if __name__ == "__main__":
    main()
