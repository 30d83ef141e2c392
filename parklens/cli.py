"""[Layer: Presentation] Typer CLI Commands."""

import asyncio
import json
from importlib.metadata import PackageNotFoundError, version as get_package_version
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, TypeVar

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from parklens.core.engine import Engine
from parklens.core.search import SemanticSearchOptions
from parklens.exceptions import ParklensError, error_to_dict
from parklens.models import Entity, parse_entity

T = TypeVar("T")

console = Console()
err_console = Console(stderr=True)


def _get_version() -> str:
    """Get version from package metadata (single source of truth: pyproject.toml)."""
    try:
        return get_package_version("parklens")
    except PackageNotFoundError:
        return "0.0.0-dev"


def _version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"parklens {_get_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="parklens",
    help="Semantic search over theme-park attractions, dining, shows and hotels.",
    no_args_is_help=True,
)


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """parklens command line."""


def _run_with_engine(action: Callable[[Engine], Awaitable[T]]) -> T:
    """Run ``action`` against a fresh engine; report library errors and exit 1."""

    async def _runner() -> T:
        async with Engine() as engine:
            return await action(engine)

    try:
        return asyncio.run(_runner())
    except ParklensError as e:
        payload = error_to_dict(e)
        err_console.print(f"[red]{payload['error']}:[/red] {payload['message']}")
        raise typer.Exit(1) from e


def _read_entities(path: Path) -> list[Entity]:
    try:
        raw: Any = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        err_console.print(f"[red]Cannot read {path}:[/red] {e}")
        raise typer.Exit(1) from e
    if isinstance(raw, dict):
        raw = [raw]
    if not isinstance(raw, list):
        err_console.print("[red]Expected a JSON list of entities[/red]")
        raise typer.Exit(1)
    try:
        return [parse_entity(item) for item in raw]
    except ValidationError as e:
        err_console.print(f"[red]Invalid entity data:[/red] {e}")
        raise typer.Exit(1) from e


@app.command()
def load(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON file of entities"),
) -> None:
    """Store entities from FILE and embed them."""
    entities = _read_entities(file)
    with console.status(f"Embedding {len(entities)} entities..."):
        saved = _run_with_engine(lambda engine: engine.load_entities(entities))
    console.print(f"Loaded [bold]{saved}[/bold] entities from {file}")


@app.command()
def search(
    query: str = typer.Argument(..., help="Natural-language query"),
    destination: Optional[str] = typer.Option(
        None, "--destination", "-d", help="Destination id (wdw, dlr)"
    ),
    entity_type: Optional[str] = typer.Option(
        None, "--type", "-t", help="Entity type (ATTRACTION, RESTAURANT, ...)"
    ),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Maximum results"),
    min_score: Optional[float] = typer.Option(
        None, "--min-score", help="Minimum similarity score (0-1)"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON"),
) -> None:
    """Find entities similar to QUERY."""
    options = SemanticSearchOptions(
        destination_id=destination,
        entity_type=entity_type.upper() if entity_type else None,
        limit=limit,
        min_score=min_score,
    )
    results = _run_with_engine(lambda engine: engine.search.semantic_search(query, options))

    if as_json:
        typer.echo(json.dumps([r.to_dict() for r in results], indent=2))
        return
    if not results:
        console.print("No matching entities.")
        return

    table = Table(title=f"Results for {query!r}")
    table.add_column("Score", justify="right")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Park")
    table.add_column("Dest.")
    for result in results:
        entity = result.entity
        table.add_row(
            f"{result.score:.3f}",
            entity.name,
            entity.entity_type,
            entity.park_name or "",
            entity.destination_id,
        )
    console.print(table)


@app.command()
def stats() -> None:
    """Show embedding counts per model."""
    result = _run_with_engine(lambda engine: engine.stats())
    table = Table(title="Embeddings")
    table.add_column("Model")
    table.add_column("Count", justify="right")
    for model, count in sorted(result.by_model.items()):
        table.add_row(model, str(count))
    table.add_row("[bold]total[/bold]", f"[bold]{result.total}[/bold]")
    console.print(table)


@app.command()
def purge(
    destination: str = typer.Argument(..., help="Destination id to delete"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a destination's entities and their embeddings."""
    if not yes:
        typer.confirm(f"Delete all entities for {destination}?", abort=True)
    count = _run_with_engine(lambda engine: engine.purge_destination(destination))
    console.print(f"Deleted [bold]{count}[/bold] entities for {destination}")
