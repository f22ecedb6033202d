"""CLI for slug-guard."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from types import SimpleNamespace
from typing import Annotated, Any

import structlog
import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from slug_guard import __version__
from slug_guard.core.config import SlugSettings, load_config
from slug_guard.core.errors import ConfigurationError, UniqueViolation
from slug_guard.models import Attribute
from slug_guard.services.slugs import (
    SlugComputer,
    SlugDescriptor,
    SlugService,
    StrategyResolver,
    ViolationClassifier,
)
from slug_guard.services.storage import MemoryStore

# Configure structlog
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

app = typer.Typer(
    name="slug-guard",
    help="slug-guard - Short, unique, URL-safe slugs for database records",
    add_completion=False,
)
console = Console()


@dataclass
class SimulatedRecord:
    """Record type used by the ``simulate`` command."""

    title: str | None = None
    id: int | None = None
    slug: str | None = None


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"slug-guard v{__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _parse_declaration(raw: str | None) -> Any:
    """Parse a strategy declaration such as 'title' or '{id: number, length: 8}'."""
    if raw is None:
        return None
    return yaml.safe_load(raw)


def _load_settings(config_path: Path | None) -> SlugSettings:
    if config_path is None:
        return SlugSettings()
    return load_config(config_path)


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", "-v", callback=version_callback, is_eager=True),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-V", help="Verbose output")] = False,
) -> None:
    """slug-guard CLI."""
    _configure_logging(verbose)


@app.command()
def compute(
    entity_id: Annotated[str, typer.Argument(help="Record id the slug is derived from")],
    strategy: Annotated[
        str | None,
        typer.Option("--strategy", "-s", help="Strategy, e.g. 'title' or '{id: number}'"),
    ] = None,
    value: Annotated[
        str | None, typer.Option("--value", help="Attribute value for attribute strategies")
    ] = None,
) -> None:
    """Print the base slug a record would get, before uniqueness handling.

    Args:
        entity_id: Record id.
        strategy: Strategy declaration (YAML).
        value: Value of the strategy's attribute.
    """
    resolver = StrategyResolver()
    try:
        resolved = resolver.resolve_strategy(_parse_declaration(strategy))
    except yaml.YAMLError as e:
        console.print(f"[red]Invalid strategy:[/red] {e}")
        raise typer.Exit(1) from e

    fields: dict[str, Any] = {"id": entity_id}
    if isinstance(resolved, Attribute):
        fields[resolved.name] = value
    record = SimpleNamespace(**fields)

    console.print(SlugComputer().compute_base_slug(record, resolved))


@app.command()
def classify(
    message: Annotated[str, typer.Argument(help="Database error message")],
) -> None:
    """Tell whether a uniqueness error message concerns the slug column."""
    kind = ViolationClassifier().classify(UniqueViolation(message))
    console.print(kind.value)


@app.command()
def simulate(
    title: Annotated[str, typer.Argument(help="Title shared by every simulated record")],
    count: Annotated[int, typer.Option("--count", "-n", help="Records to create", min=1)] = 5,
    strategy: Annotated[
        str | None, typer.Option("--strategy", "-s", help="Strategy declaration (YAML)")
    ] = "title",
    config_path: Annotated[
        Path | None, typer.Option("--config", "-c", help="Path to settings YAML file")
    ] = None,
    not_null: Annotated[
        bool, typer.Option("--not-null", help="Assign slugs before INSERT (NOT NULL column)")
    ] = False,
) -> None:
    """Create records with identical titles in memory and show their slugs.

    Args:
        title: Title of every record.
        count: Number of records.
        strategy: Strategy declaration.
        config_path: Optional settings file.
        not_null: Simulate a NOT NULL slug column.
    """
    try:
        settings = _load_settings(config_path)
        declaration = _parse_declaration(strategy)
    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    except ConfigurationError as e:
        console.print(f"[red]{e}")
        raise typer.Exit(1) from e
    except Exception as e:
        console.print(f"[red]Invalid settings:[/red] {e}")
        raise typer.Exit(1) from e

    descriptor = SlugDescriptor.for_type(
        SimulatedRecord, declaration, slug_nullable=not not_null
    )
    service = SlugService(descriptor, settings)
    store = MemoryStore()

    table = Table(title=f"{count} x {title!r}")
    table.add_column("id", justify="right")
    table.add_column("slug")
    for _ in range(count):
        record = service.create(store, SimulatedRecord(title=title))
        table.add_row(str(record.id), record.slug)
    console.print(table)


@app.command()
def strategies(
    config_path: Annotated[Path, typer.Argument(help="Path to settings YAML file")],
) -> None:
    """Show how each configured collection's strategy resolves."""
    try:
        settings = load_config(config_path)
    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    except ConfigurationError as e:
        console.print(f"[red]{e}")
        raise typer.Exit(1) from e
    except Exception as e:
        console.print(f"[red]Validation error:[/red] {e}")
        raise typer.Exit(1) from e

    resolver = StrategyResolver()
    table = Table(title="Strategies")
    table.add_column("collection")
    table.add_column("declared")
    table.add_column("resolved")
    for collection, declaration in settings.strategies.items():
        table.add_row(collection, repr(declaration), repr(resolver.resolve_strategy(declaration)))
    console.print(table)
    console.print(f"  Max attempts: {settings.max_attempts}")


if __name__ == "__main__":
    app()
