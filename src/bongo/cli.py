"""
bongo CLI.

Commands for the index side of a registry:
- indexes:        List the native indexes every registered type declares
- ensure-indexes: Create them in MongoDB
- version:        Print the installed version

Registries are loaded from an import path, ``package.module:attribute``,
where the attribute is a populated ``Registry``.
"""

from __future__ import annotations

import importlib

import typer
from pymongo import MongoClient
from pymongo.errors import PyMongoError
from rich.console import Console
from rich.table import Table

from bongo._version import get_version
from bongo.core.config import BongoConfig
from bongo.core.errors import BongoError
from bongo.runtime.indexes import ensure_indexes
from bongo.runtime.logging import setup_logging
from bongo.runtime.registry import Registry

app = typer.Typer(
    help="Schema registry and index tooling for bongo documents",
    no_args_is_help=True,
)

console = Console()


def load_registry(target: str) -> Registry:
    """Import ``module:attribute`` and return the Registry it names."""
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise typer.BadParameter(f"Expected 'module:attribute', got '{target}'")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise typer.BadParameter(f"Cannot import '{module_name}': {e}") from e
    except BongoError as e:
        # Module-level registration failed
        raise typer.BadParameter(f"Schema error while importing '{module_name}': {e}") from e

    registry = getattr(module, attr, None)
    if not isinstance(registry, Registry):
        raise typer.BadParameter(f"'{target}' is not a bongo Registry")
    return registry


@app.command(name="indexes")
def indexes_command(
    target: str = typer.Argument(..., help="Registry import path (module:attribute)"),
) -> None:
    """List the native indexes declared by every registered type."""
    registry = load_registry(target)

    table = Table(title="Declared indexes")
    table.add_column("Type", style="cyan")
    table.add_column("Collection")
    table.add_column("Keys")
    table.add_column("Options")

    total = 0
    for doc_type in registry.document_types:
        collection = registry.get_collection_name(doc_type) or ""
        for spec in registry.get_all_index(doc_type):
            keys = ", ".join(f"{path} ({'desc' if d < 0 else 'asc'})" for path, d in spec.keys)
            table.add_row(doc_type.__name__, collection, keys, ", ".join(spec.options()) or "-")
            total += 1

    if total == 0:
        console.print("[yellow]No indexes declared[/yellow]")
        return
    console.print(table)
    console.print(f"{total} index(es) across {len(registry)} document type(s)")


@app.command(name="ensure-indexes")
def ensure_indexes_command(
    target: str = typer.Argument(..., help="Registry import path (module:attribute)"),
    uri: str | None = typer.Option(
        None, "--uri", help="MongoDB connection URI (default: $BONGO_CONNECTION_STRING)"
    ),
    database: str | None = typer.Option(
        None, "--database", "-d", help="Database name (default: $BONGO_DATABASE)"
    ),
    json_logs: bool = typer.Option(False, "--json-logs", help="Log as JSON Lines"),
) -> None:
    """Create the declared indexes in MongoDB."""
    config = BongoConfig.from_env().with_overrides(connection_string=uri, database=database)
    setup_logging(config.log_level, json_format=json_logs)

    registry = load_registry(target)

    client: MongoClient = MongoClient(config.connection_string)
    try:
        created = ensure_indexes(registry, client[config.database])
    except PyMongoError as e:
        console.print(f"[red]Index creation failed: {e}[/red]")
        raise typer.Exit(1)
    finally:
        client.close()

    if not created:
        console.print("[yellow]No indexes declared[/yellow]")
        return
    for collection, names in created.items():
        console.print(f"[green]{collection}[/green]: {', '.join(names)}")


@app.command(name="version")
def version_command() -> None:
    """Print the bongo version."""
    console.print(f"bongo {get_version()}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
