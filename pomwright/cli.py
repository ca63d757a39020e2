"""CLI entry point for inspecting locator schemas."""

from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from pomwright.base_page import BasePage
from pomwright.locators.errors import LocatorSchemaError
from pomwright.locators.paths import sub_paths_of, validate_path
from pomwright.models.config import PomConfig
from pomwright.utils.serialization import to_debug_json

console = Console()


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def load_page_object(target: str, base_url: str = "", config: PomConfig | None = None) -> BasePage:
    """Import ``module:Class`` and instantiate it without a browser page."""
    module_name, _, class_name = target.partition(":")
    if not module_name or not class_name:
        raise click.BadParameter(f"Expected 'module:Class', got '{target}'")
    module = importlib.import_module(module_name)
    cls = getattr(module, class_name, None)
    if cls is None or not (isinstance(cls, type) and issubclass(cls, BasePage)):
        raise click.BadParameter(f"'{target}' is not a BasePage subclass")
    return cls(None, base_url, config=config)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Locator schema tooling for Playwright page objects"""
    setup_logging(verbose)


@cli.command()
@click.option("--output", "-o", default="pomwright.json", help="Config file path")
def init(output: str) -> None:
    """Create a default configuration file."""
    config_path = Path(output)
    if config_path.exists():
        if not click.confirm(f"{output} already exists. Overwrite?"):
            return
    PomConfig().save(config_path)
    console.print(f"[green]Created {config_path}[/green]")


@cli.command()
@click.argument("path")
def subpaths(path: str) -> None:
    """List the sub-paths of a locator schema path in chain order."""
    try:
        validate_path(path)
    except ValueError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        sys.exit(1)
    for position, sub_path in enumerate(sub_paths_of(path)):
        console.print(f"  {position}. {sub_path}")


@cli.command()
@click.argument("target")
@click.option("--config", "-c", default=None, help="Config file path")
def schemas(target: str, config: str | None) -> None:
    """Show the locator schemas registered by a page object (module:Class)."""
    cfg = PomConfig.load(config) if config else None
    page_object = load_page_object(target, config=cfg)

    table = Table(title=f"{page_object.poc_name} locator schemas")
    table.add_column("Path", style="bold")
    table.add_column("Method")
    table.add_column("Filter")
    for path in sorted(page_object.locators.registry):
        schema = page_object.locators.get_schema(path)()
        table.add_row(path, schema.locator_method.value, "yes" if schema.filter else "")
    console.print(table)


@cli.command()
@click.argument("target")
@click.argument("path")
@click.option("--config", "-c", default=None, help="Config file path")
def show(target: str, path: str, config: str | None) -> None:
    """Print the schemas a path resolves through, root to leaf."""
    cfg = PomConfig.load(config) if config else None
    page_object = load_page_object(target, config=cfg)
    try:
        handle = page_object.get_locator_schema(path)
    except LocatorSchemaError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        sys.exit(1)

    for sub_path, schema in handle.schemas_map.items():
        console.print(f"[blue]{sub_path}[/blue]")
        console.print(Syntax(to_debug_json(schema), "json"))


if __name__ == "__main__":
    cli()
