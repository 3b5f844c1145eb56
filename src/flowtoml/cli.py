"""
flowtoml CLI - Command-line interface.

Create, inspect and edit TOML documents in the per-user configuration
directory from the terminal. Each command runs in its own process, so a
command opens a document, works on it and saves or closes it before exiting.
"""

import tomllib
from enum import Enum
from typing import Any, NoReturn, Optional

import tomli_w
import typer
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from flowtoml.config import Settings, configure_logging
from flowtoml.core.exceptions import ConfigurationError
from flowtoml.core.models import OpenDocumentError, ValueType
from flowtoml.storage.manager import DocumentStore

app = typer.Typer(
    name="flowtoml",
    help="flowtoml - TOML configuration documents with backup rotation",
    no_args_is_help=True,
)
console = Console()


def _load_settings() -> Settings:
    try:
        return Settings.from_env()
    except ConfigurationError as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        raise typer.Exit(1)


def _store() -> DocumentStore:
    return DocumentStore.from_settings(_load_settings())


def _fail(error: Enum) -> NoReturn:
    console.print(f"[red]Error: {error.value}[/red]")
    raise typer.Exit(1)


def parse_value(raw: str, value_type: ValueType) -> Any:
    """
    Convert a command-line string into a TOML value of the given kind.

    Strings are taken verbatim; everything else is parsed as a TOML value
    literal, so arrays and inline tables use TOML syntax.

    Raises:
        ValueError: If the literal is invalid or of another kind
    """
    if value_type is ValueType.STRING:
        return raw

    try:
        value = tomllib.loads(f"value = {raw}")["value"]
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"'{raw}' is not a valid TOML {value_type.value}") from e

    if not value_type.matches(value):
        raise ValueError(f"'{raw}' is not a TOML {value_type.value}")
    return value


def format_value(value: Any) -> str:
    """Render a value the way it would appear in a TOML file."""
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        return tomli_w.dumps(value).strip()
    rendered = tomli_w.dumps({"value": value})
    return rendered.removeprefix("value = ").strip()


@app.callback()
def main_callback() -> None:
    """Configure logging from FLOWTOML_LOG_LEVEL before any command runs."""
    configure_logging(_load_settings().log_level)


@app.command()
def path(
    directory: Optional[str] = typer.Argument(None, help="Documents directory name"),
):
    """Show the configuration root or a documents directory."""
    store = _store()
    result = (
        store.resolve_documents_directory(directory)
        if directory
        else store.resolve_config_base_directory()
    )
    if not result.ok:
        _fail(result.error)
    console.print(str(result.value), markup=False, highlight=False)


@app.command("list")
def list_cmd(
    directory: str = typer.Argument(..., help="Documents directory name"),
):
    """List the documents stored in a directory."""
    store = _store()
    result = store.list_documents(directory)
    if not result.ok:
        _fail(result.error)

    names = result.value
    if not names:
        console.print(f"[yellow]No documents found in {directory}[/yellow]")
        return

    table = Table(title=f"Documents in {directory} ({len(names)})")
    table.add_column("Name", style="cyan")
    for name in names:
        table.add_row(name)

    console.print(table)


@app.command()
def show(
    directory: str = typer.Argument(..., help="Documents directory name"),
    file_name: str = typer.Argument(..., help="Document name without .toml"),
):
    """Print a document as TOML."""
    store = _store()
    opened = store.open_document(file_name, directory)
    if not opened.ok:
        _fail(opened.error)

    handle = opened.value
    with store.registry.access(handle) as data:
        content = tomli_w.dumps(data)
    store.close_document(handle)

    console.print(Panel.fit(f"[bold blue]{directory}/{file_name}.toml[/bold blue]"))
    console.print(Syntax(content, "toml"))


@app.command("set")
def set_cmd(
    directory: str = typer.Argument(..., help="Documents directory name"),
    file_name: str = typer.Argument(..., help="Document name without .toml"),
    key: str = typer.Argument(..., help="Key to set"),
    value: str = typer.Argument(..., help="Value (TOML literal unless --type string)"),
    section: str = typer.Option("", "--section", "-s", help="Section (table) name"),
    value_type: ValueType = typer.Option(
        ValueType.STRING, "--type", "-t", help="Kind of value to store"
    ),
    backup: Optional[bool] = typer.Option(
        None, "--backup/--no-backup", help="Keep the previous file as a backup"
    ),
):
    """Set a value in a document, creating the document if needed."""
    settings = _load_settings()
    store = DocumentStore.from_settings(settings)

    try:
        parsed = parse_value(value, value_type)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    opened = store.open_document(file_name, directory)
    if opened.ok:
        handle = opened.value
    elif opened.error is OpenDocumentError.FILE_NOT_FOUND:
        handle = store.registry.new_document()
    else:
        _fail(opened.error)

    result = store.registry.set_value(handle, key, parsed, section)
    if not result.ok:
        store.close_document(handle)
        _fail(result.error)

    enable_backup = settings.enable_backup if backup is None else backup
    saved = store.save_document(handle, file_name, directory, enable_backup=enable_backup)
    if not saved.ok:
        _fail(saved.error)

    target = f"{section}.{key}" if section else key
    console.print(f"[green]Set {target} in[/green] {saved.value}")


@app.command()
def get(
    directory: str = typer.Argument(..., help="Documents directory name"),
    file_name: str = typer.Argument(..., help="Document name without .toml"),
    key: str = typer.Argument(..., help="Key to read"),
    section: str = typer.Option("", "--section", "-s", help="Section (table) name"),
    value_type: Optional[ValueType] = typer.Option(
        None, "--type", "-t", help="Require the value to be of this kind"
    ),
):
    """Print a single value from a document."""
    store = _store()
    opened = store.open_document(file_name, directory)
    if not opened.ok:
        _fail(opened.error)

    handle = opened.value
    result = store.registry.get_value(handle, key, value_type, section)
    store.close_document(handle)
    if not result.ok:
        _fail(result.error)

    console.print(format_value(result.value), markup=False, highlight=False)


@app.command()
def delete(
    directory: str = typer.Argument(..., help="Documents directory name"),
    file_name: str = typer.Argument(..., help="Document name without .toml"),
):
    """Delete a document and its backup."""
    store = _store()
    result = store.delete_document(file_name, directory)
    if not result.ok:
        _fail(result.error)
    console.print(f"[green]Deleted {directory}/{file_name}[/green]")


@app.command()
def version():
    """Show flowtoml version."""
    from flowtoml import __version__

    console.print(f"flowtoml v{__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
