"""CLI for blobvault."""

import logging
import shutil
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .config import CONFIG_ENV_VAR, FileBlobStoreConfig, load_config
from .errors import BlobNotFoundError, BlobStoreError
from .storage import BlobStore, make_blob_store

app = typer.Typer(help="""\
Store, fetch and delete blobs by URI in a local directory or an Azure
blob container.""")

console = Console(stderr=True)


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", envvar=CONFIG_ENV_VAR,
        help="YAML file with storage settings",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """Configure logging and remember the config path for subcommands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )
    ctx.obj = config


def _open_store(ctx: typer.Context) -> BlobStore:
    try:
        return make_blob_store(load_config(ctx.obj))
    except BlobStoreError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)


def _fail(e: BlobStoreError) -> None:
    console.print(f"[red]Error:[/red] {escape(str(e))}")
    raise typer.Exit(2 if isinstance(e, BlobNotFoundError) else 1)


@app.command()
def put(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="File to store"),
    ext: Optional[str] = typer.Option(
        None, "--ext", "-e", help="Extension for the blob name (default: the file's)",
    ),
):
    """Store a file as a new blob and print its URI."""
    store = _open_store(ctx)
    extension = ext if ext is not None else file.suffix
    try:
        with file.open("rb") as f:
            uri = store.put(f, extension)
    except BlobStoreError as e:
        _fail(e)
    typer.echo(uri)


@app.command()
def get(
    ctx: typer.Context,
    uri: str = typer.Argument(..., help="Blob URI"),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write to this file instead of stdout",
    ),
):
    """Write a blob's content to a file or stdout."""
    store = _open_store(ctx)
    try:
        with store.get(uri) as reader:
            if output is None:
                shutil.copyfileobj(reader, sys.stdout.buffer)
                sys.stdout.flush()
            else:
                output.parent.mkdir(parents=True, exist_ok=True)
                with output.open("wb") as f:
                    shutil.copyfileobj(reader, f)
    except BlobStoreError as e:
        _fail(e)


@app.command()
def delete(
    ctx: typer.Context,
    uri: str = typer.Argument(..., help="Blob URI"),
):
    """Delete a blob."""
    store = _open_store(ctx)
    try:
        deleted = store.delete(uri)
    except BlobStoreError as e:
        _fail(e)

    if deleted:
        console.print(f"[green]Deleted[/green] {uri}")
    else:
        console.print(f"[yellow]Not found[/yellow] {uri}")


@app.command()
def info(ctx: typer.Context):
    """Show the configured storage provider."""
    try:
        config = load_config(ctx.obj)
    except BlobStoreError as e:
        _fail(e)

    table = Table(show_header=False)
    table.add_column("Setting", style="bold")
    table.add_column("Value")
    table.add_row("Provider", config.provider)
    table.add_row("Base URI", config.base_uri)
    if isinstance(config, FileBlobStoreConfig):
        table.add_row("Path", config.path)
        table.add_row("Delete retries", f"{config.delete_retry_limit} x {config.delete_retry_delay}s")
    else:
        table.add_row("Container", config.container_name)
    Console().print(table)


if __name__ == "__main__":
    app()
