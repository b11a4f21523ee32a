"""Document maintenance CLI commands."""

import logging
from pathlib import Path

import click
import msgspec
from rich.table import Table

from booksearch.core.models import Book

logger = logging.getLogger(__name__)


def load_books(path: Path) -> list[Book]:
    """Read books from a JSON array or a JSON-lines file.

    Raises:
        click.ClickException: If the file does not decode into books
    """
    data = path.read_bytes()
    try:
        if data.lstrip().startswith(b"["):
            return msgspec.json.decode(data, type=list[Book])
        return [
            msgspec.json.decode(line, type=Book)
            for line in data.splitlines()
            if line.strip()
        ]
    except msgspec.DecodeError as e:
        raise click.ClickException(f"Invalid book file {path}: {e}") from e


@click.command()
@click.argument("book_id")
@click.pass_context
def get(ctx: click.Context, book_id: str) -> None:
    """Show the stored fields of one book."""
    console = ctx.obj.console
    doc = ctx.obj.gateway.get(book_id)

    if doc is None:
        console.print(f"[red]Book not found:[/red] {book_id}")
        ctx.exit(1)

    click.echo(msgspec.json.format(msgspec.json.encode(doc)).decode())


@click.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def add(ctx: click.Context, file: Path) -> None:
    """Index books from a JSON or JSON-lines FILE.

    Books already in the index are replaced.
    """
    console = ctx.obj.console
    gateway = ctx.obj.gateway

    books = [book.stamped() for book in load_books(file)]
    if not books:
        console.print(f"[yellow]No books in {file}[/yellow]")
        return

    gateway.index_batch([book.to_fields() for book in books])
    gateway.commit()

    logger.info(f"Indexed {len(books)} books from {file}")
    console.print(f"[green]✓[/green] Indexed {len(books)} books")


@click.command()
@click.argument("book_id")
@click.pass_context
def delete(ctx: click.Context, book_id: str) -> None:
    """Remove one book from the index."""
    console = ctx.obj.console
    gateway = ctx.obj.gateway

    if not gateway.delete(book_id):
        console.print(f"[red]Book not found:[/red] {book_id}")
        ctx.exit(1)

    gateway.commit()
    logger.info(f"Deleted {book_id}")
    console.print(f"[green]✓[/green] Deleted {book_id}")


@click.command()
@click.pass_context
def stats(ctx: click.Context) -> None:
    """Show search index statistics."""
    console = ctx.obj.console
    statistics = ctx.obj.gateway.get_statistics()

    table = Table(title="Index Statistics", show_header=False)
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in statistics.items():
        if isinstance(value, float):
            value = f"{value:.2f}"
        elif isinstance(value, list):
            value = ", ".join(str(v) for v in value)
        table.add_row(key.replace("_", " ").capitalize(), str(value))

    console.print(table)
