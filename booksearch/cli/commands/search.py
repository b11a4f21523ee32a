"""Search CLI command."""

import click
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from booksearch.core.models import SearchResponse
from booksearch.search import SortOrder


@click.command()
@click.argument("query", required=True)
@click.option("--field", "-f", help="Field to search (default: content)")
@click.option(
    "--sort",
    "-s",
    type=click.Choice([order.value for order in SortOrder]),
    default=SortOrder.SCORE.value,
    help="Sort order",
)
@click.option("--skip", type=int, default=0, help="Skip first N results")
@click.option("--take", "-n", type=int, help="Maximum results to show")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format",
)
@click.pass_context
def search(
    ctx: click.Context,
    query: str,
    field: str | None,
    sort: str,
    skip: int,
    take: int | None,
    output_format: str,
) -> None:
    """Search books for terms occurring close together, in order.

    Books missing one of several terms are still found when too few
    books contain all of them, ranked below the complete matches.
    """
    console = ctx.obj.console
    engine = ctx.obj.engine

    if output_format == "json":
        response = engine.search(query, field=field, sort=sort, skip=skip, take=take)
        click.echo(response.to_json().decode())
        return

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task(f"Searching for '{query}'...", total=None)
        response = engine.search(query, field=field, sort=sort, skip=skip, take=take)

    _display_results(console, response, skip)


def _display_results(console: Console, response: SearchResponse, skip: int) -> None:
    """Display a result page as a table."""
    if response.total == 0:
        console.print(f"\n[yellow]No results found for '{response.query}'[/yellow]")
        return

    if response.total == 1:
        console.print("\nFound [green]1[/green] result")
    else:
        console.print(f"\nFound [green]{response.total}[/green] results")

    if response.is_empty:
        console.print(f"[yellow]No results after the first {skip}[/yellow]")
        return

    table = Table()
    table.add_column("#", justify="right", style="dim")
    table.add_column("ID", style="cyan")
    table.add_column("Title", overflow="ellipsis", max_width=40)
    table.add_column("Author", overflow="ellipsis", max_width=25)
    table.add_column("Released", justify="center")
    table.add_column("Score", justify="right")

    for rank, book in enumerate(response.books, skip + 1):
        table.add_row(
            str(rank),
            book.id,
            book.title,
            book.author,
            book.released_at.date().isoformat() if book.released_at else "",
            f"{book.score:.2f}",
        )

    console.print(table)
