"""Main CLI entry point and application setup."""

import logging
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path

import click
from click.exceptions import Exit
from rich.console import Console

from booksearch import __version__
from booksearch.cli.commands import books, search
from booksearch.config import SearchSettings, load_config
from booksearch.search import BackendError, QueryError, SearchEngine, SearchGateway

logger = logging.getLogger(__name__)


def setup_logging(
    verbose: bool = False, quiet: bool = False, debug: bool = False
) -> None:
    """Configure logging based on CLI flags."""
    if quiet:
        level = logging.WARNING
    elif verbose or debug:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s"
        if not debug
        else "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def create_console(no_color: bool = False, width: int | None = None) -> Console:
    """Create Rich console with appropriate settings."""
    return Console(
        no_color=no_color,
        width=width or 120,
        highlight=not no_color,
        color_system=None if no_color else "auto",
    )


def create_gateway(settings: SearchSettings) -> SearchGateway:
    """Construct the gateway named by ``settings.backend``."""
    if settings.backend == "memory":
        from booksearch.search.backends.memory import MemoryGateway

        return MemoryGateway()

    if settings.backend == "elasticsearch":
        from booksearch.search.backends.elastic import ElasticsearchGateway

        return ElasticsearchGateway(
            url=settings.elasticsearch_url, index_name=settings.index_name
        )

    from booksearch.search.backends.whoosh import WhooshGateway

    return WhooshGateway(index_dir=settings.index_path, create_if_missing=True)


def connect_gateway(
    gateway: SearchGateway, retries: int = 10, interval: float = 3.0
) -> SearchGateway:
    """Wait until the gateway answers a health check.

    Args:
        gateway: Gateway to check
        retries: Number of attempts before giving up
        interval: Seconds to sleep between attempts

    Raises:
        BackendError: If no attempt succeeded
    """
    name = type(gateway).__name__
    for attempt in range(1, retries + 1):
        if gateway.ping():
            logger.debug(f"{name} ready after {attempt} attempt(s)")
            return gateway
        logger.warning(f"{name} not reachable (attempt {attempt}/{retries})")
        if attempt < retries:
            time.sleep(interval)

    raise BackendError(f"{name} not reachable after {retries} attempts")


@dataclass
class Context:
    """CLI context that holds shared resources.

    The gateway is connected on first use, so commands that never touch
    the backend do not wait for it.
    """

    settings: SearchSettings
    console: Console
    debug: bool = False
    _gateway: SearchGateway | None = field(default=None, repr=False)
    _engine: SearchEngine | None = field(default=None, repr=False)

    @property
    def gateway(self) -> SearchGateway:
        if self._gateway is None:
            gateway = create_gateway(self.settings)
            click.get_current_context().find_root().call_on_close(gateway.close)
            self._gateway = connect_gateway(
                gateway,
                retries=self.settings.connect_retries,
                interval=self.settings.connect_interval,
            )
        return self._gateway

    @property
    def engine(self) -> SearchEngine:
        if self._engine is None:
            self._engine = SearchEngine(self.gateway, self.settings)
        return self._engine


class BookSearchGroup(click.Group):
    """Custom group that turns search errors into messages and exit codes."""

    def invoke(self, ctx):
        try:
            return super().invoke(ctx)
        except KeyboardInterrupt:
            console = getattr(ctx.obj, "console", None) if ctx.obj else None
            if console:
                console.print("[yellow]Interrupted[/yellow]")
            ctx.exit(130)
        except (click.ClickException, click.Abort, Exit, SystemExit):
            raise
        except Exception as e:
            debug = getattr(ctx.obj, "debug", False) if ctx.obj else False
            if debug:
                raise
            console = getattr(ctx.obj, "console", None) if ctx.obj else None
            if console:
                console.print(f"[red]Error:[/red] {e}")
            else:
                click.echo(f"Error: {e}", err=True)
            ctx.exit(2 if isinstance(e, QueryError) else 1)


@click.group(cls=BookSearchGroup)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-error output")
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.option("--debug", is_flag=True, help="Enable debug mode with full tracebacks")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file",
)
@click.option(
    "--backend",
    "-b",
    type=click.Choice(["whoosh", "memory", "elasticsearch"]),
    help="Override the configured search backend",
)
@click.version_option(
    version=__version__,
    prog_name="booksearch",
    message="booksearch version %(version)s",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    no_color: bool,
    debug: bool,
    config: Path | None,
    backend: str | None,
) -> None:
    """Full-text book search with ordered-proximity ranking."""
    setup_logging(verbose=verbose, quiet=quiet, debug=debug)
    console = create_console(no_color=no_color)

    try:
        overrides = {"backend": backend} if backend else None
        settings = load_config(config, overrides)
    except ValueError as e:
        if debug:
            raise
        console.print(f"[red]Error loading configuration:[/red] {e}")
        ctx.exit(1)

    ctx.obj = Context(settings=settings, console=console, debug=debug)


cli.add_command(search.search)
cli.add_command(books.get)
cli.add_command(books.add)
cli.add_command(books.delete)
cli.add_command(books.stats)


def main() -> None:
    """Main entry point for the CLI application."""
    try:
        cli()
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
