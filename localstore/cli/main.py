"""Main CLI entry point and application setup."""

import logging
import sys
from dataclasses import dataclass
from pathlib import Path

import click
import msgspec
from click.exceptions import Exit
from rich.console import Console
from rich.markup import escape

from localstore import __version__
from localstore.cli.commands import data, values
from localstore.config import StoreConfig, load_config
from localstore.core.exceptions import ConfigError
from localstore.storage.backends import BaseLocalStore
from localstore.storage.factory import PROVIDERS
from localstore.storage.store import LocalStore


@dataclass
class Context:
    """CLI context that holds shared resources."""

    store: LocalStore
    console: Console
    config: StoreConfig
    debug: bool = False

    @property
    def backend(self) -> BaseLocalStore:
        return self.store.instance


def setup_logging(
    verbose: bool = False, quiet: bool = False, debug: bool = False
) -> None:
    """Configure logging based on CLI flags."""
    if quiet:
        level = logging.ERROR
    elif verbose or debug:
        level = logging.DEBUG
    else:
        level = logging.WARNING

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


class LocalStoreGroup(click.Group):
    """Custom group that handles KeyboardInterrupt and unexpected errors."""

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
                console.print(f"[red]Error:[/red] {escape(str(e))}")
            else:
                click.echo(f"Error: {e}", err=True)
            ctx.exit(1)


@click.group(cls=LocalStoreGroup)
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
    "--data-dir",
    "-d",
    type=click.Path(path_type=Path),
    help="Override data directory location",
)
@click.option(
    "--provider",
    "-p",
    type=click.Choice(list(PROVIDERS)),
    help="Storage provider to use",
)
@click.version_option(
    version=__version__,
    prog_name="localstore",
    message="localstore version %(version)s",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    no_color: bool,
    debug: bool,
    config: Path | None,
    data_dir: Path | None,
    provider: str | None,
) -> None:
    """Local key-value storage tool.

    Reads and writes int, float and string values through the configured
    storage provider.
    """
    setup_logging(verbose=verbose, quiet=quiet, debug=debug)
    console = create_console(no_color=no_color)

    try:
        store_config = load_config(config)
    except ConfigError as e:
        if debug:
            raise
        console.print(f"[red]Error loading configuration:[/red] {escape(str(e))}")
        ctx.exit(1)

    overrides = {}
    if provider:
        overrides["provider"] = provider
    if data_dir:
        overrides["data_dir"] = str(data_dir)
    if overrides:
        store_config = msgspec.structs.replace(store_config, **overrides)

    store = LocalStore(config=store_config)
    ctx.call_on_close(store.reset)
    ctx.obj = Context(store=store, console=console, config=store_config, debug=debug)


cli.add_command(values.get)
cli.add_command(values.set_cmd, name="set")
cli.add_command(values.delete)
cli.add_command(values.incr)
cli.add_command(values.decr)
cli.add_command(data.info)
cli.add_command(data.list_cmd, name="list")
cli.add_command(data.export_command, name="export")
cli.add_command(data.import_command, name="import")
cli.add_command(data.edit)
cli.add_command(data.clear)
cli.add_command(data.check)


def main() -> None:
    """Main entry point for the CLI application."""
    try:
        cli()
    except KeyboardInterrupt:
        sys.exit(130)
    except Exception as e:
        if "--debug" in sys.argv:
            raise
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
