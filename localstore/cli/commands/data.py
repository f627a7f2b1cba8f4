"""Whole-store CLI commands: inspection, import/export, editing and checks."""

from pathlib import Path

import click
import msgspec
from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm
from rich.table import Table

from localstore import __version__
from localstore.core.exceptions import LocalStoreError
from localstore.core.models import Record
from localstore.core.values import format_value, parse_float, parse_int
from localstore.storage.editing import EditableValue, StoreEditor

from .values import get_backend, report_new_issues


# Command: info
@click.command()
@click.pass_context
def info(ctx: click.Context) -> None:
    """Show the active provider and store statistics."""
    console = ctx.obj.console
    backend = get_backend(ctx)

    table = Table(show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    table.add_row("Version", __version__)
    table.add_row("Provider", backend.provider_name)
    table.add_row("Location", escape(backend.location or "-"))
    table.add_row("Keys", str(len(backend.keys())))
    table.add_row("Issues", str(len(backend.issues)))

    console.print(table)


# Command: list
@click.command()
@click.pass_context
def list_cmd(ctx: click.Context) -> None:
    """List all stored keys with their types and values."""
    console = ctx.obj.console
    backend = get_backend(ctx)

    records = [
        Record.of(key, value)
        for key, value in sorted(backend.get_serialized_data().items())
    ]
    if not records:
        console.print("[yellow]Store is empty[/yellow]")
        return

    _display_records_table(console, records)


# Command: export
@click.command()
@click.option(
    "--format",
    "-f",
    "fmt",
    type=click.Choice(["raw", "json"]),
    default="raw",
    help="Output format (raw is the store's own rendering)",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write to file instead of stdout",
)
@click.pass_context
def export_command(ctx: click.Context, fmt: str, output: Path | None) -> None:
    """Export the store contents."""
    console = ctx.obj.console
    backend = get_backend(ctx)

    data = backend.get_serialized_data()
    if fmt == "json":
        text = msgspec.json.format(msgspec.json.encode(data), indent=2).decode("utf-8")
    else:
        text = backend.get_serialized_data_json(data)

    if output:
        output.write_text(text + "\n", encoding="utf-8")
        console.print(
            f"[green]✓[/green] Exported {len(data)} values to {escape(str(output))}"
        )
    else:
        click.echo(text)


# Command: import
@click.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def import_command(ctx: click.Context, file: Path) -> None:
    """Import values from a JSON object in FILE.

    Each value is stored as an int if it parses as one, else as a float,
    else as a string.
    """
    console = ctx.obj.console
    backend = get_backend(ctx)

    try:
        data = msgspec.json.decode(file.read_bytes())
    except msgspec.DecodeError as e:
        console.print(f"[red]Invalid JSON:[/red] {escape(str(e))}")
        ctx.exit(1)

    if not isinstance(data, dict):
        console.print("[red]Error:[/red] Expected a JSON object at the top level")
        ctx.exit(1)

    since = len(backend.issues)
    backend.deserialize_data(data)
    failed = len(backend.issues) - since

    report_new_issues(console, backend, since)
    console.print(f"[green]✓[/green] Imported {len(data) - failed} of {len(data)} values")


def _split_assignment(assignment: str) -> tuple[str, str]:
    key, sep, value = assignment.partition("=")
    if not sep or not key:
        raise click.BadParameter(f"Expected KEY=VALUE, got {assignment!r}")
    return key, value


# Command: edit
@click.command()
@click.option("--int", "int_values", multiple=True, metavar="KEY=VALUE", help="Set an int")
@click.option(
    "--float", "float_values", multiple=True, metavar="KEY=VALUE", help="Set a float"
)
@click.option(
    "--string", "string_values", multiple=True, metavar="KEY=VALUE", help="Set a string"
)
@click.option("--delete", "deletions", multiple=True, metavar="KEY", help="Delete a key")
@click.option("--dry-run", is_flag=True, help="Show changes without saving")
@click.pass_context
def edit(
    ctx: click.Context,
    int_values: tuple[str, ...],
    float_values: tuple[str, ...],
    string_values: tuple[str, ...],
    deletions: tuple[str, ...],
    dry_run: bool,
) -> None:
    """Stage several changes and apply them together."""
    console = ctx.obj.console
    backend = get_backend(ctx)
    editor = StoreEditor(backend)

    try:
        for assignment in int_values:
            key, text = _split_assignment(assignment)
            value = parse_int(text)
            if value is None:
                raise click.BadParameter(f"{text!r} is not a 32-bit integer")
            editor.stage(key, value)

        for assignment in float_values:
            key, text = _split_assignment(assignment)
            value = parse_float(text, allow_special=True)
            if value is None:
                raise click.BadParameter(f"{text!r} is not a number")
            editor.stage(key, value)

        for assignment in string_values:
            key, text = _split_assignment(assignment)
            editor.stage(key, text)

        for key in deletions:
            if key not in editor:
                console.print(f"[yellow]Key not found:[/yellow] {escape(key)}")
                continue
            editor.mark_deleted(key)
    except LocalStoreError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        ctx.exit(1)

    changes = editor.pending()
    if not changes:
        console.print("[yellow]No changes[/yellow]")
        return

    _display_changes_table(console, changes)

    if dry_run:
        console.print("[yellow]Dry run; nothing saved[/yellow]")
        return

    since = len(backend.issues)
    count = editor.save_all()
    report_new_issues(console, backend, since)
    console.print(f"[green]✓[/green] Applied {count} changes")


# Command: clear
@click.command()
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def clear(ctx: click.Context, yes: bool) -> None:
    """Delete every stored value."""
    console = ctx.obj.console
    backend = get_backend(ctx)

    if not yes:
        if not Confirm.ask("[red]Delete ALL stored values?[/red]"):
            console.print("[yellow]Cancelled.[/yellow]")
            return

    count = len(backend.keys())
    backend.delete_all()
    console.print(f"[green]✓[/green] Deleted {count} values")


# Command: check
@click.command()
@click.pass_context
def check(ctx: click.Context) -> None:
    """Validate the store and list problems found while loading it."""
    console = ctx.obj.console
    backend = get_backend(ctx)

    valid, errors = backend.validate()

    if backend.issues:
        console.print(f"\n[bold]Issues ({len(backend.issues)})[/bold]")
        for issue in backend.issues:
            console.print(f"  • {escape(str(issue))}", highlight=False)

    if errors:
        console.print(f"\n[bold]Validation errors ({len(errors)})[/bold]")
        for error in errors:
            console.print(f"  [red]✗[/red] {escape(error)}", highlight=False)

    if valid:
        console.print("[green]✓[/green] Store is valid")
    else:
        ctx.exit(1)


# Helper functions
def _display_records_table(console: Console, records: list[Record]) -> None:
    """Display records in table format."""
    table = Table()
    table.add_column("Key", style="cyan")
    table.add_column("Type", style="magenta")
    table.add_column("Value", overflow="fold")

    for record in records:
        table.add_row(
            escape(record.key), record.type.value, escape(format_value(record.value))
        )

    console.print(table)


def _display_changes_table(console: Console, changes: list[EditableValue]) -> None:
    """Display staged changes in table format."""
    table = Table(title="Pending changes")
    table.add_column("Key", style="cyan")
    table.add_column("Action")
    table.add_column("Type", style="magenta")
    table.add_column("Value", overflow="fold")

    for change in changes:
        if change.to_be_deleted:
            action = "[red]delete[/red]"
        elif change.is_new:
            action = "[green]create[/green]"
        else:
            action = "[yellow]update[/yellow]"
        table.add_row(
            escape(change.name),
            action,
            change.type.value,
            escape(change.string_value),
        )

    console.print(table)
