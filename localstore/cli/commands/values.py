"""Single-value CLI commands."""

import click
from rich.markup import escape

from localstore.core.exceptions import LocalStoreError
from localstore.core.models import Value, ValueType
from localstore.core.values import format_value, parse_float, parse_int, sniff_value

TYPE_CHOICES = ["auto", "int", "float", "string"]


def get_backend(ctx):
    """Get the active backend from context."""
    return ctx.obj.backend


def parse_typed(text: str, type_name: str) -> Value:
    """Convert command-line text to a value of the requested type."""
    if type_name == "auto":
        return sniff_value(text)[1]
    if type_name == ValueType.INT.value:
        value = parse_int(text)
        if value is None:
            raise click.BadParameter(f"{text!r} is not a 32-bit integer")
        return value
    if type_name == ValueType.FLOAT.value:
        value = parse_float(text, allow_special=True)
        if value is None:
            raise click.BadParameter(f"{text!r} is not a number")
        return value
    return text


def report_new_issues(console, backend, since: int) -> None:
    """Print issues recorded after position ``since``."""
    for issue in backend.issues[since:]:
        console.print(f"[yellow]Warning:[/yellow] {escape(str(issue))}", highlight=False)


# Command: get
@click.command()
@click.argument("key")
@click.option(
    "--type",
    "-t",
    "type_name",
    type=click.Choice(TYPE_CHOICES),
    default="auto",
    help="Read the value as this type",
)
@click.pass_context
def get(ctx: click.Context, key: str, type_name: str) -> None:
    """Print the value stored under KEY."""
    console = ctx.obj.console
    backend = get_backend(ctx)

    if not backend.has_key(key):
        console.print(f"[yellow]Key not found:[/yellow] {escape(key)}")
        ctx.exit(1)

    if type_name == "int":
        value: Value = backend.get_int(key)
    elif type_name == "float":
        value = backend.get_float(key)
    elif type_name == "string":
        value = backend.get_string(key)
    else:
        value = backend.get_serialized_data().get(key, "")

    click.echo(format_value(value))


# Command: set
@click.command()
@click.argument("key")
@click.argument("value")
@click.option(
    "--type",
    "-t",
    "type_name",
    type=click.Choice(TYPE_CHOICES),
    default="auto",
    help="Store the value as this type (auto guesses int, then float, then string)",
)
@click.pass_context
def set_cmd(ctx: click.Context, key: str, value: str, type_name: str) -> None:
    """Store VALUE under KEY."""
    console = ctx.obj.console
    backend = get_backend(ctx)

    typed = parse_typed(value, type_name)
    since = len(backend.issues)
    try:
        backend.set_value(key, typed)
    except LocalStoreError as e:
        if ctx.obj.debug:
            raise
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        ctx.exit(1)

    report_new_issues(console, backend, since)
    console.print(
        f"[green]✓[/green] Set {escape(key)} = {escape(format_value(typed))} "
        f"({ValueType.of(typed).value})",
        highlight=False,
    )


# Command: delete
@click.command()
@click.argument("key")
@click.pass_context
def delete(ctx: click.Context, key: str) -> None:
    """Delete KEY from the store."""
    console = ctx.obj.console
    backend = get_backend(ctx)

    if not backend.has_key(key):
        console.print(f"[yellow]Key not found:[/yellow] {escape(key)}")
        return

    since = len(backend.issues)
    backend.delete_key(key)
    report_new_issues(console, backend, since)
    console.print(f"[green]✓[/green] Deleted {escape(key)}", highlight=False)


def _step(ctx: click.Context, key: str, step: int) -> None:
    console = ctx.obj.console
    backend = get_backend(ctx)

    since = len(backend.issues)
    try:
        if step > 0:
            backend.increment(key)
        else:
            backend.decrement(key)
    except LocalStoreError as e:
        if ctx.obj.debug:
            raise
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        ctx.exit(1)

    report_new_issues(console, backend, since)
    click.echo(str(backend.get_int(key)))


# Command: incr
@click.command()
@click.argument("key")
@click.pass_context
def incr(ctx: click.Context, key: str) -> None:
    """Add one to the integer stored under KEY."""
    _step(ctx, key, 1)


# Command: decr
@click.command()
@click.argument("key")
@click.pass_context
def decr(ctx: click.Context, key: str) -> None:
    """Subtract one from the integer stored under KEY."""
    _step(ctx, key, -1)
