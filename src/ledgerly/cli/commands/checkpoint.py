"""Checkpoint command."""

import click
from ledgerly.cli.error_handling import handle_domain_error
from ledgerly.domain.errors import PersistenceError


@click.command("checkpoint")
@click.pass_context
def checkpoint(ctx):
    """Write the whole store to its backing file now."""
    db = ctx.obj["db"]

    try:
        size = db.checkpoint()
    except PersistenceError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Checkpoint written to {click.format_filename(str(db.database_path))} ({size} bytes)")


def register_commands(cli):
    """Register checkpoint command with main CLI."""
    cli.add_command(checkpoint)
