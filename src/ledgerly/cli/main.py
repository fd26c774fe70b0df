"""Main CLI entry point."""

import logging

import click
from ledgerly.config import Settings
from ledgerly.database.factories import create_sqlite_database
from ledgerly.domain.errors import PersistenceError

# Import and register all commands at module level
from ledgerly.cli.commands import (
    currency,
    gl,
    account,
    entry,
    attach,
    import_cmd,
    export,
    report,
    checkpoint,
)


def _configure_logging(settings: Settings, verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level, logging.WARNING)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides LEDGERLY_DB_PATH environment variable)",
    envvar="LEDGERLY_DB_PATH",
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr")
@click.pass_context
def cli(ctx, db_path: str | None, verbose: bool):
    """Ledgerly - Double-entry bookkeeping.

    Keep GL and subledger accounts, book journal entries in any configured
    currency, import batches from CSV and produce balance sheet, profit and
    loss, trial balance and account ledger reports.
    """
    ctx.ensure_object(dict)

    # Open the store only when actually running a command (not when showing help)
    if ctx.invoked_subcommand is not None:
        settings = Settings.from_env(database_path=db_path)
        _configure_logging(settings, verbose)

        db = create_sqlite_database(settings=settings)
        try:
            db.connect()
            db.initialize_schema()
        except PersistenceError as e:
            # Covers CorruptStoreError: an unreadable store is never overwritten
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)
        ctx.obj["db"] = db
        ctx.call_on_close(lambda: _close_store(db))


def _close_store(db) -> None:
    try:
        db.disconnect()
    except PersistenceError as e:
        click.echo(f"Error: Final checkpoint failed: {e}", err=True)
        raise SystemExit(1)


# Register all commands
currency.register_commands(cli)
gl.register_commands(cli)
account.register_commands(cli)
entry.register_commands(cli)
attach.register_commands(cli)
import_cmd.register_commands(cli)
export.register_commands(cli)
report.register_commands(cli)
checkpoint.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
