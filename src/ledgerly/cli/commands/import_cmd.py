"""CSV import command."""

import click
from ledgerly.domain.csv_import import CSVImportService
from ledgerly.domain.errors import PersistenceError

SOURCE = "CLI"


@click.command("import")
@click.argument("csv_file", type=click.Path(exists=True))
@click.pass_context
def import_csv(ctx, csv_file: str):
    """Import journal entries from a CSV file.

    Columns: Date, Debit Account, Credit Account, Amount, and optionally
    Currency, Description, Category, Comment. Accounts are given by number.

    The import is all-or-nothing: if any row is invalid, every problem is
    listed and nothing is written.
    """
    db = ctx.obj["db"]
    service = CSVImportService(db)

    try:
        result = service.import_csv_file(csv_file, source=SOURCE)
    except (ValueError, FileNotFoundError, PersistenceError) as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    click.echo("\nImport rejected:" if result["errors"] else "\nImport complete:")
    click.echo(f"  Rows: {result['attempted']}")
    click.echo(f"  Imported: {result['succeeded']} journal entries")
    if result["errors"]:
        click.echo(f"  Errors: {result['failed']}")
        for error in result["errors"]:
            click.echo(f"    {error}", err=True)
        ctx.exit(1)


def register_commands(cli):
    """Register import command with main CLI."""
    cli.add_command(import_csv)
