"""CSV export command."""

from pathlib import Path

import click
from ledgerly.cli.account_resolution import resolve_account_or_exit
from ledgerly.cli.date_filters import parse_date_or_exit
from ledgerly.cli.error_handling import handle_domain_error
from ledgerly.domain.account import SubledgerAccountService
from ledgerly.domain.csv_export import CSVExportService


@click.command("export")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write to this file instead of stdout")
@click.option(
    "--what",
    type=click.Choice(["entries", "ledger", "trial-balance"]),
    default="entries",
    show_default=True,
    help="What to export",
)
@click.option("--account", help="Account for --what ledger (number or #ID)")
@click.option("--start-date", help="Start date (YYYY-MM-DD)")
@click.option("--end-date", help="End date, or as-of date for the trial balance")
@click.pass_context
def export_csv(
    ctx,
    output: str | None,
    what: str,
    account: str | None,
    start_date: str | None,
    end_date: str | None,
):
    """Export journal entries or a report as CSV.

    Exported entries can be imported again with 'ledgerly import'.

    Examples:
        ledgerly export --output entries.csv
        ledgerly export --what ledger --account 1010
        ledgerly export --what trial-balance --end-date 2024-12-31
    """
    db = ctx.obj["db"]
    service = CSVExportService(db)

    start = parse_date_or_exit(ctx, start_date, "start date")
    end = parse_date_or_exit(ctx, end_date, "end date")

    try:
        if what == "ledger":
            if not account:
                click.echo("Error: --account is required for a ledger export", err=True)
                ctx.exit(1)
            account_id = resolve_account_or_exit(ctx, SubledgerAccountService(db), account)
            text = service.export_account_ledger(account_id, start, end)
        elif what == "trial-balance":
            text = service.export_trial_balance(as_of=end)
        else:
            text = service.export_journal_entries(start_date=start, end_date=end)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if output is None:
        click.echo(text, nl=False)
        return

    Path(output).write_text(text, encoding="utf-8")
    click.echo(f"Exported to {click.format_filename(output)}")


def register_commands(cli):
    """Register export command with main CLI."""
    cli.add_command(export_csv)
