"""Report commands."""

import click
from ledgerly.cli.account_resolution import resolve_account_or_exit
from ledgerly.cli.date_filters import parse_date_or_exit, period_options, resolve_cli_date_range
from ledgerly.cli.error_handling import handle_domain_error
from ledgerly.domain.account import SubledgerAccountService
from ledgerly.domain.entities import ReportSection
from ledgerly.domain.reports import ReportService
from ledgerly.utils.amount_parser import format_money

LINE_WIDTH = 70


def _echo_amount(label: str, amount, indent: int = 0) -> None:
    width = LINE_WIDTH - 20 - indent
    click.echo(f"{' ' * indent}{label:<{width}} {format_money(amount):>20}")


def _echo_section(title: str, section: ReportSection) -> None:
    click.echo(title)
    for line in section.accounts:
        _echo_amount(f"{line.account.account_number} {line.account.name}", line.balance, indent=4)
    _echo_amount(f"Total {title}", section.total, indent=2)


@click.group()
def report_group():
    """Produce financial reports."""
    pass


@report_group.command("balance-sheet")
@click.option("--as-of", help="Report date (default: today)")
@click.option("--currency", help="Report currency code (default: the default currency)")
@click.pass_context
def balance_sheet(ctx, as_of: str | None, currency: str | None):
    """Show the balance sheet as of a date."""
    service = ReportService(ctx.obj["db"])

    try:
        report = service.balance_sheet(as_of=parse_date_or_exit(ctx, as_of, "date"), currency_code=currency)
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nBalance Sheet as of {report.as_of} ({report.currency_code})")
    click.echo("=" * LINE_WIDTH)
    _echo_section("Assets", report.assets)
    click.echo()
    _echo_section("Liabilities", report.liabilities)
    click.echo()
    _echo_section("Equity", report.equity)
    _echo_amount("Retained Earnings", report.retained_earnings, indent=2)
    _echo_amount("Total Equity", report.total_equity, indent=2)
    click.echo("-" * LINE_WIDTH)
    _echo_amount("Total Liabilities & Equity", report.total_liabilities_and_equity)
    if not report.balanced:
        click.echo("WARNING: Assets do not equal liabilities plus equity", err=True)


@report_group.command("profit-loss")
@click.option("--start-date", help="Start date (YYYY-MM-DD)")
@click.option("--end-date", help="End date (default: today)")
@period_options
@click.option("--currency", help="Report currency code (default: the default currency)")
@click.pass_context
def profit_loss(
    ctx,
    start_date: str | None,
    end_date: str | None,
    this_month: bool,
    this_year: bool,
    last_month: bool,
    last_year: bool,
    currency: str | None,
):
    """Show the profit and loss statement over a period."""
    service = ReportService(ctx.obj["db"])

    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags={
            "this-month": this_month,
            "this-year": this_year,
            "last-month": last_month,
            "last-year": last_year,
        },
    )

    try:
        report = service.profit_loss(start_date=start, end_date=end, currency_code=currency)
    except ValueError as e:
        handle_domain_error(ctx, e)

    period = f"{report.start_date} to {report.end_date}" if report.start_date else f"through {report.end_date}"
    click.echo(f"\nProfit & Loss {period} ({report.currency_code})")
    click.echo("=" * LINE_WIDTH)
    _echo_section("Revenue", report.revenue)
    click.echo()
    _echo_section("Expenses", report.expenses)
    click.echo("-" * LINE_WIDTH)
    _echo_amount("Net Income", report.net_income)


@report_group.command("trial-balance")
@click.option("--as-of", help="Report date (default: today)")
@click.option("--currency", help="Report currency code (default: the default currency)")
@click.pass_context
def trial_balance(ctx, as_of: str | None, currency: str | None):
    """Show the trial balance as of a date."""
    service = ReportService(ctx.obj["db"])

    try:
        report = service.trial_balance(as_of=parse_date_or_exit(ctx, as_of, "date"), currency_code=currency)
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nTrial Balance as of {report.as_of} ({report.currency_code})")
    click.echo("-" * 84)
    click.echo(f"{'Account':<10} {'Name':<30} {'Type':<20} {'Debit':>10} {'Credit':>10}")
    click.echo("-" * 84)
    for line in report.lines:
        debit = f"{line.debit:,.2f}" if line.debit else ""
        credit = f"{line.credit:,.2f}" if line.credit else ""
        click.echo(
            f"{line.account.account_number:<10} {line.account.name[:30]:<30} "
            f"{line.account.gl_account_type.value:<20} {debit:>10} {credit:>10}"
        )
    click.echo("-" * 84)
    click.echo(f"{'TOTAL':<62} {report.total_debits:>10,.2f} {report.total_credits:>10,.2f}")
    click.echo("Balanced" if report.balanced else "NOT BALANCED")


@report_group.command("ledger")
@click.argument("account")
@click.option("--start-date", help="Start date (YYYY-MM-DD)")
@click.option("--end-date", help="End date (YYYY-MM-DD)")
@period_options
@click.pass_context
def account_ledger(
    ctx,
    account: str,
    start_date: str | None,
    end_date: str | None,
    this_month: bool,
    this_year: bool,
    last_month: bool,
    last_year: bool,
):
    """Show one account's entries with a running balance.

    ACCOUNT can be an account number or #ID.
    """
    db = ctx.obj["db"]
    service = ReportService(db)
    account_id = resolve_account_or_exit(ctx, SubledgerAccountService(db), account)

    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags={
            "this-month": this_month,
            "this-year": this_year,
            "last-month": last_month,
            "last-year": last_year,
        },
    )

    try:
        ledger = service.account_ledger(account_id, start_date=start, end_date=end)
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nLedger for {ledger.account.account_number} {ledger.account.name} ({ledger.account.gl_account_type.value})")
    click.echo("-" * 90)
    click.echo(f"{'Date':<12} {'ID':<6} {'Description':<30} {'Debit':>12} {'Credit':>12} {'Balance':>14}")
    click.echo("-" * 90)
    for line in ledger.lines:
        debit = f"{line.debit:,.2f}" if line.debit else ""
        credit = f"{line.credit:,.2f}" if line.credit else ""
        click.echo(
            f"{str(line.entry.entry_date):<12} {line.entry.id:<6} {line.entry.description[:30]:<30} "
            f"{debit:>12} {credit:>12} {line.balance:>14,.2f}"
        )
    click.echo("-" * 90)
    click.echo(f"Final balance: {format_money(ledger.final_balance)}")


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")
