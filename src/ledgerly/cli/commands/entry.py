"""Journal entry commands."""

import click
from ledgerly.cli.account_resolution import resolve_account_or_exit
from ledgerly.cli.date_filters import parse_date_or_exit, period_options, resolve_cli_date_range
from ledgerly.cli.error_handling import handle_domain_error
from ledgerly.domain.account import SubledgerAccountService
from ledgerly.domain.attachment import AttachmentService
from ledgerly.domain.errors import PersistenceError
from ledgerly.domain.journal import JournalEntryService
from ledgerly.utils.amount_parser import parse_amount

SOURCE = "CLI"


def _parse_amount_or_exit(ctx, amount: str):
    try:
        return parse_amount(amount)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)


@click.group()
def entry_group():
    """Manage journal entries."""
    pass


@entry_group.command("add")
@click.option("--date", "entry_date", default="today", show_default=True, help="Entry date (YYYY-MM-DD or 'today', 'yesterday')")
@click.option("--debit", required=True, help="Debit account number or #ID")
@click.option("--credit", required=True, help="Credit account number or #ID")
@click.option("--amount", required=True, help="Positive amount in the entry currency (e.g., 123.45)")
@click.option("--description", required=True, help="Entry description")
@click.option("--currency", help="Entry currency (defaults to the default currency)")
@click.option("--category", help="Category")
@click.option("--comment", help="Comment")
@click.pass_context
def add_entry(
    ctx,
    entry_date: str,
    debit: str,
    credit: str,
    amount: str,
    description: str,
    currency: str | None,
    category: str | None,
    comment: str | None,
):
    """Book a journal entry: one debit leg and one credit leg.

    Examples:
        ledgerly entry add --debit 1010 --credit 3000 --amount 1000 --description "Owner investment"
        ledgerly entry add --date 2024-03-01 --debit 5000 --credit 1010 --amount 45.50 \\
            --currency EUR --description "Office supplies" --category Office
    """
    db = ctx.obj["db"]
    service = JournalEntryService(db)
    account_service = SubledgerAccountService(db)

    booking_date = parse_date_or_exit(ctx, entry_date, "date")
    debit_id = resolve_account_or_exit(ctx, account_service, debit)
    credit_id = resolve_account_or_exit(ctx, account_service, credit)
    value = _parse_amount_or_exit(ctx, amount)

    try:
        entry_id = service.create_entry(
            entry_date=booking_date,
            amount=value,
            debit_account_id=debit_id,
            credit_account_id=credit_id,
            description=description,
            currency_code=currency,
            category=category,
            comment=comment,
            source=SOURCE,
        )
    except (ValueError, PersistenceError) as e:
        handle_domain_error(ctx, e)

    entry = service.get_entry(entry_id)
    click.echo(f"Created journal entry {entry_id}")
    click.echo(f"  {entry.entry_date}  {entry.amount} {entry.currency_code}  ({entry.amount_in_usd} USD)")


@entry_group.command("update")
@click.argument("entry_id", type=int)
@click.option("--date", "entry_date", help="New entry date")
@click.option("--debit", help="New debit account number or #ID")
@click.option("--credit", help="New credit account number or #ID")
@click.option("--amount", help="New amount")
@click.option("--currency", help="New currency")
@click.option("--description", help="New description")
@click.option("--category", help="New category or empty string to clear")
@click.option("--comment", help="New comment or empty string to clear")
@click.pass_context
def update_entry(
    ctx,
    entry_id: int,
    entry_date: str | None,
    debit: str | None,
    credit: str | None,
    amount: str | None,
    currency: str | None,
    description: str | None,
    category: str | None,
    comment: str | None,
) -> None:
    """Update a journal entry.

    Updates only the fields that are provided. Use --category "" to clear the category.

    Examples:
        ledgerly entry update 1 --amount 75.00
        ledgerly entry update 1 --debit 5010 --category ""
    """
    db = ctx.obj["db"]
    service = JournalEntryService(db)
    account_service = SubledgerAccountService(db)

    debit_id = resolve_account_or_exit(ctx, account_service, debit) if debit is not None else None
    credit_id = resolve_account_or_exit(ctx, account_service, credit) if credit is not None else None

    try:
        service.update_entry(
            entry_id,
            entry_date=parse_date_or_exit(ctx, entry_date, "date"),
            amount=_parse_amount_or_exit(ctx, amount) if amount is not None else None,
            debit_account_id=debit_id,
            credit_account_id=credit_id,
            description=description,
            currency_code=currency,
            category=category,
            comment=comment,
            source=SOURCE,
        )
        click.echo(f"Updated journal entry {entry_id}")
    except (ValueError, PersistenceError) as e:
        handle_domain_error(ctx, e)


@entry_group.command("delete")
@click.argument("entry_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_entry(ctx, entry_id: int, yes: bool) -> None:
    """Delete a journal entry and its attachments."""
    service = JournalEntryService(ctx.obj["db"])

    entry = service.get_entry(entry_id)
    if entry is None:
        click.echo(f"Error: Journal entry {entry_id} not found", err=True)
        ctx.exit(1)

    if not yes and not click.confirm(f"Are you sure you want to delete journal entry {entry_id}?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_entry(entry_id, source=SOURCE)
        click.echo(f"Deleted journal entry {entry_id}")
    except (ValueError, PersistenceError) as e:
        handle_domain_error(ctx, e)


@entry_group.command("list")
@click.option("--start-date", help="Start date (YYYY-MM-DD)")
@click.option("--end-date", help="End date (YYYY-MM-DD)")
@period_options
@click.option("--account", help="Only entries touching this account (number or #ID)")
@click.option("--category", help="Only entries with this category")
@click.option("--currency", help="Only entries in this currency")
@click.pass_context
def list_entries(
    ctx,
    start_date: str | None,
    end_date: str | None,
    this_month: bool,
    this_year: bool,
    last_month: bool,
    last_year: bool,
    account: str | None,
    category: str | None,
    currency: str | None,
):
    """List journal entries, newest first."""
    db = ctx.obj["db"]
    service = JournalEntryService(db)
    account_service = SubledgerAccountService(db)

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
    account_id = resolve_account_or_exit(ctx, account_service, account) if account else None

    entries = service.list_entries(
        start_date=start, end_date=end, account_id=account_id, category=category, currency_code=currency
    )
    if not entries:
        click.echo("No journal entries found.")
        return

    numbers = {acc.id: acc.account_number for acc in account_service.list_accounts()}

    click.echo(f"\nFound {len(entries)} journal entr{'y' if len(entries) == 1 else 'ies'}:")
    click.echo("-" * 100)
    click.echo(
        f"{'ID':<6} {'Date':<12} {'Debit':<10} {'Credit':<10} {'Amount':>14} {'Cur':<4} {'USD':>14}  {'Description':<30}"
    )
    click.echo("-" * 100)
    for entry in entries:
        click.echo(
            f"{entry.id:<6} {str(entry.entry_date):<12} "
            f"{numbers.get(entry.debit_account_id, '?'):<10} {numbers.get(entry.credit_account_id, '?'):<10} "
            f"{entry.amount:>14,.2f} {entry.currency_code:<4} {entry.amount_in_usd:>14,.2f}  "
            f"{entry.description[:30]:<30}"
        )
    click.echo("-" * 100)
    total = sum(entry.amount_in_usd for entry in entries)
    click.echo(f"{'TOTAL':<6} Count: {len(entries)} | Amount (USD): ${total:,.2f}")


@entry_group.command("show")
@click.argument("entry_id", type=int)
@click.pass_context
def show_entry(ctx, entry_id: int):
    """Show one journal entry with its attachments."""
    db = ctx.obj["db"]
    service = JournalEntryService(db)
    account_service = SubledgerAccountService(db)

    entry = service.get_entry(entry_id)
    if entry is None:
        click.echo(f"Error: Journal entry {entry_id} not found", err=True)
        ctx.exit(1)

    debit = account_service.get_account(entry.debit_account_id)
    credit = account_service.get_account(entry.credit_account_id)

    click.echo(f"\nJournal Entry ID: {entry.id}")
    click.echo(f"  Date: {entry.entry_date}")
    click.echo(f"  Debit: {debit.account_number} {debit.name}")
    click.echo(f"  Credit: {credit.account_number} {credit.name}")
    click.echo(f"  Amount: {entry.amount:,.2f} {entry.currency_code}")
    click.echo(f"  Amount (USD): ${entry.amount_in_usd:,.2f}")
    click.echo(f"  Description: {entry.description}")
    if entry.category:
        click.echo(f"  Category: {entry.category}")
    if entry.comment:
        click.echo(f"  Comment: {entry.comment}")

    attachments = AttachmentService(db).list_attachments(journal_entry_id=entry_id)
    for attachment in attachments:
        click.echo(f"  Attachment {attachment.id}: {attachment.filename} ({attachment.file_size} bytes)")


def register_commands(cli):
    """Register journal entry commands with main CLI."""
    cli.add_command(entry_group, name="entry")
