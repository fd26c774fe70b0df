"""Subledger account management commands."""

import click
from ledgerly.cli.account_resolution import resolve_account_or_exit, resolve_gl_account_or_exit
from ledgerly.cli.error_handling import handle_domain_error
from ledgerly.domain.account import GLAccountService, SubledgerAccountService
from ledgerly.domain.errors import PersistenceError

SOURCE = "CLI"


@click.group()
def account_group():
    """Manage subledger accounts (the accounts entries post to)."""
    pass


@account_group.command("create")
@click.argument("account_number")
@click.argument("name")
@click.option("--gl", "gl_account", required=True, help="GL account number or #ID")
@click.option("--currency", help="Account currency (defaults to the default currency)")
@click.option("--description", help="Account description")
@click.option("--inactive", is_flag=True, help="Create the account as inactive")
@click.pass_context
def create_account(
    ctx,
    account_number: str,
    name: str,
    gl_account: str,
    currency: str | None,
    description: str | None,
    inactive: bool,
):
    """Create a new subledger account under a GL account.

    Examples:
        ledgerly account create 1010 "Checking" --gl 1000
        ledgerly account create 1020 "Euro Savings" --gl 1000 --currency EUR
    """
    db = ctx.obj["db"]
    service = SubledgerAccountService(db)
    gl_account_id = resolve_gl_account_or_exit(ctx, GLAccountService(db), gl_account)

    try:
        account_id = service.create_account(
            account_number=account_number,
            name=name,
            gl_account_id=gl_account_id,
            currency_code=currency,
            description=description,
            is_active=not inactive,
            source=SOURCE,
        )
        click.echo(f"Created account {account_number} '{name}' (ID: {account_id})")
    except (ValueError, PersistenceError) as e:
        handle_domain_error(ctx, e)


@account_group.command("update")
@click.argument("account")
@click.option("--number", "account_number", help="New account number")
@click.option("--name", help="New name")
@click.option("--gl", "gl_account", help="Move under this GL account (number or #ID)")
@click.option("--currency", help="New account currency")
@click.option("--description", help="New description (empty string to clear)")
@click.option("--active/--inactive", default=None, help="Activate or deactivate the account")
@click.pass_context
def update_account(
    ctx,
    account: str,
    account_number: str | None,
    name: str | None,
    gl_account: str | None,
    currency: str | None,
    description: str | None,
    active: bool | None,
) -> None:
    """Update a subledger account.

    ACCOUNT can be an account number or #ID.

    Examples:
        ledgerly account update 1010 --name "Main Checking"
        ledgerly account update "#3" --inactive
    """
    db = ctx.obj["db"]
    service = SubledgerAccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)

    gl_account_id = None
    if gl_account is not None:
        gl_account_id = resolve_gl_account_or_exit(ctx, GLAccountService(db), gl_account)

    try:
        service.update_account(
            account_id,
            account_number=account_number,
            name=name,
            gl_account_id=gl_account_id,
            currency_code=currency,
            description=description,
            is_active=active,
            source=SOURCE,
        )
        click.echo(f"Updated account {account}")
    except (ValueError, PersistenceError) as e:
        handle_domain_error(ctx, e)


@account_group.command("delete")
@click.argument("account")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_account(ctx, account: str, yes: bool) -> None:
    """Delete a subledger account.

    ACCOUNT can be an account number or #ID.

    The account can only be deleted if no journal entries post to it.
    Use 'entry delete' to remove them first, or re-post them elsewhere.
    """
    service = SubledgerAccountService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, account)
    account_obj = service.get_account(account_id)

    if not yes and not click.confirm(
        f"Are you sure you want to delete account {account_obj.account_number} '{account_obj.name}'?"
    ):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_account(account_id, source=SOURCE)
        click.echo(f"Deleted account {account_obj.account_number} '{account_obj.name}'")
    except (ValueError, PersistenceError) as e:
        handle_domain_error(ctx, e)


@account_group.command("list")
@click.option("--gl", "gl_account", help="Only accounts under this GL account (number or #ID)")
@click.option("--currency", help="Only accounts in this currency")
@click.option("--active-only", is_flag=True, help="Hide inactive accounts")
@click.pass_context
def list_accounts(ctx, gl_account: str | None, currency: str | None, active_only: bool):
    """List subledger accounts in account-number order."""
    db = ctx.obj["db"]
    service = SubledgerAccountService(db)
    gl_service = GLAccountService(db)

    gl_account_id = None
    if gl_account is not None:
        gl_account_id = resolve_gl_account_or_exit(ctx, gl_service, gl_account)

    accounts = service.list_accounts(
        active=True if active_only else None, gl_account_id=gl_account_id, currency_code=currency
    )
    if not accounts:
        click.echo("No accounts found.")
        return

    gl_numbers = {gl.id: gl.account_number for gl in gl_service.list_accounts()}

    click.echo("\nAccounts:")
    click.echo("-" * 80)
    for acc in accounts:
        status = "" if acc.is_active else " (inactive)"
        click.echo(
            f"ID: {acc.id:3d} | {acc.account_number:8s} | {acc.name:30s} | "
            f"GL: {gl_numbers.get(acc.gl_account_id, '?'):8s} | {acc.currency_code}{status}"
        )


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
