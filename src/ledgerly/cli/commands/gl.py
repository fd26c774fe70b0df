"""GL account management commands."""

import click
from ledgerly.cli.account_resolution import resolve_gl_account_or_exit
from ledgerly.cli.error_handling import handle_domain_error
from ledgerly.domain.account import GLAccountService
from ledgerly.domain.account_types import AccountType
from ledgerly.domain.errors import PersistenceError

SOURCE = "CLI"
TYPE_CHOICES = [t.value for t in AccountType]


@click.group()
def gl_group():
    """Manage GL (type) accounts."""
    pass


@gl_group.command("create")
@click.argument("account_number")
@click.argument("name")
@click.option(
    "--type", "account_type", required=True, type=click.Choice(TYPE_CHOICES, case_sensitive=False),
    help="Account type",
)
@click.option("--description", help="Account description")
@click.option("--inactive", is_flag=True, help="Create the account as inactive")
@click.pass_context
def create_gl_account(
    ctx, account_number: str, name: str, account_type: str, description: str | None, inactive: bool
):
    """Create a new GL account.

    Examples:
        ledgerly gl create 1000 "Bank Accounts" --type Cash
        ledgerly gl create 4000 "Sales" --type Profit
    """
    service = GLAccountService(ctx.obj["db"])

    try:
        account_id = service.create_account(
            account_number=account_number,
            name=name,
            account_type=account_type,
            description=description,
            is_active=not inactive,
            source=SOURCE,
        )
        click.echo(f"Created GL account {account_number} '{name}' (ID: {account_id})")
    except (ValueError, PersistenceError) as e:
        handle_domain_error(ctx, e)


@gl_group.command("update")
@click.argument("account")
@click.option("--number", "account_number", help="New account number")
@click.option("--name", help="New name")
@click.option("--type", "account_type", type=click.Choice(TYPE_CHOICES, case_sensitive=False), help="New type")
@click.option("--description", help="New description (empty string to clear)")
@click.option("--active/--inactive", default=None, help="Activate or deactivate the account")
@click.pass_context
def update_gl_account(
    ctx,
    account: str,
    account_number: str | None,
    name: str | None,
    account_type: str | None,
    description: str | None,
    active: bool | None,
) -> None:
    """Update a GL account.

    ACCOUNT can be an account number or #ID.
    """
    service = GLAccountService(ctx.obj["db"])
    account_id = resolve_gl_account_or_exit(ctx, service, account)

    try:
        service.update_account(
            account_id,
            account_number=account_number,
            name=name,
            account_type=account_type,
            description=description,
            is_active=active,
            source=SOURCE,
        )
        click.echo(f"Updated GL account {account}")
    except (ValueError, PersistenceError) as e:
        handle_domain_error(ctx, e)


@gl_group.command("delete")
@click.argument("account")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_gl_account(ctx, account: str, yes: bool) -> None:
    """Delete a GL account.

    ACCOUNT can be an account number or #ID. The account can only be deleted
    if no subledger accounts belong to it.
    """
    service = GLAccountService(ctx.obj["db"])
    account_id = resolve_gl_account_or_exit(ctx, service, account)
    account_obj = service.get_account(account_id)

    if not yes and not click.confirm(
        f"Are you sure you want to delete GL account {account_obj.account_number} '{account_obj.name}'?"
    ):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_account(account_id, source=SOURCE)
        click.echo(f"Deleted GL account {account_obj.account_number}")
    except (ValueError, PersistenceError) as e:
        handle_domain_error(ctx, e)


@gl_group.command("list")
@click.option("--type", "account_type", type=click.Choice(TYPE_CHOICES, case_sensitive=False), help="Only this type")
@click.option("--active-only", is_flag=True, help="Hide inactive accounts")
@click.pass_context
def list_gl_accounts(ctx, account_type: str | None, active_only: bool):
    """List GL accounts in account-number order."""
    service = GLAccountService(ctx.obj["db"])

    accounts = service.list_accounts(active=True if active_only else None, account_type=account_type)
    if not accounts:
        click.echo("No GL accounts found.")
        return

    click.echo("\nGL Accounts:")
    click.echo("-" * 72)
    for acc in accounts:
        status = "" if acc.is_active else " (inactive)"
        click.echo(f"ID: {acc.id:3d} | {acc.account_number:8s} | {acc.name:30s} | {acc.type.value}{status}")


def register_commands(cli):
    """Register GL account commands with main CLI."""
    cli.add_command(gl_group, name="gl")
