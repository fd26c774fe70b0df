"""Currency management commands."""

import click
from ledgerly.cli.error_handling import handle_domain_error
from ledgerly.domain.currency import CurrencyService
from ledgerly.domain.errors import PersistenceError

SOURCE = "CLI"


@click.group()
def currency_group():
    """Manage currencies and their exchange rates."""
    pass


@currency_group.command("create")
@click.argument("code")
@click.option("--name", required=True, help="Currency name (e.g., 'Euro')")
@click.option("--symbol", required=True, help="Display symbol (e.g., '€')")
@click.option("--rate", default="1", show_default=True, help="Units of USD per unit of this currency")
@click.option("--default", "is_default", is_flag=True, help="Make this the default currency")
@click.pass_context
def create_currency(ctx, code: str, name: str, symbol: str, rate: str, is_default: bool):
    """Create a new currency.

    Examples:
        ledgerly currency create EUR --name Euro --symbol € --rate 1.10
        ledgerly currency create GBP --name "Pound Sterling" --symbol £ --rate 1.25
    """
    service = CurrencyService(ctx.obj["db"])

    try:
        code = service.create_currency(
            code=code, name=name, symbol=symbol, exchange_rate=rate, is_default=is_default, source=SOURCE
        )
        click.echo(f"Created currency {code}")
        if is_default:
            click.echo(f"{code} is now the default currency")
    except (ValueError, PersistenceError) as e:
        handle_domain_error(ctx, e)


@currency_group.command("update")
@click.argument("code")
@click.option("--name", help="New currency name")
@click.option("--symbol", help="New display symbol")
@click.option("--rate", help="New exchange rate (applies to entries written from now on)")
@click.option("--default", "is_default", is_flag=True, help="Make this the default currency")
@click.pass_context
def update_currency(
    ctx, code: str, name: str | None, symbol: str | None, rate: str | None, is_default: bool
) -> None:
    """Update a currency.

    Changing the rate does not revalue existing entries.

    Examples:
        ledgerly currency update EUR --rate 1.08
        ledgerly currency update EUR --default
    """
    service = CurrencyService(ctx.obj["db"])

    try:
        service.update_currency(
            code,
            name=name,
            symbol=symbol,
            exchange_rate=rate,
            is_default=True if is_default else None,
            source=SOURCE,
        )
        click.echo(f"Updated currency {code.upper()}")
    except (ValueError, PersistenceError) as e:
        handle_domain_error(ctx, e)


@currency_group.command("delete")
@click.argument("code")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_currency(ctx, code: str, yes: bool) -> None:
    """Delete a currency.

    The default currency, and currencies still used by accounts or entries,
    cannot be deleted.
    """
    service = CurrencyService(ctx.obj["db"])

    existing = service.get_currency(code)
    if existing is None:
        click.echo(f"Error: Currency {code.upper()} not found", err=True)
        ctx.exit(1)

    if not yes and not click.confirm(f"Are you sure you want to delete currency {existing.code}?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_currency(existing.code, source=SOURCE)
        click.echo(f"Deleted currency {existing.code}")
    except (ValueError, PersistenceError) as e:
        handle_domain_error(ctx, e)


@currency_group.command("list")
@click.pass_context
def list_currencies(ctx):
    """List all currencies."""
    service = CurrencyService(ctx.obj["db"])

    currencies = service.list_currencies()
    if not currencies:
        click.echo("No currencies found.")
        return

    click.echo("\nCurrencies:")
    click.echo("-" * 60)
    for cur in currencies:
        marker = " (default)" if cur.is_default else ""
        click.echo(f"{cur.code} | {cur.symbol:4s} | {cur.name:20s} | Rate: {cur.exchange_rate}{marker}")


def register_commands(cli):
    """Register currency commands with main CLI."""
    cli.add_command(currency_group, name="currency")
