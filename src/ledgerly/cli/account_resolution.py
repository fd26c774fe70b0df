"""CLI helpers for account resolution and error handling."""

from __future__ import annotations

import click
from ledgerly.domain.account import GLAccountService, SubledgerAccountService
from ledgerly.utils.account_resolver import resolve_account


def resolve_account_or_exit(
    ctx: click.Context, account_service: SubledgerAccountService, account: str | int
) -> int:
    """Resolve an account number or #ID, or exit with a CLI error.

    This keeps error messaging and exit behavior consistent across commands.
    """
    try:
        return resolve_account(account_service, account)
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)


def resolve_gl_account_or_exit(ctx: click.Context, gl_service: GLAccountService, reference: str) -> int:
    """Resolve a GL account number or #ID, or exit with a CLI error."""
    reference = reference.strip()
    if reference.startswith("#") and reference[1:].isdigit():
        gl_account = gl_service.get_account(int(reference[1:]))
    else:
        gl_account = gl_service.get_account_by_number(reference)
    if gl_account is None:
        click.echo(f"Error: GL account '{reference}' not found", err=True)
        ctx.exit(1)
    return gl_account.id
