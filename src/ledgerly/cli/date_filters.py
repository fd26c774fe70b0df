"""CLI helpers for date range resolution."""

from datetime import date

import click

from ledgerly.utils.date_parser import get_date_range, parse_date


def period_options(func):
    """Add the --this-month/--this-year/--last-month/--last-year flags."""
    for flag, label in reversed(
        (
            ("--this-month", "current month"),
            ("--this-year", "current year"),
            ("--last-month", "previous month"),
            ("--last-year", "previous year"),
        )
    ):
        func = click.option(flag, is_flag=True, help=f"Filter to {label}")(func)
    return func


def parse_date_or_exit(ctx, value: str | None, label: str) -> date | None:
    """Parse an optional CLI date, or exit with a CLI error."""
    if not value:
        return None
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def resolve_cli_date_range(
    ctx,
    *,
    start_date: str | None,
    end_date: str | None,
    period_flags: dict[str, bool],
    default_range: tuple[date, date] | None = None,
) -> tuple[date | None, date | None]:
    """Resolve CLI date range from period flags or explicit dates."""
    period_count = sum(1 for is_set in period_flags.values() if is_set)

    if period_count > 1:
        click.echo(
            "Error: Only one period option (--this-month, --this-year, --last-month, --last-year) can be specified at a time.",
            err=True,
        )
        ctx.exit(1)

    if period_count > 0 and (start_date or end_date):
        click.echo(
            "Error: Period options (--this-month, --this-year, etc.) cannot be combined with --start-date or --end-date.",
            err=True,
        )
        ctx.exit(1)

    if period_count == 1:
        for period, is_set in period_flags.items():
            if is_set:
                return get_date_range(period)

    start = parse_date_or_exit(ctx, start_date, "start date")
    end = parse_date_or_exit(ctx, end_date, "end date")

    if start is None and end is None and default_range is not None:
        start, end = default_range

    return start, end
