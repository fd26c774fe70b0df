"""Date parsing utilities."""

from datetime import date, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

PERIODS = ("this-month", "this-year", "last-month", "last-year")


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Accepts ISO and free-form absolute dates ("2024-01-15",
    "January 15, 2024") plus "today", "yesterday" and "tomorrow".
    Time-of-day components are dropped: entries are booked per day.

    Raises:
        ValueError: If date string cannot be parsed
    """
    if date_str is None or not str(date_str).strip():
        raise ValueError("Empty date string")

    text = str(date_str).strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }
    if text in relative_dates:
        return relative_dates[text]

    try:
        return date_parser.parse(text).date()
    except (ValueError, OverflowError, TypeError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def get_date_range(period: str, today: date | None = None) -> tuple[date, date]:
    """Get start and end dates for a named reporting period.

    Args:
        period: One of this-month, this-year, last-month, last-year
        today: Reference date (defaults to the current date)

    Raises:
        ValueError: If period string is not recognized
    """
    period = period.strip().lower()
    today = today or date.today()

    if period == "this-month":
        return today.replace(day=1), today
    if period == "this-year":
        return today.replace(month=1, day=1), today
    if period == "last-month":
        start = (today - relativedelta(months=1)).replace(day=1)
        return start, today.replace(day=1) - timedelta(days=1)
    if period == "last-year":
        start = today.replace(month=1, day=1) - relativedelta(years=1)
        return start, today.replace(month=1, day=1) - timedelta(days=1)

    raise ValueError(f"Unknown period: '{period}'. Supported periods: {', '.join(PERIODS)}")
