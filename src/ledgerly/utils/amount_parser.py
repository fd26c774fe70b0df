"""Amount parsing and rounding utilities."""

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENT = Decimal("0.01")


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles "123.45", "$1,234.56" and "(123.45)" (negative in parentheses).
    The sign is preserved; callers decide whether a negative value is valid.

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed or is not finite
    """
    if amount_str is None or not str(amount_str).strip():
        raise ValueError("Empty amount string")

    text = str(amount_str).strip()

    is_negative = False
    if text.startswith("(") and text.endswith(")"):
        is_negative = True
        text = text[1:-1]

    text = re.sub(r"[$€£¥]", "", text).replace(",", "").strip()

    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str}'")

    if not amount.is_finite():
        raise ValueError(f"Amount must be a finite number, got '{amount_str}'")

    return -amount if is_negative else amount


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """Coerce a numeric value to Decimal without binary float artifacts."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # str() keeps the shortest repr, so 10.005 stays 10.005
        return Decimal(str(value))
    return parse_amount(str(value))


def round_money(value: Decimal) -> Decimal:
    """Round to the currency minor unit (2 places), half away from zero.

    Raises:
        ValueError: If the value has too many digits to round to cents
    """
    try:
        return value.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation as e:
        raise ValueError(f"Amount {value} is out of range") from e


def convert_to_reporting(amount: Decimal, exchange_rate: Decimal) -> Decimal:
    """Re-express an amount in the reporting currency, rounded once."""
    return round_money(amount * exchange_rate)


def format_money(value: Decimal, symbol: str = "$") -> str:
    """Format an amount for display, e.g. "$1,234.50" or "-$12.00"."""
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"
