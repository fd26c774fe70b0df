"""Sorting helpers."""

import re

_DIGITS = re.compile(r"(\d+)")


def account_number_key(account_number: str) -> tuple:
    """Numeric-aware sort key for account numbers.

    Digit runs compare as integers, so "1010" sorts after "1002" and
    before "1100", and "2-10" sorts after "2-9".
    """
    parts = _DIGITS.split(account_number or "")
    return tuple(
        (0, int(part), "") if part.isdigit() else (1, 0, part.lower())
        for part in parts
        if part != ""
    )
