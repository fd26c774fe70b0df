"""Tests for amount parsing and rounding."""

import pytest
from decimal import Decimal

from ledgerly.utils.amount_parser import (
    convert_to_reporting,
    format_money,
    parse_amount,
    round_money,
    to_decimal,
)


def test_parse_plain_amount():
    """Test parsing a plain decimal amount."""
    assert parse_amount("123.45") == Decimal("123.45")


def test_parse_amount_with_symbol_and_separators():
    """Test parsing amounts with currency symbols and thousands separators."""
    assert parse_amount("$1,234.56") == Decimal("1234.56")
    assert parse_amount("€99") == Decimal("99")


def test_parse_parenthesized_negative():
    """Test that (123.45) is parsed as negative."""
    assert parse_amount("(123.45)") == Decimal("-123.45")


@pytest.mark.parametrize("text", ["", "   ", "abc", "12.3.4"])
def test_parse_invalid_amount(text):
    """Test that malformed amounts raise ValueError."""
    with pytest.raises(ValueError):
        parse_amount(text)


@pytest.mark.parametrize("text", ["NaN", "Infinity", "-inf"])
def test_parse_non_finite_amount(text):
    """Test that non-finite amounts are rejected."""
    with pytest.raises(ValueError, match="finite"):
        parse_amount(text)


def test_to_decimal_float_keeps_shortest_repr():
    """Floats go through str() so 10.005 does not become 10.00499..."""
    assert to_decimal(10.005) == Decimal("10.005")
    assert to_decimal(Decimal("1.5")) == Decimal("1.5")
    assert to_decimal(7) == Decimal("7")


def test_round_money_half_up():
    """Test half-up rounding to cents, away from zero on ties."""
    assert round_money(Decimal("10.005")) == Decimal("10.01")
    assert round_money(Decimal("10.004")) == Decimal("10.00")
    assert round_money(Decimal("-10.005")) == Decimal("-10.01")


def test_round_money_out_of_range():
    """Test values too wide to round to cents raise ValueError."""
    with pytest.raises(ValueError, match="out of range"):
        round_money(Decimal("1e30"))


def test_convert_to_reporting_rounds_once():
    """Test the reporting amount is amount x rate rounded half-up."""
    assert convert_to_reporting(Decimal("10.005"), Decimal("1")) == Decimal("10.01")
    assert convert_to_reporting(Decimal("100"), Decimal("1.10")) == Decimal("110.00")
    assert convert_to_reporting(Decimal("33.33"), Decimal("0.015")) == Decimal("0.50")


def test_format_money():
    """Test display formatting."""
    assert format_money(Decimal("1234.5")) == "$1,234.50"
    assert format_money(Decimal("-12")) == "-$12.00"
    assert format_money(Decimal("3"), symbol="€") == "€3.00"
