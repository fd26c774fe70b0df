"""Tests for domain entities and account types."""

import pytest
from dataclasses import FrozenInstanceError
from datetime import datetime, date, UTC
from decimal import Decimal

from ledgerly.domain.account_types import (
    EXCLUDED_FROM_REPORTS,
    AccountType,
    NormalSide,
    normal_side,
)
from ledgerly.domain.entities import Currency, ImportRow, JournalEntry


class TestAccountType:
    """Tests for the AccountType enum."""

    @pytest.mark.parametrize(
        "value",
        ["Accounts Receivable", "accounts receivable", "ACCOUNTS_RECEIVABLE", "accounts-receivable"],
    )
    def test_parse_spellings(self, value):
        """Test parsing accepts value and name spellings."""
        assert AccountType.parse(value) is AccountType.ACCOUNTS_RECEIVABLE

    def test_parse_unknown(self):
        """Test parsing an unknown type raises ValueError listing the choices."""
        with pytest.raises(ValueError, match="Expected one of"):
            AccountType.parse("Liability")

    @pytest.mark.parametrize(
        "account_type",
        [AccountType.ASSET, AccountType.CASH, AccountType.ACCOUNTS_RECEIVABLE, AccountType.LOSS],
    )
    def test_debit_normal_types(self, account_type):
        """Test debit-normal account types."""
        assert normal_side(account_type) is NormalSide.DEBIT

    @pytest.mark.parametrize(
        "account_type",
        [
            AccountType.EQUITY,
            AccountType.ACCOUNTS_PAYABLE,
            AccountType.PROFIT,
            AccountType.OPENING_BALANCE,
        ],
    )
    def test_credit_normal_types(self, account_type):
        """Test credit-normal account types."""
        assert normal_side(account_type) is NormalSide.CREDIT

    def test_opening_balance_excluded_from_reports(self):
        """Test only Opening Balance is kept off the reports."""
        assert EXCLUDED_FROM_REPORTS == frozenset({AccountType.OPENING_BALANCE})


class TestEntities:
    """Tests for immutable entities."""

    def test_currency_immutability(self):
        """Test that Currency entities are immutable."""
        now = datetime.now(UTC)
        currency = Currency(
            code="EUR",
            name="Euro",
            symbol="€",
            exchange_rate=Decimal("1.10"),
            is_default=False,
            created_at=now,
            updated_at=now,
        )
        with pytest.raises(FrozenInstanceError):
            currency.exchange_rate = Decimal("2")

    def test_journal_entry_equality(self):
        """Test JournalEntry entity equality."""
        now = datetime.now(UTC)
        fields = dict(
            entry_date=date(2024, 1, 1),
            amount=Decimal("10"),
            currency_code="USD",
            amount_in_usd=Decimal("10.00"),
            debit_account_id=1,
            credit_account_id=2,
            description="Test",
            category=None,
            comment=None,
            created_at=now,
            updated_at=now,
        )
        assert JournalEntry(id=1, **fields) == JournalEntry(id=1, **fields)
        assert JournalEntry(id=1, **fields) != JournalEntry(id=2, **fields)

    def test_import_row_optional_fields(self):
        """Test ImportRow only requires the four core columns."""
        row = ImportRow(date="2024-01-01", debit_account="1010", credit_account="4010", amount="5")
        assert row.currency is None
        assert row.description is None
