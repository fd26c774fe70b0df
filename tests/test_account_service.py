"""Domain tests for GL and subledger account services."""

import pytest
from datetime import date

from ledgerly.domain.account_types import AccountType
from ledgerly.domain.errors import ConflictError, DependencyError, NotFoundError, ValidationError


class TestGLAccountService:
    """Tests for GLAccountService."""

    def test_create_account(self, gl_service):
        """Test creating a GL account with a type given by name."""
        account_id = gl_service.create_account("1000", "Cash", "cash")

        account = gl_service.get_account(account_id)
        assert account.type is AccountType.CASH
        assert account.is_active is True

    def test_create_account_unknown_type(self, gl_service):
        """Test an unknown account type raises ValidationError."""
        with pytest.raises(ValidationError, match="Unknown account type"):
            gl_service.create_account("1000", "Cash", "Liability")

    def test_create_account_blank_name(self, gl_service):
        """Test a blank name raises ValidationError."""
        with pytest.raises(ValidationError):
            gl_service.create_account("1000", "   ", "Cash")

    def test_create_duplicate_number(self, gl_service):
        """Test duplicate account numbers raise ConflictError."""
        gl_service.create_account("1000", "Cash", "Cash")

        with pytest.raises(ConflictError, match="already exists"):
            gl_service.create_account("1000", "Other", "Asset")

    def test_update_account(self, gl_service):
        """Test updating name, type and active flag."""
        account_id = gl_service.create_account("1000", "Cash", "Cash")

        gl_service.update_account(account_id, name="Bank", account_type="Asset", is_active=False)

        account = gl_service.get_account(account_id)
        assert account.name == "Bank"
        assert account.type is AccountType.ASSET
        assert account.is_active is False

    def test_update_to_taken_number(self, gl_service):
        """Test renumbering onto an existing number raises ConflictError."""
        gl_service.create_account("1000", "Cash", "Cash")
        other_id = gl_service.create_account("2000", "Payables", "Accounts Payable")

        with pytest.raises(ConflictError):
            gl_service.update_account(other_id, account_number="1000")

    def test_delete_account_with_subledgers_refused(self, gl_service, sample_chart):
        """Test a GL account with subledger accounts cannot be deleted."""
        with pytest.raises(DependencyError, match="2 subledger accounts"):
            gl_service.delete_account(sample_chart["gl"]["1000"])

    def test_delete_account(self, gl_service):
        """Test deleting an unused GL account."""
        account_id = gl_service.create_account("9000", "Suspense", "Asset")

        gl_service.delete_account(account_id)

        assert gl_service.get_account(account_id) is None

    def test_list_accounts_natural_order(self, gl_service):
        """Test accounts are listed in natural account-number order."""
        for number in ["1100", "999", "1010"]:
            gl_service.create_account(number, f"Account {number}", "Asset")

        assert [a.account_number for a in gl_service.list_accounts()] == ["999", "1010", "1100"]

    def test_list_accounts_filters(self, gl_service, sample_chart):
        """Test filtering by type and active flag."""
        gl_service.update_account(sample_chart["gl"]["1500"], is_active=False)

        assert [a.account_number for a in gl_service.list_accounts(account_type="Loss")] == ["5000"]
        assert "1500" not in [a.account_number for a in gl_service.list_accounts(active=True)]
        assert [a.account_number for a in gl_service.list_accounts(active=False)] == ["1500"]


class TestSubledgerAccountService:
    """Tests for SubledgerAccountService."""

    def test_create_account_defaults_currency(self, account_service, sample_chart):
        """Test a new subledger account gets the default currency."""
        account = account_service.get_account(sample_chart["1010"])

        assert account.currency_code == "USD"
        assert account.gl_account_id == sample_chart["gl"]["1000"]

    def test_create_account_unknown_gl(self, account_service):
        """Test an unknown GL account raises NotFoundError."""
        with pytest.raises(NotFoundError, match="GL account 42"):
            account_service.create_account("1010", "Checking", 42)

    def test_create_account_unknown_currency(self, account_service, sample_chart):
        """Test an unknown currency raises NotFoundError."""
        with pytest.raises(NotFoundError, match="Currency JPY"):
            account_service.create_account("1030", "Yen", sample_chart["gl"]["1000"], currency_code="jpy")

    def test_create_duplicate_number(self, account_service, sample_chart):
        """Test duplicate subledger numbers raise ConflictError."""
        with pytest.raises(ConflictError):
            account_service.create_account("1010", "Checking again", sample_chart["gl"]["1000"])

    def test_update_account_moves_gl(self, account_service, sample_chart):
        """Test moving an account under another GL account."""
        account_service.update_account(sample_chart["1020"], gl_account_id=sample_chart["gl"]["1500"])

        assert account_service.get_account(sample_chart["1020"]).gl_account_id == sample_chart["gl"]["1500"]

    def test_delete_account_with_entries_refused(self, account_service, sample_chart, sample_entries):
        """Test an account with journal entries cannot be deleted."""
        with pytest.raises(DependencyError, match="3 journal entries"):
            account_service.delete_account(sample_chart["1010"])

    def test_delete_account(self, account_service, sample_chart):
        """Test deleting an unused subledger account."""
        account_service.delete_account(sample_chart["1020"])

        assert account_service.get_account(sample_chart["1020"]) is None
        with pytest.raises(NotFoundError):
            account_service.delete_account(sample_chart["1020"])

    def test_list_accounts_by_gl(self, account_service, sample_chart):
        """Test filtering subledger accounts by GL account."""
        accounts = account_service.list_accounts(gl_account_id=sample_chart["gl"]["5000"])

        assert [a.account_number for a in accounts] == ["5010", "5020"]
