"""Report generation domain service.

Every report reads accounts and entries under the store lock, then computes
with the balance engine outside it. Amounts are in the reporting currency;
the currency code passed in is validated and echoed on the report.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from ledgerly.database.base import Database
from ledgerly.domain.account_types import (
    ASSET_TYPES,
    EQUITY_TYPES,
    EXCLUDED_FROM_REPORTS,
    EXPENSE_TYPES,
    LIABILITY_TYPES,
    REVENUE_TYPES,
    AccountType,
)
from ledgerly.domain.balance import (
    EPSILON,
    ZERO,
    compute_balances,
    entry_effect,
    is_balanced,
    split_debit_credit,
)
from ledgerly.domain.entities import (
    AccountBalance,
    AccountLedger,
    BalanceSheet,
    LedgerLine,
    PostingAccount,
    ProfitLoss,
    ReportSection,
    TrialBalance,
    TrialBalanceLine,
)
from ledgerly.domain.errors import NotFoundError, currency_not_found, subledger_not_found
from ledgerly.utils.sorting import account_number_key

logger = logging.getLogger(__name__)


def _by_account_number(account: PostingAccount) -> tuple:
    return account_number_key(account.account_number)


def build_section(
    accounts: Iterable[PostingAccount],
    balances: dict[int, Decimal],
    types: frozenset[AccountType],
) -> ReportSection:
    """Collect the accounts of the given types with their balances and total."""
    selected = sorted(
        (account for account in accounts if account.gl_account_type in types),
        key=_by_account_number,
    )
    lines = tuple(AccountBalance(account=a, balance=balances.get(a.id, ZERO)) for a in selected)
    return ReportSection(accounts=lines, total=sum((line.balance for line in lines), ZERO))


class ReportService:
    """Service for balance sheet, profit and loss, trial balance and ledger reports."""

    def __init__(self, db: Database):
        """Initialize report service.

        Args:
            db: Database instance
        """
        self.db = db

    def _report_currency(self, currency_code: Optional[str]) -> str:
        if currency_code is None:
            default = self.db.get_default_currency()
            if default is None:
                raise NotFoundError("No default currency is configured")
            return default.code
        code = currency_code.strip().upper()
        if self.db.get_currency(code) is None:
            raise NotFoundError(currency_not_found(code))
        return code

    def _reportable_balances(
        self, start_date: Optional[date], end_date: Optional[date]
    ) -> tuple[list[PostingAccount], dict[int, Decimal]]:
        with self.db.read():
            accounts = self.db.list_posting_accounts()
            entries = self.db.list_journal_entries(start_date=start_date, end_date=end_date)
        visible = [a for a in accounts if a.gl_account_type not in EXCLUDED_FROM_REPORTS]
        return visible, compute_balances(visible, entries)

    def balance_sheet(
        self, as_of: Optional[date] = None, currency_code: Optional[str] = None
    ) -> BalanceSheet:
        """Build the balance sheet as of a date.

        Retained earnings (revenue minus expenses over all time up to
        ``as_of``) are folded into equity.

        Args:
            as_of: Include entries on or before this date (default: today)
            currency_code: Currency to label the report with (default: default currency)

        Returns:
            BalanceSheet

        Raises:
            NotFoundError: If the currency doesn't exist
        """
        as_of = as_of or date.today()
        code = self._report_currency(currency_code)
        accounts, balances = self._reportable_balances(None, as_of)

        assets = build_section(accounts, balances, ASSET_TYPES)
        liabilities = build_section(accounts, balances, LIABILITY_TYPES)
        equity = build_section(accounts, balances, EQUITY_TYPES)
        revenue = build_section(accounts, balances, REVENUE_TYPES)
        expenses = build_section(accounts, balances, EXPENSE_TYPES)

        retained_earnings = revenue.total - expenses.total
        total_equity = equity.total + retained_earnings
        total_liabilities_and_equity = liabilities.total + total_equity

        return BalanceSheet(
            as_of=as_of,
            currency_code=code,
            assets=assets,
            liabilities=liabilities,
            equity=equity,
            retained_earnings=retained_earnings,
            total_equity=total_equity,
            total_liabilities_and_equity=total_liabilities_and_equity,
            balanced=is_balanced(assets.total, total_liabilities_and_equity),
        )

    def profit_loss(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        currency_code: Optional[str] = None,
    ) -> ProfitLoss:
        """Build the profit and loss statement over a period.

        Args:
            start_date: First day of the period (default: beginning of time)
            end_date: Last day of the period (default: today)
            currency_code: Currency to label the report with (default: default currency)

        Returns:
            ProfitLoss with net_income = total revenue - total expenses
        """
        end_date = end_date or date.today()
        code = self._report_currency(currency_code)
        accounts, balances = self._reportable_balances(start_date, end_date)

        revenue = build_section(accounts, balances, REVENUE_TYPES)
        expenses = build_section(accounts, balances, EXPENSE_TYPES)

        return ProfitLoss(
            start_date=start_date,
            end_date=end_date,
            currency_code=code,
            revenue=revenue,
            expenses=expenses,
            net_income=revenue.total - expenses.total,
        )

    def trial_balance(
        self, as_of: Optional[date] = None, currency_code: Optional[str] = None
    ) -> TrialBalance:
        """Build the trial balance as of a date.

        Accounts whose balance is within one cent of zero are left out.

        Returns:
            TrialBalance sorted by account number
        """
        as_of = as_of or date.today()
        code = self._report_currency(currency_code)
        accounts, balances = self._reportable_balances(None, as_of)

        lines = []
        for account in sorted(accounts, key=_by_account_number):
            balance = balances[account.id]
            if abs(balance) <= EPSILON:
                continue
            debit, credit = split_debit_credit(balance, account.gl_account_type)
            lines.append(
                TrialBalanceLine(account=account, balance=balance, debit=debit, credit=credit)
            )

        total_debits = sum((line.debit for line in lines), ZERO)
        total_credits = sum((line.credit for line in lines), ZERO)

        return TrialBalance(
            as_of=as_of,
            currency_code=code,
            lines=tuple(lines),
            total_debits=total_debits,
            total_credits=total_credits,
            balanced=is_balanced(total_debits, total_credits),
        )

    def account_ledger(
        self,
        account_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> AccountLedger:
        """Build the running-balance history of one account.

        The running balance starts at zero at the beginning of the range and
        is replayed oldest first (by entry date, then entry ID), so the result
        does not depend on the order the entries were fetched in.

        Args:
            account_id: Subledger account ID (any account type, including Opening Balance)
            start_date: First day to include
            end_date: Last day to include

        Returns:
            AccountLedger with lines in chronological order

        Raises:
            NotFoundError: If the account doesn't exist
        """
        with self.db.read():
            account = self.db.get_posting_account(account_id)
            if account is None:
                raise NotFoundError(subledger_not_found(account_id))
            # Newest first
            entries = self.db.list_journal_entries(
                start_date=start_date, end_date=end_date, account_id=account_id
            )

        running = ZERO
        lines = []
        for entry in sorted(entries, key=lambda e: (e.entry_date, e.id)):
            debit = entry.amount_in_usd if entry.debit_account_id == account_id else ZERO
            credit = entry.amount_in_usd if entry.credit_account_id == account_id else ZERO
            running += entry_effect(entry, account_id, account.gl_account_type)
            lines.append(LedgerLine(entry=entry, debit=debit, credit=credit, balance=running))

        logger.debug("Ledger for account %s: %d entries", account.account_number, len(lines))
        return AccountLedger(
            account=account,
            start_date=start_date,
            end_date=end_date,
            lines=tuple(lines),
            final_balance=running,
        )
