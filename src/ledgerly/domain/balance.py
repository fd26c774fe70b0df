"""Balance engine.

Pure functions that turn journal entries into signed account balances in the
reporting currency. A posting on an account's normal side increases its
balance; a posting on the other side decreases it. Amounts were rounded once
when the entry was written, so nothing here rounds again.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from ledgerly.domain.account_types import AccountType, NormalSide, normal_side
from ledgerly.domain.entities import JournalEntry, PostingAccount

ZERO = Decimal("0")
EPSILON = Decimal("0.01")


def in_period(entry_date: date, start_date: Optional[date], end_date: Optional[date]) -> bool:
    """Return True if entry_date falls within the inclusive [start, end] range."""
    if start_date is not None and entry_date < start_date:
        return False
    if end_date is not None and entry_date > end_date:
        return False
    return True


def posting_effect(amount: Decimal, side: NormalSide, account_type: AccountType) -> Decimal:
    """Signed effect of one posting on an account of the given type."""
    return amount if side == normal_side(account_type) else -amount


def entry_effect(entry: JournalEntry, account_id: int, account_type: AccountType) -> Decimal:
    """Signed effect of a journal entry on one account (zero if it doesn't touch it)."""
    effect = ZERO
    if entry.debit_account_id == account_id:
        effect += posting_effect(entry.amount_in_usd, NormalSide.DEBIT, account_type)
    if entry.credit_account_id == account_id:
        effect += posting_effect(entry.amount_in_usd, NormalSide.CREDIT, account_type)
    return effect


def account_balance(
    account_id: int,
    account_type: AccountType,
    entries: Iterable[JournalEntry],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> Decimal:
    """Compute the signed balance of one account.

    Args:
        account_id: Subledger account ID
        account_type: Type of the account's GL account
        entries: Journal entries to consider
        start_date: Ignore entries before this date
        end_date: Ignore entries after this date ("as of")

    Returns:
        Balance in the reporting currency
    """
    balance = ZERO
    for entry in entries:
        if in_period(entry.entry_date, start_date, end_date):
            balance += entry_effect(entry, account_id, account_type)
    return balance


def compute_balances(
    accounts: Iterable[PostingAccount],
    entries: Iterable[JournalEntry],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> dict[int, Decimal]:
    """Compute balances for many accounts in one pass over the entries.

    Every account in ``accounts`` gets a balance, zero when nothing posts
    to it. Entry legs on accounts not listed are ignored.

    Returns:
        Mapping of subledger account ID to balance
    """
    types = {account.id: account.gl_account_type for account in accounts}
    balances = {account_id: ZERO for account_id in types}

    for entry in entries:
        if not in_period(entry.entry_date, start_date, end_date):
            continue
        debit_type = types.get(entry.debit_account_id)
        if debit_type is not None:
            balances[entry.debit_account_id] += posting_effect(
                entry.amount_in_usd, NormalSide.DEBIT, debit_type
            )
        credit_type = types.get(entry.credit_account_id)
        if credit_type is not None:
            balances[entry.credit_account_id] += posting_effect(
                entry.amount_in_usd, NormalSide.CREDIT, credit_type
            )

    return balances


def split_debit_credit(balance: Decimal, account_type: AccountType) -> tuple[Decimal, Decimal]:
    """Map a signed balance onto (debit, credit) trial-balance columns.

    A positive balance sits on the account's normal side; a negative one
    is shown, as an absolute value, on the opposite side.
    """
    if balance == 0:
        return ZERO, ZERO
    on_normal_side = balance > 0
    is_debit_normal = normal_side(account_type) == NormalSide.DEBIT
    if on_normal_side == is_debit_normal:
        return abs(balance), ZERO
    return ZERO, abs(balance)


def is_balanced(left: Decimal, right: Decimal) -> bool:
    """Return True if two totals agree within one cent."""
    return abs(left - right) < EPSILON
