"""GL account types and their normal balance sides."""

from enum import Enum


class AccountType(str, Enum):
    """Closed set of GL account types."""

    ASSET = "Asset"
    CASH = "Cash"
    ACCOUNTS_RECEIVABLE = "Accounts Receivable"
    EQUITY = "Equity"
    ACCOUNTS_PAYABLE = "Accounts Payable"
    PROFIT = "Profit"
    LOSS = "Loss"
    # Seeds starting balances; never shown on a report
    OPENING_BALANCE = "Opening Balance"

    @classmethod
    def parse(cls, value: "str | AccountType") -> "AccountType":
        """Resolve an account type from its value or name, case-insensitively.

        Accepts "Accounts Receivable", "accounts-receivable" and
        "ACCOUNTS_RECEIVABLE" alike.

        Raises:
            ValueError: If the value names no account type
        """
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower().replace("-", " ").replace("_", " ")
        for member in cls:
            if member.value.lower() == normalized:
                return member
        choices = ", ".join(member.value for member in cls)
        raise ValueError(f"Unknown account type '{value}'. Expected one of: {choices}")


class NormalSide(str, Enum):
    """Side on which postings increase an account's balance."""

    DEBIT = "debit"
    CREDIT = "credit"


NORMAL_SIDE: dict[AccountType, NormalSide] = {
    AccountType.ASSET: NormalSide.DEBIT,
    AccountType.CASH: NormalSide.DEBIT,
    AccountType.ACCOUNTS_RECEIVABLE: NormalSide.DEBIT,
    AccountType.LOSS: NormalSide.DEBIT,
    AccountType.EQUITY: NormalSide.CREDIT,
    AccountType.ACCOUNTS_PAYABLE: NormalSide.CREDIT,
    AccountType.PROFIT: NormalSide.CREDIT,
    AccountType.OPENING_BALANCE: NormalSide.CREDIT,
}

ASSET_TYPES = frozenset(
    {AccountType.ASSET, AccountType.CASH, AccountType.ACCOUNTS_RECEIVABLE}
)
LIABILITY_TYPES = frozenset({AccountType.ACCOUNTS_PAYABLE})
EQUITY_TYPES = frozenset({AccountType.EQUITY})
REVENUE_TYPES = frozenset({AccountType.PROFIT})
EXPENSE_TYPES = frozenset({AccountType.LOSS})
EXCLUDED_FROM_REPORTS = frozenset({AccountType.OPENING_BALANCE})


def normal_side(account_type: AccountType) -> NormalSide:
    """Return the normal balance side for an account type."""
    return NORMAL_SIDE[account_type]
