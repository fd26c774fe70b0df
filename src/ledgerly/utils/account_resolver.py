"""Utility for resolving subledger account references to IDs."""

from ledgerly.domain.account import SubledgerAccountService
from ledgerly.domain.errors import NotFoundError


def resolve_account(account_service: SubledgerAccountService, account: str | int) -> int:
    """Resolve an account number or ID reference to a subledger account ID.

    Args:
        account_service: SubledgerAccountService instance
        account: Account number ("1010"), ID reference ("#3") or int ID

    Returns:
        Account ID

    Raises:
        NotFoundError: If the account is not found
        ValueError: If an ID reference is malformed
    """
    if isinstance(account, int):
        if account_service.get_account(account) is None:
            raise NotFoundError(f"Account ID {account} not found")
        return account

    reference = str(account).strip()
    # "#12" always means ID 12, so numeric account numbers stay unambiguous
    if reference.startswith("#"):
        try:
            account_id = int(reference[1:])
        except ValueError:
            raise ValueError(f"Invalid account ID reference '{reference}'")
        if account_service.get_account(account_id) is None:
            raise NotFoundError(f"Account ID {account_id} not found")
        return account_id

    account_obj = account_service.get_account_by_number(reference)
    if account_obj is None:
        raise NotFoundError(f"Account '{reference}' not found")
    return account_obj.id
