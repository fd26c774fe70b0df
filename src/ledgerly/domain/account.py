"""GL and subledger account domain services."""

from typing import Optional

from ledgerly.database.base import Database
from ledgerly.domain.account_types import AccountType
from ledgerly.domain.audit import AuditService
from ledgerly.domain.currency import normalize_currency_code
from ledgerly.domain.entities import (
    GLAccount as GLAccountEntity,
    SubledgerAccount as SubledgerAccountEntity,
)
from ledgerly.domain.errors import (
    ConflictError,
    DependencyError,
    NotFoundError,
    ValidationError,
    currency_not_found,
    delete_blocked,
    gl_account_not_found,
    subledger_not_found,
)
from ledgerly.domain.validation import optional_text, require_text
from ledgerly.utils.sorting import account_number_key


def _parse_account_type(value: AccountType | str) -> AccountType:
    try:
        return AccountType.parse(value)
    except ValueError as e:
        raise ValidationError(str(e)) from e


class GLAccountService:
    """Service for managing GL (type) accounts."""

    def __init__(self, db: Database):
        """Initialize GL account service.

        Args:
            db: Database instance
        """
        self.db = db
        self.audit = AuditService(db)

    def create_account(
        self,
        account_number: str,
        name: str,
        account_type: AccountType | str,
        description: Optional[str] = None,
        is_active: bool = True,
        source: str = "API",
    ) -> int:
        """Create a new GL account.

        Args:
            account_number: Unique account number
            name: Account name
            account_type: Account type (value or name, case-insensitive)
            description: Optional description
            is_active: Whether the account is active
            source: Audit source

        Returns:
            GL account ID

        Raises:
            ValidationError: If a field is malformed
            ConflictError: If the account number already exists
        """
        account_number = require_text(account_number, "Account number", 50)
        name = require_text(name, "Name", 200)
        account_type = _parse_account_type(account_type)
        description = optional_text(description, "Description", 500)

        with self.db.mutation():
            if self.db.get_gl_account_by_number(account_number) is not None:
                raise ConflictError(f"GL account with number {account_number} already exists")
            account_id = self.db.create_gl_account(
                account_number=account_number,
                name=name,
                account_type=account_type,
                description=description,
                is_active=is_active,
            )
            self.audit.record(
                "CREATE",
                "gl_account",
                account_id,
                source=source,
                new_data=self.db.get_gl_account(account_id),
            )
        return account_id

    def update_account(
        self,
        account_id: int,
        account_number: Optional[str] = None,
        name: Optional[str] = None,
        account_type: Optional[AccountType | str] = None,
        description: Optional[str] = None,
        is_active: Optional[bool] = None,
        source: str = "API",
    ) -> None:
        """Update a GL account.

        Changing the type of an account changes how every existing posting
        to its subledger accounts is signed in reports.

        Raises:
            NotFoundError: If the account doesn't exist
            ValidationError: If a field is malformed
            ConflictError: If the new account number is taken
        """
        changes = {}
        if account_number is not None:
            changes["account_number"] = require_text(account_number, "Account number", 50)
        if name is not None:
            changes["name"] = require_text(name, "Name", 200)
        if account_type is not None:
            changes["type"] = _parse_account_type(account_type)
        if description is not None:
            changes["description"] = optional_text(description, "Description", 500)
        if is_active is not None:
            changes["is_active"] = is_active

        with self.db.mutation():
            existing = self.db.get_gl_account(account_id)
            if existing is None:
                raise NotFoundError(gl_account_not_found(account_id))

            new_number = changes.get("account_number")
            if new_number is not None and new_number != existing.account_number:
                if self.db.get_gl_account_by_number(new_number) is not None:
                    raise ConflictError(f"GL account with number {new_number} already exists")

            if not changes:
                return
            self.db.update_gl_account(account_id, **changes)
            self.audit.record(
                "UPDATE",
                "gl_account",
                account_id,
                source=source,
                old_data=existing,
                new_data=self.db.get_gl_account(account_id),
            )

    def delete_account(self, account_id: int, source: str = "API") -> None:
        """Delete a GL account.

        Raises:
            NotFoundError: If the account doesn't exist
            DependencyError: If subledger accounts still reference it
        """
        with self.db.mutation():
            existing = self.db.get_gl_account(account_id)
            if existing is None:
                raise NotFoundError(gl_account_not_found(account_id))

            subledger_count = self.db.count_gl_account_subledgers(account_id)
            if subledger_count > 0:
                raise DependencyError(
                    delete_blocked(
                        "GL account",
                        existing.account_number,
                        {"subledger account": subledger_count},
                    )
                )

            self.db.delete_gl_account(account_id)
            self.audit.record("DELETE", "gl_account", account_id, source=source, old_data=existing)

    def get_account(self, account_id: int) -> Optional[GLAccountEntity]:
        """Get GL account by ID.

        Returns:
            GL account entity or None if not found
        """
        return self.db.get_gl_account(account_id)

    def get_account_by_number(self, account_number: str) -> Optional[GLAccountEntity]:
        """Get GL account by account number."""
        return self.db.get_gl_account_by_number(account_number.strip())

    def list_accounts(
        self,
        active: Optional[bool] = None,
        account_type: Optional[AccountType | str] = None,
    ) -> list[GLAccountEntity]:
        """List GL accounts.

        Args:
            active: Only active (True) or inactive (False) accounts
            account_type: Only accounts of this type

        Returns:
            List of GL account entities in natural account-number order
        """
        if account_type is not None:
            account_type = _parse_account_type(account_type)
        accounts = self.db.list_gl_accounts(active=active, account_type=account_type)
        return sorted(accounts, key=lambda acc: account_number_key(acc.account_number))


class SubledgerAccountService:
    """Service for managing subledger (posting) accounts."""

    def __init__(self, db: Database):
        """Initialize subledger account service.

        Args:
            db: Database instance
        """
        self.db = db
        self.audit = AuditService(db)

    def _check_references(self, gl_account_id: Optional[int], currency_code: Optional[str]) -> None:
        if gl_account_id is not None and self.db.get_gl_account(gl_account_id) is None:
            raise NotFoundError(gl_account_not_found(gl_account_id))
        if currency_code is not None and self.db.get_currency(currency_code) is None:
            raise NotFoundError(currency_not_found(currency_code))

    def create_account(
        self,
        account_number: str,
        name: str,
        gl_account_id: int,
        currency_code: Optional[str] = None,
        description: Optional[str] = None,
        is_active: bool = True,
        source: str = "API",
    ) -> int:
        """Create a new subledger account.

        Args:
            account_number: Unique account number
            name: Account name
            gl_account_id: Parent GL account
            currency_code: Account currency (defaults to the default currency)
            description: Optional description
            is_active: Whether the account is active
            source: Audit source

        Returns:
            Subledger account ID

        Raises:
            ValidationError: If a field is malformed
            NotFoundError: If the GL account or currency doesn't exist
            ConflictError: If the account number already exists
        """
        account_number = require_text(account_number, "Account number", 50)
        name = require_text(name, "Name", 200)
        description = optional_text(description, "Description", 500)
        if currency_code is not None:
            currency_code = normalize_currency_code(currency_code)

        with self.db.mutation():
            if currency_code is None:
                default = self.db.get_default_currency()
                if default is None:
                    raise NotFoundError("No default currency is configured")
                currency_code = default.code
            self._check_references(gl_account_id, currency_code)

            if self.db.get_subledger_account_by_number(account_number) is not None:
                raise ConflictError(
                    f"Subledger account with number {account_number} already exists"
                )

            account_id = self.db.create_subledger_account(
                account_number=account_number,
                name=name,
                gl_account_id=gl_account_id,
                currency_code=currency_code,
                description=description,
                is_active=is_active,
            )
            self.audit.record(
                "CREATE",
                "subledger_account",
                account_id,
                source=source,
                new_data=self.db.get_subledger_account(account_id),
            )
        return account_id

    def update_account(
        self,
        account_id: int,
        account_number: Optional[str] = None,
        name: Optional[str] = None,
        gl_account_id: Optional[int] = None,
        currency_code: Optional[str] = None,
        description: Optional[str] = None,
        is_active: Optional[bool] = None,
        source: str = "API",
    ) -> None:
        """Update a subledger account.

        Raises:
            NotFoundError: If the account, GL account or currency doesn't exist
            ValidationError: If a field is malformed
            ConflictError: If the new account number is taken
        """
        changes = {}
        if account_number is not None:
            changes["account_number"] = require_text(account_number, "Account number", 50)
        if name is not None:
            changes["name"] = require_text(name, "Name", 200)
        if gl_account_id is not None:
            changes["gl_account_id"] = gl_account_id
        if currency_code is not None:
            changes["currency_code"] = normalize_currency_code(currency_code)
        if description is not None:
            changes["description"] = optional_text(description, "Description", 500)
        if is_active is not None:
            changes["is_active"] = is_active

        with self.db.mutation():
            existing = self.db.get_subledger_account(account_id)
            if existing is None:
                raise NotFoundError(subledger_not_found(account_id))
            self._check_references(gl_account_id, changes.get("currency_code"))

            new_number = changes.get("account_number")
            if new_number is not None and new_number != existing.account_number:
                if self.db.get_subledger_account_by_number(new_number) is not None:
                    raise ConflictError(
                        f"Subledger account with number {new_number} already exists"
                    )

            if not changes:
                return
            self.db.update_subledger_account(account_id, **changes)
            self.audit.record(
                "UPDATE",
                "subledger_account",
                account_id,
                source=source,
                old_data=existing,
                new_data=self.db.get_subledger_account(account_id),
            )

    def delete_account(self, account_id: int, source: str = "API") -> None:
        """Delete a subledger account.

        Raises:
            NotFoundError: If the account doesn't exist
            DependencyError: If journal entries still post to it
        """
        with self.db.mutation():
            existing = self.db.get_subledger_account(account_id)
            if existing is None:
                raise NotFoundError(subledger_not_found(account_id))

            entry_count = self.db.count_subledger_entries(account_id)
            if entry_count > 0:
                raise DependencyError(
                    delete_blocked(
                        "subledger account",
                        existing.account_number,
                        {"journal entry": entry_count},
                    )
                )

            self.db.delete_subledger_account(account_id)
            self.audit.record(
                "DELETE", "subledger_account", account_id, source=source, old_data=existing
            )

    def get_account(self, account_id: int) -> Optional[SubledgerAccountEntity]:
        """Get subledger account by ID.

        Returns:
            Subledger account entity or None if not found
        """
        return self.db.get_subledger_account(account_id)

    def get_account_by_number(self, account_number: str) -> Optional[SubledgerAccountEntity]:
        """Get subledger account by account number."""
        return self.db.get_subledger_account_by_number(account_number.strip())

    def list_accounts(
        self,
        active: Optional[bool] = None,
        gl_account_id: Optional[int] = None,
        currency_code: Optional[str] = None,
    ) -> list[SubledgerAccountEntity]:
        """List subledger accounts.

        Returns:
            List of subledger account entities in natural account-number order
        """
        if currency_code is not None:
            currency_code = currency_code.strip().upper()
        accounts = self.db.list_subledger_accounts(
            active=active, gl_account_id=gl_account_id, currency_code=currency_code
        )
        return sorted(accounts, key=lambda acc: account_number_key(acc.account_number))
