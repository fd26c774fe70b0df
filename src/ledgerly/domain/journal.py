"""Journal entry domain service.

Every entry passes the same admission checks, in this order:

1. the amount is a positive, finite number that fits the storage precision;
2. the currency exists;
3. the debit and credit legs are different accounts;
4. the debit account exists;
5. the credit account exists.

Only then is ``amount_in_usd`` derived (rounded half-up to cents, once) and
the entry stored.
"""

from datetime import date
from decimal import Decimal
from typing import Callable, Optional

from ledgerly.database.base import Database
from ledgerly.domain.attachment import AttachmentService
from ledgerly.domain.audit import AuditService
from ledgerly.domain.entities import Currency, JournalEntry as JournalEntryEntity
from ledgerly.domain.errors import (
    InvariantViolation,
    NotFoundError,
    ValidationError,
    currency_not_found,
    journal_entry_not_found,
    same_debit_credit,
    subledger_not_found,
)
from ledgerly.domain.validation import optional_text, require_text
from ledgerly.utils.amount_parser import convert_to_reporting, to_decimal


# Storage holds amounts as Numeric(18, 6) and reporting amounts as Numeric(18, 2)
MAX_AMOUNT = Decimal("1e12")
AMOUNT_STEP = Decimal("0.000001")
MAX_REPORTING_AMOUNT = Decimal("1e16")


def check_amount(amount) -> Decimal:
    """Return amount as a Decimal if it is positive, finite and storable.

    Amounts must be below 1e12 and carry at most 6 decimal places.

    Raises:
        ValidationError: Otherwise
    """
    try:
        value = to_decimal(amount)
    except ValueError as e:
        raise ValidationError(f"Invalid amount: {e}") from e
    if not value.is_finite():
        raise ValidationError(f"Amount must be a finite number, got {amount}")
    if value <= 0:
        raise ValidationError(f"Amount must be positive, got {amount}")
    if value >= MAX_AMOUNT:
        raise ValidationError(f"Amount must be less than {MAX_AMOUNT:,f}, got {amount}")
    if value != value.quantize(AMOUNT_STEP):
        raise ValidationError(f"Amount can have at most 6 decimal places, got {amount}")
    return value


def reporting_amount(amount: Decimal, currency: Currency) -> Decimal:
    """Convert an admitted amount to the reporting currency, rounded half-up once.

    Raises:
        ValidationError: If the converted amount is too large to store
    """
    try:
        amount_in_usd = convert_to_reporting(amount, currency.exchange_rate)
    except ValueError as e:
        raise ValidationError(str(e)) from e
    if amount_in_usd >= MAX_REPORTING_AMOUNT:
        raise ValidationError(
            f"Amount {amount} {currency.code} is too large in the reporting currency"
        )
    return amount_in_usd


def admit_entry(
    amount,
    currency_code: str,
    debit_account_id: int,
    credit_account_id: int,
    get_currency: Callable[[str], Optional[Currency]],
    account_exists: Callable[[int], bool],
) -> tuple[Decimal, Currency]:
    """Run the structural admission checks for one journal entry.

    The lookups are passed in so the same checks run against the live store
    and against an import snapshot.

    Returns:
        (amount as Decimal, resolved currency)

    Raises:
        ValidationError: Non-positive or non-finite amount
        NotFoundError: Unknown currency or account
        InvariantViolation: Debit and credit legs are the same account
    """
    value = check_amount(amount)
    currency = get_currency(currency_code)
    if currency is None:
        raise NotFoundError(currency_not_found(currency_code))
    if debit_account_id == credit_account_id:
        raise InvariantViolation(same_debit_credit())
    if not account_exists(debit_account_id):
        raise NotFoundError(subledger_not_found(debit_account_id))
    if not account_exists(credit_account_id):
        raise NotFoundError(subledger_not_found(credit_account_id))
    return value, currency


def check_entry_text(
    description: str, category: Optional[str], comment: Optional[str]
) -> tuple[str, Optional[str], Optional[str]]:
    """Validate and normalize the free-text fields of an entry."""
    return (
        require_text(description, "Description", 500),
        optional_text(category, "Category", 100),
        optional_text(comment, "Comment", 1000),
    )


class JournalEntryService:
    """Service for creating, changing and querying journal entries."""

    def __init__(self, db: Database, attachment_service: Optional[AttachmentService] = None):
        """Initialize journal entry service.

        Args:
            db: Database instance
            attachment_service: Used to remove stored files when an entry is deleted
        """
        self.db = db
        self.audit = AuditService(db)
        self._attachment_service = attachment_service

    @property
    def attachment_service(self) -> AttachmentService:
        if self._attachment_service is None:
            self._attachment_service = AttachmentService(self.db)
        return self._attachment_service

    def _account_exists(self, account_id: int) -> bool:
        return self.db.get_subledger_account(account_id) is not None

    def _resolve_currency_code(self, currency_code: Optional[str]) -> str:
        if currency_code is not None:
            return currency_code.strip().upper()
        default = self.db.get_default_currency()
        if default is None:
            raise NotFoundError("No default currency is configured")
        return default.code

    def create_entry(
        self,
        entry_date: date,
        amount: Decimal | str | float,
        debit_account_id: int,
        credit_account_id: int,
        description: str,
        currency_code: Optional[str] = None,
        category: Optional[str] = None,
        comment: Optional[str] = None,
        source: str = "API",
        batch_id: Optional[str] = None,
        batch_summary: Optional[str] = None,
    ) -> int:
        """Create a journal entry.

        Args:
            entry_date: Booking date
            amount: Positive amount in the entry currency
            debit_account_id: Subledger account debited
            credit_account_id: Subledger account credited
            description: Description (1-500 characters)
            currency_code: Entry currency (defaults to the default currency)
            category: Optional category (up to 100 characters)
            comment: Optional comment (up to 1000 characters)
            source: Audit source
            batch_id: Import batch the entry belongs to
            batch_summary: Summary recorded with a batch import

        Returns:
            Journal entry ID

        Raises:
            ValidationError: Malformed amount or text
            NotFoundError: Unknown currency or account
            InvariantViolation: Debit and credit legs are the same account
        """
        description, category, comment = check_entry_text(description, category, comment)

        with self.db.mutation():
            currency_code = self._resolve_currency_code(currency_code)
            value, currency = admit_entry(
                amount,
                currency_code,
                debit_account_id,
                credit_account_id,
                get_currency=self.db.get_currency,
                account_exists=self._account_exists,
            )
            entry_id = self.db.create_journal_entry(
                entry_date=entry_date,
                amount=value,
                currency_code=currency.code,
                amount_in_usd=reporting_amount(value, currency),
                debit_account_id=debit_account_id,
                credit_account_id=credit_account_id,
                description=description,
                category=category,
                comment=comment,
            )
            self.audit.record(
                "CREATE",
                "journal_entry",
                entry_id,
                source=source,
                new_data=self.db.get_journal_entry(entry_id),
                batch_id=batch_id,
                batch_summary=batch_summary,
            )
        return entry_id

    def update_entry(
        self,
        entry_id: int,
        entry_date: Optional[date] = None,
        amount: Optional[Decimal | str | float] = None,
        debit_account_id: Optional[int] = None,
        credit_account_id: Optional[int] = None,
        description: Optional[str] = None,
        currency_code: Optional[str] = None,
        category: Optional[str] = None,
        comment: Optional[str] = None,
        source: str = "API",
    ) -> None:
        """Update a journal entry.

        The merged entry goes through the full admission checks.
        ``amount_in_usd`` is recomputed when the amount or currency changes,
        using the currency's current rate. Pass an empty string as category
        or comment to clear it.

        Raises:
            NotFoundError: If the entry, currency or an account doesn't exist
            ValidationError: Malformed amount or text
            InvariantViolation: Debit and credit legs would be the same account
        """
        with self.db.mutation():
            existing = self.db.get_journal_entry(entry_id)
            if existing is None:
                raise NotFoundError(journal_entry_not_found(entry_id))

            new_description, new_category, new_comment = check_entry_text(
                existing.description if description is None else description,
                existing.category if category is None else category,
                existing.comment if comment is None else comment,
            )
            new_currency = (
                existing.currency_code if currency_code is None else currency_code.strip().upper()
            )
            value, currency = admit_entry(
                existing.amount if amount is None else amount,
                new_currency,
                existing.debit_account_id if debit_account_id is None else debit_account_id,
                existing.credit_account_id if credit_account_id is None else credit_account_id,
                get_currency=self.db.get_currency,
                account_exists=self._account_exists,
            )

            changes = {
                "description": new_description,
                "category": new_category,
                "comment": new_comment,
            }
            if entry_date is not None:
                changes["entry_date"] = entry_date
            if debit_account_id is not None:
                changes["debit_account_id"] = debit_account_id
            if credit_account_id is not None:
                changes["credit_account_id"] = credit_account_id
            if amount is not None or currency_code is not None:
                changes["amount"] = value
                changes["currency_code"] = currency.code
                changes["amount_in_usd"] = reporting_amount(value, currency)

            self.db.update_journal_entry(entry_id, **changes)
            self.audit.record(
                "UPDATE",
                "journal_entry",
                entry_id,
                source=source,
                old_data=existing,
                new_data=self.db.get_journal_entry(entry_id),
            )

    def delete_entry(self, entry_id: int, source: str = "API") -> None:
        """Delete a journal entry together with its attachments.

        Raises:
            NotFoundError: If the entry doesn't exist
        """
        with self.db.mutation():
            existing = self.db.get_journal_entry(entry_id)
            if existing is None:
                raise NotFoundError(journal_entry_not_found(entry_id))
            attachments = self.db.list_attachments(journal_entry_id=entry_id)
            self.db.delete_journal_entry(entry_id)
            self.audit.record(
                "DELETE", "journal_entry", entry_id, source=source, old_data=existing
            )

        if attachments:
            self.attachment_service.remove_files(attachments)

    def get_entry(self, entry_id: int) -> Optional[JournalEntryEntity]:
        """Get journal entry by ID.

        Returns:
            Journal entry entity or None if not found
        """
        return self.db.get_journal_entry(entry_id)

    def list_entries(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        debit_account_id: Optional[int] = None,
        credit_account_id: Optional[int] = None,
        category: Optional[str] = None,
        currency_code: Optional[str] = None,
        account_id: Optional[int] = None,
    ) -> list[JournalEntryEntity]:
        """List journal entries, newest first.

        Args:
            start_date: Only entries on or after this date
            end_date: Only entries on or before this date
            debit_account_id: Only entries debiting this account
            credit_account_id: Only entries crediting this account
            category: Only entries with this category
            currency_code: Only entries in this currency
            account_id: Only entries touching this account on either leg

        Returns:
            List of journal entry entities
        """
        if currency_code is not None:
            currency_code = currency_code.strip().upper()
        return self.db.list_journal_entries(
            start_date=start_date,
            end_date=end_date,
            account_id=account_id,
            debit_account_id=debit_account_id,
            credit_account_id=credit_account_id,
            category=category,
            currency_code=currency_code,
        )
