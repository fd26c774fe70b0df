"""Currency domain service."""

import re
from decimal import Decimal
from typing import Optional

from ledgerly.database.base import Database
from ledgerly.domain.audit import AuditService
from ledgerly.domain.entities import Currency as CurrencyEntity
from ledgerly.domain.errors import (
    ConflictError,
    DependencyError,
    NotFoundError,
    ValidationError,
    currency_not_found,
    delete_blocked,
)
from ledgerly.domain.validation import require_text
from ledgerly.utils.amount_parser import to_decimal

_CURRENCY_CODE = re.compile(r"^[A-Z]{3}$")
# Rates are stored as Numeric(18, 8)
MAX_RATE = Decimal("1e10")
RATE_STEP = Decimal("0.00000001")


def normalize_currency_code(code: str) -> str:
    """Upper-case and validate a 3-letter currency code.

    Raises:
        ValidationError: If the code is not three letters
    """
    normalized = (code or "").strip().upper()
    if not _CURRENCY_CODE.match(normalized):
        raise ValidationError(f"Currency code must be 3 letters, got '{code}'")
    return normalized


def _validate_rate(exchange_rate) -> Decimal:
    try:
        rate = to_decimal(exchange_rate)
    except ValueError as e:
        raise ValidationError(f"Invalid exchange rate: {e}") from e
    if not rate.is_finite() or rate <= 0:
        raise ValidationError(f"Exchange rate must be positive, got {exchange_rate}")
    if rate >= MAX_RATE:
        raise ValidationError(f"Exchange rate must be less than {MAX_RATE:,f}, got {exchange_rate}")
    if rate != rate.quantize(RATE_STEP):
        raise ValidationError(f"Exchange rate can have at most 8 decimal places, got {exchange_rate}")
    return rate


class CurrencyService:
    """Service for managing currencies and the single default currency."""

    def __init__(self, db: Database):
        """Initialize currency service.

        Args:
            db: Database instance
        """
        self.db = db
        self.audit = AuditService(db)

    def create_currency(
        self,
        code: str,
        name: str,
        symbol: str,
        exchange_rate: Decimal | str | float = Decimal("1"),
        is_default: bool = False,
        source: str = "API",
    ) -> str:
        """Create a currency.

        Setting ``is_default`` clears the flag on the previous default in the
        same atomic step.

        Args:
            code: 3-letter currency code (upper-cased)
            name: Display name
            symbol: Display symbol
            exchange_rate: Units of the reporting currency per unit of this one
            is_default: Make this the default currency
            source: Audit source

        Returns:
            Currency code

        Raises:
            ValidationError: If any field is malformed
            ConflictError: If the code already exists
        """
        code = normalize_currency_code(code)
        name = require_text(name, "Name", 100)
        symbol = require_text(symbol, "Symbol", 10)
        rate = _validate_rate(exchange_rate)

        with self.db.mutation():
            if self.db.get_currency(code) is not None:
                raise ConflictError(f"Currency {code} already exists")
            if is_default:
                self.db.clear_default_currency()
            self.db.create_currency(
                code=code, name=name, symbol=symbol, exchange_rate=rate, is_default=is_default
            )
            self.audit.record(
                "CREATE", "currency", code, source=source, new_data=self.db.get_currency(code)
            )
        return code

    def update_currency(
        self,
        code: str,
        name: Optional[str] = None,
        symbol: Optional[str] = None,
        exchange_rate: Optional[Decimal | str | float] = None,
        is_default: Optional[bool] = None,
        source: str = "API",
    ) -> None:
        """Update a currency.

        A new rate applies to entries written from now on; existing entries
        keep the reporting amount computed when they were written.

        Raises:
            NotFoundError: If the currency doesn't exist
            ValidationError: If a field is malformed, or the default flag would be
                removed without another currency taking it
        """
        code = normalize_currency_code(code)
        changes = {}
        if name is not None:
            changes["name"] = require_text(name, "Name", 100)
        if symbol is not None:
            changes["symbol"] = require_text(symbol, "Symbol", 10)
        if exchange_rate is not None:
            changes["exchange_rate"] = _validate_rate(exchange_rate)

        with self.db.mutation():
            existing = self.db.get_currency(code)
            if existing is None:
                raise NotFoundError(currency_not_found(code))

            if is_default is True and not existing.is_default:
                self.db.clear_default_currency()
                changes["is_default"] = True
            elif is_default is False and existing.is_default:
                raise ValidationError(
                    f"Currency {code} is the default; make another currency the default instead"
                )

            if not changes:
                return
            self.db.update_currency(code, **changes)
            self.audit.record(
                "UPDATE",
                "currency",
                code,
                source=source,
                old_data=existing,
                new_data=self.db.get_currency(code),
            )

    def delete_currency(self, code: str, source: str = "API") -> None:
        """Delete a currency.

        Raises:
            NotFoundError: If the currency doesn't exist
            ValidationError: If it is the default currency
            DependencyError: If accounts or entries still use it
        """
        code = normalize_currency_code(code)
        with self.db.mutation():
            existing = self.db.get_currency(code)
            if existing is None:
                raise NotFoundError(currency_not_found(code))
            if existing.is_default:
                raise ValidationError("Cannot delete the default currency")

            references = self.db.count_currency_references(code)
            if any(references.values()):
                raise DependencyError(delete_blocked("currency", code, references))

            self.db.delete_currency(code)
            self.audit.record("DELETE", "currency", code, source=source, old_data=existing)

    def get_currency(self, code: str) -> Optional[CurrencyEntity]:
        """Get currency by code (case-insensitive).

        Returns:
            Currency entity or None if not found
        """
        return self.db.get_currency((code or "").strip().upper())

    def list_currencies(self) -> list[CurrencyEntity]:
        """List all currencies ordered by code."""
        return self.db.list_currencies()

    def get_default_currency(self) -> CurrencyEntity:
        """Get the default (reporting) currency.

        Raises:
            NotFoundError: If no currency is marked as default
        """
        currency = self.db.get_default_currency()
        if currency is None:
            raise NotFoundError("No default currency is configured")
        return currency
