"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Malformed or out-of-range input."""


class NotFoundError(DomainError):
    """A referenced entity id or code does not exist."""


class ConflictError(DomainError):
    """Uniqueness violation or a blocked deletion."""


class DependencyError(ConflictError):
    """Operation blocked because other records still reference the target."""


class InvariantViolation(DomainError):
    """A structural ledger rule was broken (e.g. debit leg == credit leg)."""


class PersistenceError(RuntimeError):
    """Writing the in-memory store to its backing file failed.

    The in-memory state is left intact; the next checkpoint retries.
    """


class CorruptStoreError(PersistenceError):
    """The backing file could not be loaded or failed its integrity check."""


def currency_not_found(code: str) -> str:
    """Return message for missing currency."""
    return f"Currency {code} not found"


def gl_account_not_found(account_id: int) -> str:
    """Return message for missing GL account."""
    return f"GL account {account_id} not found"


def subledger_not_found(account_id: int) -> str:
    """Return message for missing subledger account."""
    return f"Subledger account {account_id} not found"


def journal_entry_not_found(entry_id: int) -> str:
    """Return message for missing journal entry."""
    return f"Journal entry {entry_id} not found"


def attachment_not_found(attachment_id: int) -> str:
    """Return message for missing attachment."""
    return f"Attachment {attachment_id} not found"


def same_debit_credit() -> str:
    """Return message for an entry posting both legs to one account."""
    return "Debit and credit accounts must be different"


def delete_blocked(kind: str, key: str | int, references: dict[str, int]) -> str:
    """Return message when a record still has dependent rows.

    Args:
        kind: Human readable record kind, e.g. "GL account"
        key: Record identifier shown to the user
        references: Mapping of dependent kind to count (zero counts are skipped)
    """
    parts = []
    for label, count in references.items():
        if count == 1:
            parts.append(f"1 {label}")
        elif count > 1:
            plural = f"{label[:-1]}ies" if label.endswith("y") else f"{label}s"
            parts.append(f"{count} {plural}")
    return (
        f"Cannot delete {kind} {key}: it is referenced by {', '.join(parts)}. "
        "Please reassign or delete them first."
    )
