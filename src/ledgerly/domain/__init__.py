"""Domain layer for ledgerly application."""

from importlib import import_module

_SERVICES = {
    "AuditService": "ledgerly.domain.audit",
    "CurrencyService": "ledgerly.domain.currency",
    "GLAccountService": "ledgerly.domain.account",
    "SubledgerAccountService": "ledgerly.domain.account",
    "JournalEntryService": "ledgerly.domain.journal",
    "AttachmentService": "ledgerly.domain.attachment",
    "ReportService": "ledgerly.domain.reports",
    "CSVImportService": "ledgerly.domain.csv_import",
    "CSVExportService": "ledgerly.domain.csv_export",
}

__all__ = list(_SERVICES)


# Services import the database layer, which imports domain entities;
# resolve them lazily so either package can be imported first
def __getattr__(name):
    if name in _SERVICES:
        return getattr(import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
