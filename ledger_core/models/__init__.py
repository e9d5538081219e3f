"""
Data Models Package

This package contains all Pydantic models used in the ledger core.
All data flowing through the system must conform to these schemas.
"""

from ledger_core.models.account import (
    Account,
    AccountCategory,
    AccountRange,
    CATEGORY_RANGES,
    category_for_code,
)
from ledger_core.models.verification import (
    AMOUNT_PLACES,
    JournalEntryLine,
    SourceType,
    Verification,
    round_amount,
    row_totals,
)
from ledger_core.models.sie import (
    BalanceKind,
    FiscalYear,
    ImportStats,
    MergeResult,
    SIEBalance,
    SIEDocument,
    SIEMetadata,
    SIEVerification,
)
from ledger_core.models.tax import (
    TaxField,
    TaxFieldDefinition,
    VatBoxDefinition,
    VatReport,
    VatStatus,
)
from ledger_core.models.validation import (
    ErrorReport,
    ValidationIssue,
    ValidationResult,
)
from ledger_core.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Account models
    "Account",
    "AccountCategory",
    "AccountRange",
    "CATEGORY_RANGES",
    "category_for_code",
    # Journal models
    "AMOUNT_PLACES",
    "JournalEntryLine",
    "SourceType",
    "Verification",
    "round_amount",
    "row_totals",
    # SIE models
    "BalanceKind",
    "FiscalYear",
    "ImportStats",
    "MergeResult",
    "SIEBalance",
    "SIEDocument",
    "SIEMetadata",
    "SIEVerification",
    # Tax models
    "TaxField",
    "TaxFieldDefinition",
    "VatBoxDefinition",
    "VatReport",
    "VatStatus",
    # Validation models
    "ErrorReport",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
