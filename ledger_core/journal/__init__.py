"""Journal entry (verification) package."""

from ledger_core.errors import EmptyEntry, ImbalancedEntry
from ledger_core.journal.entry import (
    DEFAULT_SERIES,
    RowInput,
    SeriesCounter,
    check_balance,
    create_verification,
    is_balanced,
    parse_rows,
    validate,
)
from ledger_core.models.verification import round_amount, row_totals as totals

__all__ = [
    "DEFAULT_SERIES",
    "EmptyEntry",
    "ImbalancedEntry",
    "RowInput",
    "SeriesCounter",
    "check_balance",
    "create_verification",
    "is_balanced",
    "parse_rows",
    "round_amount",
    "totals",
    "validate",
]
