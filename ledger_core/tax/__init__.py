"""Tax-return field package."""

from ledger_core.tax.ink2 import (
    INK2_FIELDS,
    RESULT_FIELD,
    calculate_fields,
    field_value,
)
from ledger_core.tax.vat import (
    NET_VAT_BOX,
    VAT_BOXES,
    calculate_vat_report,
    parse_quarter,
    vat_due_date,
)

__all__ = [
    "INK2_FIELDS",
    "RESULT_FIELD",
    "calculate_fields",
    "field_value",
    "NET_VAT_BOX",
    "VAT_BOXES",
    "calculate_vat_report",
    "parse_quarter",
    "vat_due_date",
]
