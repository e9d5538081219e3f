"""
Quarterly VAT Return

Same shape as the INK2 table: each box is an account range summed
with sum_by_range, here over one calendar quarter. Box 49 (VAT to pay
or get back) is output VAT minus input VAT.

Amounts are netted per range, so a credit note on 2611 reduces box 10
instead of adding to it.
"""

import re
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from ledger_core.aggregation import Period, sum_by_range
from ledger_core.models.tax import TaxField, VatBoxDefinition, VatReport, VatStatus


VAT_BOXES: tuple[VatBoxDefinition, ...] = (
    VatBoxDefinition(field="05", label="Momspliktig försäljning", low="3000", high="3099"),
    VatBoxDefinition(field="10", label="Utgående moms", low="2610", high="2639"),
    VatBoxDefinition(field="48", label="Ingående moms att dra av", low="2640", high="2649", sign=-1),
)

OUTPUT_VAT_BOX = "10"
INPUT_VAT_BOX = "48"
NET_VAT_BOX = "49"
NET_VAT_LABEL = "Moms att betala eller få tillbaka"

# (month, day) the return is due, per quarter. Q4 falls in the next year.
DUE_DATES = {
    1: (5, 12),
    2: (8, 17),
    3: (11, 12),
    4: (2, 12),
}

_PERIOD_LABEL = re.compile(r"^Q([1-4])\s+(\d{4})$")


def period_label(year: int, quarter: int) -> str:
    return f"Q{quarter} {year}"


def parse_quarter(label: str) -> tuple[int, int]:
    """
    Parse a label such as "Q4 2024" into (year, quarter).

    Raises:
        ValueError: The label is not Q1-Q4 followed by a year
    """
    match = _PERIOD_LABEL.match(label.strip())
    if not match:
        raise ValueError(f"Not a VAT period label: {label!r}")
    return int(match.group(2)), int(match.group(1))


def vat_due_date(year: int, quarter: int) -> date:
    if quarter not in DUE_DATES:
        raise ValueError(f"Quarter must be 1-4, got {quarter}")
    month, day = DUE_DATES[quarter]
    return date(year + 1 if quarter == 4 else year, month, day)


def calculate_vat_report(
    verifications: Iterable,
    year: int,
    quarter: int,
    today: Optional[date] = None,
    boxes: Sequence[VatBoxDefinition] = VAT_BOXES,
) -> VatReport:
    """
    Compute the VAT return for one calendar quarter.

    Args:
        verifications: Verification-like records, any period
        year, quarter: The quarter to report
        today: Reference date for the status; defaults to today

    Returns:
        VatReport with the boxes in table order followed by box 49
    """
    period = Period.quarter(year, quarter)
    entries = list(verifications)

    computed = [
        TaxField(
            field=definition.field,
            label=definition.label,
            value=definition.sign * sum_by_range(entries, definition.low, definition.high, period),
        )
        for definition in boxes
    ]

    values = {f.field: f.value for f in computed}
    net = values.get(OUTPUT_VAT_BOX, Decimal("0")) - values.get(INPUT_VAT_BOX, Decimal("0"))
    computed.append(TaxField(field=NET_VAT_BOX, label=NET_VAT_LABEL, value=net))

    due_date = vat_due_date(year, quarter)
    today = today or date.today()

    return VatReport(
        period=period_label(year, quarter),
        year=year,
        quarter=quarter,
        due_date=due_date,
        status=VatStatus.OVERDUE if today > due_date else VatStatus.UPCOMING,
        boxes=computed,
    )
