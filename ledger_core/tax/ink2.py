"""
INK2 Field Computation

Each field of the corporate income-tax return is data: a code, a
label and an account range. One generic routine (sum_by_range) turns
the table into values.

The result field 4.1 is the plain sum of the other fields. Cost
ranges net negative (debit-heavy), so they subtract without any
per-field sign handling.
"""

from decimal import Decimal
from typing import Iterable, Sequence

from ledger_core.aggregation import Period, sum_by_range
from ledger_core.models.tax import TaxField, TaxFieldDefinition


INK2_FIELDS: tuple[TaxFieldDefinition, ...] = (
    TaxFieldDefinition(field="1.1", label="Nettoomsättning", low="3000", high="3799"),
    TaxFieldDefinition(field="1.4", label="Övriga rörelseintäkter", low="3800", high="3999"),
    TaxFieldDefinition(field="2.1", label="Råvaror och förnödenheter", low="4000", high="4999"),
    TaxFieldDefinition(field="2.4", label="Övriga externa kostnader", low="5000", high="6999"),
    TaxFieldDefinition(field="2.5", label="Personalkostnader", low="7000", high="7699"),
    TaxFieldDefinition(field="2.7", label="Avskrivningar", low="7700", high="7899"),
    TaxFieldDefinition(field="3.1", label="Ränteintäkter", low="8300", high="8399"),
    TaxFieldDefinition(field="3.3", label="Räntekostnader", low="8400", high="8499"),
)

RESULT_FIELD = "4.1"
RESULT_LABEL = "Bokfört resultat"


def calculate_fields(
    verifications: Iterable,
    year: int,
    fields: Sequence[TaxFieldDefinition] = INK2_FIELDS,
) -> list[TaxField]:
    """
    Compute the INK2 fields for one calendar year.

    Returns the fields in table order followed by the result field.
    """
    # Materialize once: generators can only be walked a single time
    entries = list(verifications)
    period = Period.calendar_year(year)

    computed = [
        TaxField(
            field=definition.field,
            label=definition.label,
            value=sum_by_range(entries, definition.low, definition.high, period),
        )
        for definition in fields
    ]

    result = sum((f.value for f in computed), Decimal("0"))
    computed.append(TaxField(field=RESULT_FIELD, label=RESULT_LABEL, value=result))
    return computed


def field_value(fields: Iterable[TaxField], code: str) -> Decimal:
    """Look up one computed field by code."""
    for f in fields:
        if f.field == code:
            return f.value
    raise KeyError(code)
