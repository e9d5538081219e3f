"""
Journal Entry Models

A Verification (Swedish "verifikation") is one double-entry journal
entry: a dated, numbered set of rows whose debits equal its credits.

CRITICAL: An unbalanced Verification cannot be constructed.
The model validator rejects it, so any Verification value that exists
already satisfies the balance law. Amounts are rounded to 2 decimals
before the comparison to absorb floating-point drift from callers
that still send floats.
"""

from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Iterable, Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


AMOUNT_PLACES = 2
_QUANTUM = Decimal(1).scaleb(-AMOUNT_PLACES)
ZERO = Decimal("0")


def round_amount(value) -> Decimal:
    """Round an amount to ledger precision (half up, like öresavrundning)."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(_QUANTUM, rounding=ROUND_HALF_UP)


def row_totals(rows: Iterable) -> tuple[Decimal, Decimal]:
    """Return (total_debit, total_credit), each rounded to ledger precision."""
    debit = ZERO
    credit = ZERO
    for row in rows:
        debit += Decimal(str(row.debit or 0))
        credit += Decimal(str(row.credit or 0))
    return round_amount(debit), round_amount(credit)


class SourceType(str, Enum):
    """What produced a verification."""
    MANUAL = "manual"
    TRANSACTION = "transaction"
    INVOICE = "invoice"
    PAYMENT = "payment"
    RECEIPT = "receipt"
    IMPORT = "import"


class JournalEntryLine(BaseModel):
    """
    One row of a verification.

    Conventionally exactly one of debit/credit is non-zero.
    Both zero is allowed for memo rows.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    account: str = Field(
        ...,
        pattern=r"^\d{4}$",
        description="BAS account code"
    )
    description: Optional[str] = Field(
        default=None,
        max_length=200,
    )
    debit: Decimal = Field(default=ZERO, ge=0)
    credit: Decimal = Field(default=ZERO, ge=0)

    @field_validator('debit', 'credit', mode='before')
    @classmethod
    def coerce_amount(cls, v):
        # Floats go through str() so 0.1 stays 0.1
        if v is None:
            return ZERO
        if isinstance(v, float):
            return Decimal(str(v))
        return v

    @property
    def net(self) -> Decimal:
        """credit - debit (positive for credit rows)."""
        return self.credit - self.debit

    @property
    def is_memo(self) -> bool:
        return self.debit == 0 and self.credit == 0


class Verification(BaseModel):
    """
    A balanced journal entry.

    Stored verifications are never edited; corrections are new
    verifications with offsetting rows.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(
        default_factory=lambda: uuid4().hex,
        min_length=1,
        description="Globally unique identifier"
    )
    series: str = Field(
        default="A",
        min_length=1,
        max_length=4,
        description="Classification letter, e.g. A manual, B receipts"
    )
    number: int = Field(
        ...,
        ge=1,
        description="Sequence number within the series"
    )
    date: date
    description: str = Field(default="", max_length=500)
    rows: list[JournalEntryLine]
    source_id: Optional[str] = Field(
        default=None,
        description="Id of the originating transaction/invoice (a reference, not an owner)"
    )
    source_type: SourceType = SourceType.MANUAL
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode='after')
    def validate_balance(self) -> 'Verification':
        """The double-entry balance law."""
        if not self.rows:
            raise ValueError("Verification has no rows")

        debit, credit = row_totals(self.rows)
        if debit != credit:
            raise ValueError(
                f"Verification is not balanced: debit {debit} != credit {credit}"
            )
        return self

    @property
    def total_debit(self) -> Decimal:
        return row_totals(self.rows)[0]

    @property
    def total_credit(self) -> Decimal:
        return row_totals(self.rows)[1]

    @property
    def reference(self) -> str:
        """Human reference such as 'A12'."""
        return f"{self.series}{self.number}"

    @property
    def accounts(self) -> list[str]:
        """Account codes touched, in row order, without duplicates."""
        seen: list[str] = []
        for row in self.rows:
            if row.account not in seen:
                seen.append(row.account)
        return seen
