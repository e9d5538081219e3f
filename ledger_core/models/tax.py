"""Tax-return models (INK2 fields and the quarterly VAT return)."""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ledger_core.models.account import AccountRange


class TaxFieldDefinition(BaseModel):
    """
    A field computed as the net (credit - debit) of an account range.

    The sign is not adjusted per field: cost ranges come out negative
    and subtract naturally when fields are summed.
    """
    model_config = ConfigDict(frozen=True)

    field: str = Field(..., description="Field code on the form, e.g. '1.1'")
    label: str
    low: str = Field(..., pattern=r"^\d{4}$")
    high: str = Field(..., pattern=r"^\d{4}$")

    @property
    def account_range(self) -> AccountRange:
        return AccountRange(low=self.low, high=self.high)


class TaxField(BaseModel):
    """A computed field value."""

    field: str
    label: str
    value: Decimal


class VatBoxDefinition(TaxFieldDefinition):
    """
    A box of the VAT return.

    Unlike INK2 fields the form wants every box positive, so `sign`
    flips debit-heavy ranges (input VAT) after netting.
    """

    sign: Literal[1, -1] = 1


class VatStatus(str, Enum):
    """Filing state of a VAT period relative to its due date."""
    UPCOMING = "upcoming"
    OVERDUE = "overdue"


class VatReport(BaseModel):
    """The VAT return for one calendar quarter."""

    period: str = Field(..., description="Quarter label, e.g. 'Q4 2024'")
    year: int
    quarter: int = Field(..., ge=1, le=4)
    due_date: date
    status: VatStatus
    boxes: list[TaxField] = Field(default_factory=list)

    def box(self, code: str) -> Decimal:
        for b in self.boxes:
            if b.field == code:
                return b.value
        raise KeyError(code)

    @property
    def output_vat(self) -> Decimal:
        return self.box("10")

    @property
    def input_vat(self) -> Decimal:
        return self.box("48")

    @property
    def net_vat(self) -> Decimal:
        """Positive: to pay. Negative: to get back."""
        return self.box("49")
