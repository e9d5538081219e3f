"""
Account Models

BAS accounts are identified by a 4-digit code. The first digits place
an account in a class (1xxx assets, 3xxx revenue, ...), so the category
is derived from the code unless a source (e.g. an SIE #KTYP line)
states it explicitly.

DESIGN DECISION: Accounts are immutable reference data.
Renaming an account means registering a new Account value.
"""

from enum import Enum
from typing import Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)


class AccountCategory(str, Enum):
    """Account classes of the BAS chart."""
    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"
    FINANCIAL = "financial"


class AccountRange(BaseModel):
    """
    Closed interval of account codes.

    Codes compare as integers, so "3000" <= "3001" <= "3799".
    """
    model_config = ConfigDict(frozen=True)

    low: str = Field(..., pattern=r"^\d{4}$")
    high: str = Field(..., pattern=r"^\d{4}$")

    @model_validator(mode='after')
    def validate_bounds(self) -> 'AccountRange':
        if int(self.low) > int(self.high):
            raise ValueError(f"Range low {self.low} is above high {self.high}")
        return self

    @classmethod
    def of(cls, low: Union[str, int], high: Union[str, int]) -> 'AccountRange':
        return cls(low=str(low), high=str(high))

    def contains(self, code: object) -> bool:
        """Membership test. Non-numeric codes are never members."""
        value = _code_value(code)
        if value is None:
            return False
        return int(self.low) <= value <= int(self.high)

    def __contains__(self, code: object) -> bool:
        return self.contains(code)

    def __str__(self) -> str:
        return f"{self.low}-{self.high}"


# Standard category ranges. 2000-2099 is equity (eget kapital),
# the rest of class 2 is liabilities.
CATEGORY_RANGES: dict[AccountCategory, tuple[AccountRange, ...]] = {
    AccountCategory.ASSET: (AccountRange(low="1000", high="1999"),),
    AccountCategory.EQUITY: (AccountRange(low="2000", high="2099"),),
    AccountCategory.LIABILITY: (AccountRange(low="2100", high="2999"),),
    AccountCategory.REVENUE: (AccountRange(low="3000", high="3999"),),
    AccountCategory.EXPENSE: (AccountRange(low="4000", high="7999"),),
    AccountCategory.FINANCIAL: (AccountRange(low="8000", high="8999"),),
}


def _code_value(code: object) -> Optional[int]:
    text = str(code).strip() if code is not None else ""
    if len(text) != 4 or not text.isdigit():
        return None
    return int(text)


def category_for_code(code: str) -> AccountCategory:
    """
    Derive the BAS category from an account code.

    Raises ValueError for codes that are not 4 digits or that fall
    outside 1000-8999.
    """
    for category, ranges in CATEGORY_RANGES.items():
        if any(r.contains(code) for r in ranges):
            return category
    raise ValueError(f"Account code {code!r} is outside the BAS ranges")


class Account(BaseModel):
    """A single account of the chart."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    code: str = Field(
        ...,
        pattern=r"^\d{4}$",
        description="4-digit BAS account code"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Account name"
    )
    category: Optional[AccountCategory] = Field(
        default=None,
        description="Account class, derived from the code when omitted"
    )
    sru_code: Optional[str] = Field(
        default=None,
        max_length=10,
        description="Tax return (SRU) code, if known"
    )

    @model_validator(mode='before')
    @classmethod
    def derive_category(cls, data):
        if isinstance(data, dict) and data.get("category") is None and data.get("code"):
            try:
                data = {**data, "category": category_for_code(str(data["code"]).strip())}
            except ValueError:
                raise ValueError(
                    f"Cannot derive a category for account {data['code']}"
                )
        return data

    @property
    def range_value(self) -> int:
        return int(self.code)
