"""
Ledger Aggregator

DESIGN DECISION: Aggregation is DETERMINISTIC and order-independent.
Amounts are summed as Decimal, so re-ordering the input verifications
never changes a total.

The aggregator reads whatever the persistence layer hands it:
Verification models, parsed SIEVerifications, or loose records
(mappings with string dates). A record whose date cannot be parsed
is excluded from every period and never raises.
"""

from collections.abc import Mapping
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Callable, Iterable, Optional, Union

import structlog
from pydantic import BaseModel, Field

from ledger_core.models.account import AccountRange
from ledger_core.models.verification import ZERO


logger = structlog.get_logger(__name__)


class Period(BaseModel):
    """Inclusive date window used to filter verifications."""

    start: Optional[date] = None
    end: Optional[date] = None

    @classmethod
    def calendar_year(cls, year: int) -> "Period":
        return cls(start=date(year, 1, 1), end=date(year, 12, 31))

    @classmethod
    def between(cls, start: date, end: date) -> "Period":
        if end < start:
            raise ValueError("Period end cannot be before start")
        return cls(start=start, end=end)

    @classmethod
    def quarter(cls, year: int, quarter: int) -> "Period":
        """Calendar quarter 1-4, e.g. quarter(2024, 2) is April-June 2024."""
        if quarter not in (1, 2, 3, 4):
            raise ValueError(f"Quarter must be 1-4, got {quarter}")
        start = date(year, 3 * quarter - 2, 1)
        if quarter == 4:
            end = date(year, 12, 31)
        else:
            end = date(year, 3 * quarter + 1, 1) - timedelta(days=1)
        return cls(start=start, end=end)

    def __call__(self, day: date) -> bool:
        if self.start and day < self.start:
            return False
        if self.end and day > self.end:
            return False
        return True


PeriodFilter = Union[Period, Callable[[date], bool], None]


class AccountBalance(BaseModel):
    """Activity on one account (debit positive, like the account view)."""

    account: str
    balance: Decimal
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    row_count: int = Field(default=0, ge=0)
    last_date: Optional[date] = None


def entry_date(entry) -> Optional[date]:
    """Booking date of a verification-like record, or None if unusable."""
    value = entry.get("date") if isinstance(entry, Mapping) else getattr(entry, "date", None)

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            # Accepts 2024-01-31 and 2024-01-31T10:00:00
            return datetime.fromisoformat(text).date() if "T" in text else date.fromisoformat(text)
        except ValueError:
            pass
        if len(text) == 8 and text.isdigit():
            try:
                return date(int(text[:4]), int(text[4:6]), int(text[6:]))
            except ValueError:
                return None
    return None


def _rows(entry) -> Iterable:
    rows = entry.get("rows") if isinstance(entry, Mapping) else getattr(entry, "rows", None)
    return rows or ()


def _field(row, name: str):
    return row.get(name) if isinstance(row, Mapping) else getattr(row, name, None)


def _amount(value) -> Decimal:
    if value is None or value == "":
        return ZERO
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return ZERO


def _in_period(entry, period: PeriodFilter) -> Optional[date]:
    """The entry's date if it falls in `period`, otherwise None."""
    day = entry_date(entry)
    if day is None:
        logger.debug("entry_without_valid_date", entry_id=_field(entry, "id"))
        return None
    if period is not None and not period(day):
        return None
    return day


def sum_by_range(
    verifications: Iterable,
    low: Union[str, int],
    high: Union[str, int],
    period: PeriodFilter = None,
) -> Decimal:
    """
    Net (credit - debit) of all rows on accounts in [low, high].

    The same sign convention applies to every account type; the field
    definition decides how to read the sign.

    Args:
        verifications: Verification-like records
        low, high: Inclusive account code bounds
        period: Period or date predicate; None means all dates
    """
    account_range = AccountRange.of(low, high)
    total = ZERO

    for entry in verifications:
        if _in_period(entry, period) is None:
            continue
        for row in _rows(entry):
            if account_range.contains(_field(row, "account")):
                total += _amount(_field(row, "credit")) - _amount(_field(row, "debit"))

    return total


def account_balances(
    verifications: Iterable,
    period: PeriodFilter = None,
) -> list[AccountBalance]:
    """
    Per-account activity (debit - credit), sorted by account code.

    Rows without an account are skipped.
    """
    activity: dict[str, dict] = {}

    for entry in verifications:
        day = _in_period(entry, period)
        if day is None:
            continue
        for row in _rows(entry):
            account = _field(row, "account")
            if not account:
                continue
            debit = _amount(_field(row, "debit"))
            credit = _amount(_field(row, "credit"))

            item = activity.setdefault(
                account,
                {"debit": ZERO, "credit": ZERO, "row_count": 0, "last_date": None},
            )
            item["debit"] += debit
            item["credit"] += credit
            item["row_count"] += 1
            if item["last_date"] is None or day > item["last_date"]:
                item["last_date"] = day

    return [
        AccountBalance(
            account=account,
            balance=item["debit"] - item["credit"],
            **item,
        )
        for account, item in sorted(activity.items(), key=lambda kv: kv[0])
    ]
