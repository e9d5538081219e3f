"""
Journal Entry Model

The only way application code creates a Verification.

Flow:
1. Parse rows (JournalEntryLine objects or loose {account, debit, ...}
   mappings from a booking endpoint) into the strict row model
2. Reject empty entries (EmptyEntry)
3. Reject unbalanced entries (ImbalancedEntry)
4. Only then draw an id and a series number

Numbers are drawn after validation, so a rejected entry never burns a
number and a series stays gap-free.
"""

import threading
from collections import defaultdict
from datetime import date
from typing import Iterable, Mapping, Optional, Union

from ledger_core.errors import EmptyEntry, ImbalancedEntry
from ledger_core.models.verification import (
    JournalEntryLine,
    SourceType,
    Verification,
    row_totals,
)


RowInput = Union[JournalEntryLine, Mapping]

DEFAULT_SERIES = "A"


class SeriesCounter:
    """
    Monotonic, gap-free verification numbers per series.

    Thread-safe: each next() is atomic with respect to its series.
    """

    def __init__(self, start: Optional[Mapping[str, int]] = None):
        """
        Args:
            start: Last number already used per series, e.g. {"A": 41}.
        """
        self._last: dict[str, int] = defaultdict(int)
        self._lock = threading.Lock()
        for series, number in (start or {}).items():
            self._last[series] = number

    def next(self, series: str = DEFAULT_SERIES) -> int:
        with self._lock:
            self._last[series] += 1
            return self._last[series]

    def peek(self, series: str = DEFAULT_SERIES) -> int:
        """The number next() would return, without consuming it."""
        with self._lock:
            return self._last.get(series, 0) + 1

    def observe(self, series: str, number: int) -> None:
        """Advance past a number assigned elsewhere (e.g. by the caller)."""
        with self._lock:
            if number > self._last[series]:
                self._last[series] = number

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            return dict(self._last)


def _to_row(row: RowInput) -> JournalEntryLine:
    if isinstance(row, JournalEntryLine):
        return row
    return JournalEntryLine.model_validate(dict(row))


def parse_rows(rows: Iterable[RowInput]) -> list[JournalEntryLine]:
    """Parse loose row input into the strict row model."""
    return [_to_row(row) for row in rows]


def check_balance(rows: list[JournalEntryLine]) -> None:
    """
    Raise if rows cannot form a verification.

    Raises:
        EmptyEntry: No rows.
        ImbalancedEntry: Debit total != credit total (2 decimals).
    """
    if not rows:
        raise EmptyEntry()

    debit, credit = row_totals(rows)
    if debit != credit:
        raise ImbalancedEntry(debit, credit)


def is_balanced(rows: Iterable) -> bool:
    debit, credit = row_totals(rows)
    return debit == credit


def validate(verification) -> bool:
    """
    Pure balance predicate.

    Works on anything with a `rows` attribute (Verification,
    SIEVerification) or a mapping with a "rows" key. Never raises.
    """
    try:
        rows = (
            verification.get("rows")
            if isinstance(verification, Mapping)
            else getattr(verification, "rows", None)
        )
        if not rows:
            return False
        return is_balanced(parse_rows(rows))
    except (ValueError, TypeError, ArithmeticError):
        return False


def create_verification(
    date: date,
    description: str,
    rows: Iterable[RowInput],
    source_id: Optional[str] = None,
    source_type: SourceType = SourceType.MANUAL,
    series: Optional[str] = None,
    number: Optional[int] = None,
    id: Optional[str] = None,
    numbering: Optional[SeriesCounter] = None,
) -> Verification:
    """
    Build a balanced Verification.

    Args:
        date: Booking date
        description: Entry text
        rows: Rows as JournalEntryLine or mappings
        source_id: Id of the originating transaction/invoice/payment
        source_type: What produced the entry
        series: Series letter (default 'A')
        number: Explicit number; drawn from `numbering` when omitted
        id: Explicit id; a uuid4 hex string when omitted
        numbering: Counter to draw numbers from. Without it (and without
                   `number`) every call returns number 1, which only suits
                   unstored builds such as a pre-import check. Entries that
                   will be stored should go through a store's book(),
                   which numbers them from the ledger.

    Raises:
        EmptyEntry, ImbalancedEntry: The balance law is violated.
        ValueError: A row has an invalid shape (pydantic ValidationError).
    """
    parsed = parse_rows(rows)
    check_balance(parsed)

    series = series or DEFAULT_SERIES
    if number is None:
        number = (numbering or SeriesCounter()).next(series)
    elif numbering is not None:
        numbering.observe(series, number)

    fields = dict(
        series=series,
        number=number,
        date=date,
        description=description or "",
        rows=parsed,
        source_id=source_id,
        source_type=source_type,
    )
    if id:
        fields["id"] = id
    return Verification(**fields)
