"""
SIE Document Models

The result of parsing one SIE file. Nothing here is persisted as its
own entity: the caller merges accounts and verifications into the
catalog and the ledger store (see ledger_core.orchestrator).

DESIGN DECISION: Parsed verifications are kept LOSSLESS.
An SIEVerification may be unbalanced; it is flagged, not rejected.
The balance law is enforced only when it is admitted into the ledger
through to_verification().
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from ledger_core.models.account import Account, AccountCategory
from ledger_core.models.verification import (
    ZERO,
    JournalEntryLine,
    row_totals,
)


class BalanceKind(str, Enum):
    """SIE balance record types."""
    OPENING = "opening"  # #IB
    CLOSING = "closing"  # #UB
    RESULT = "result"    # #RES


class SIEBalance(BaseModel):
    """An opening, closing or result balance for one account and fiscal year."""

    account: str
    year: int = Field(
        ...,
        description="Fiscal year index: 0 current year, -1 previous year, ..."
    )
    amount: Decimal = Field(
        ...,
        description="Signed amount, debit positive"
    )
    kind: BalanceKind
    quantity: Optional[Decimal] = None
    line_number: Optional[int] = None


class FiscalYear(BaseModel):
    """A #RAR fiscal year range."""

    year: int = Field(..., description="Fiscal year index")
    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


class SIEMetadata(BaseModel):
    """Header information from the #FLAGGA ... #KPTYP tags."""

    company_name: Optional[str] = None
    organisation_number: Optional[str] = None
    program: Optional[str] = None
    program_version: Optional[str] = None
    file_format: Optional[str] = None
    sie_type: Optional[str] = None
    generated_on: Optional[date] = None
    currency: Optional[str] = None
    chart_type: Optional[str] = None
    flag: Optional[str] = None


class SIEVerification(BaseModel):
    """
    A verification as it appeared in the SIE file.

    Rows carry absolute amounts: a positive #TRANS amount becomes a
    debit, a negative one a credit.
    """

    series: str
    number: Optional[int] = None
    date: date
    description: str = ""
    rows: list[JournalEntryLine] = Field(default_factory=list)
    registered_on: Optional[date] = None
    line_number: int = Field(..., ge=1, description="Line of the #VER header")

    @property
    def total_debit(self) -> Decimal:
        return row_totals(self.rows)[0]

    @property
    def total_credit(self) -> Decimal:
        return row_totals(self.rows)[1]

    @property
    def is_balanced(self) -> bool:
        debit, credit = row_totals(self.rows)
        return bool(self.rows) and debit == credit

    @property
    def reference(self) -> str:
        return f"{self.series}{self.number if self.number is not None else ''}"

    def to_verification(self, numbering=None, **overrides):
        """
        Admit this entry through the Journal Entry Model.

        Raises ImbalancedEntry / EmptyEntry if it breaks the balance law.
        """
        from ledger_core.journal import create_verification
        from ledger_core.models.verification import SourceType

        params = dict(
            date=self.date,
            description=self.description,
            rows=self.rows,
            series=self.series,
            number=self.number,
            source_type=SourceType.IMPORT,
            numbering=numbering,
        )
        params.update(overrides)
        return create_verification(**params)


class SIEDocument(BaseModel):
    """A parsed SIE file."""

    accounts: list[Account] = Field(default_factory=list)
    verifications: list[SIEVerification] = Field(default_factory=list)
    balances: list[SIEBalance] = Field(default_factory=list)
    fiscal_years: list[FiscalYear] = Field(default_factory=list)
    metadata: SIEMetadata = Field(default_factory=SIEMetadata)

    def fiscal_year(self, year: int = 0) -> Optional[FiscalYear]:
        for fy in self.fiscal_years:
            if fy.year == year:
                return fy
        return None

    @property
    def period(self) -> str:
        """'<start> - <end>' of the current fiscal year, or 'N/A'."""
        fy = self.fiscal_year(0) or (self.fiscal_years[0] if self.fiscal_years else None)
        if fy is None:
            return "N/A"
        return f"{fy.start.isoformat()} - {fy.end.isoformat()}"

    @property
    def unbalanced_verifications(self) -> list[SIEVerification]:
        return [v for v in self.verifications if not v.is_balanced]

    def balances_of(self, kind: BalanceKind, year: int = 0) -> dict[str, Decimal]:
        return {
            b.account: b.amount
            for b in self.balances
            if b.kind == kind and b.year == year
        }

    def movements(self, year: int = 0) -> dict[str, Decimal]:
        """
        Net debit-positive movement per account from the verifications
        dated inside fiscal year `year`.

        Without a matching #RAR line every verification counts.
        """
        fy = self.fiscal_year(year)
        totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for ver in self.verifications:
            if fy is not None and not fy.contains(ver.date):
                continue
            for row in ver.rows:
                totals[row.account] += row.debit - row.credit
        return dict(totals)

    def derive_balances(self, year: int = 0) -> dict[str, dict[str, Decimal]]:
        """
        Re-derive closing and result balances from the document itself.

        Balance-sheet accounts (classes 1-2): opening balance + movement.
        Result accounts (classes 3-8): movement.
        """
        opening = self.balances_of(BalanceKind.OPENING, year)
        movement = self.movements(year)

        closing: dict[str, Decimal] = {}
        result: dict[str, Decimal] = {}
        for account in set(opening) | set(movement):
            amount = opening.get(account, ZERO) + movement.get(account, ZERO)
            if account[:1] in ("1", "2"):
                closing[account] = amount
            else:
                result[account] = amount
        return {BalanceKind.CLOSING.value: closing, BalanceKind.RESULT.value: result}

    def reconcile_balances(self, year: int = 0) -> list[dict]:
        """
        Compare recorded #UB/#RES lines with the derived balances.

        Checks both directions: a recorded balance that disagrees, and an
        account that moves without a balance line. A kind the file records
        no lines of at all (e.g. no #RES) is not checked.

        Returns one dict per mismatching account; an empty list means the
        document is internally consistent.
        """
        derived = self.derive_balances(year)
        mismatches = []
        for kind in (BalanceKind.CLOSING, BalanceKind.RESULT):
            recorded = self.balances_of(kind, year)
            if not recorded:
                continue
            computed = derived[kind.value]
            for account in sorted(set(recorded) | set(computed)):
                amount = recorded.get(account, ZERO)
                expected = computed.get(account, ZERO)
                if amount != expected:
                    mismatches.append({
                        "account": account,
                        "kind": kind.value,
                        "recorded": amount,
                        "derived": expected,
                    })
        return mismatches

    def account_categories(self) -> dict[str, AccountCategory]:
        return {a.code: a.category for a in self.accounts}


class ImportStats(BaseModel):
    """What the import boundary reports back."""

    verifications_count: int = Field(ge=0)
    accounts_count: int = Field(ge=0)
    balances_count: int = Field(ge=0)
    period: str
    unbalanced_count: int = Field(default=0, ge=0)


class MergeResult(ImportStats):
    """Statistics of a parse-and-merge import."""

    verifications_added: int = Field(default=0, ge=0)
    accounts_added: int = Field(default=0, ge=0)
    verification_ids: list[str] = Field(default_factory=list)
