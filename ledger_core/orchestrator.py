"""
Main Orchestrator for Ledger Core

This module ties together all the components and defines the
end-to-end flows for:
1. SIE import (text → parse → validate all → register accounts → append)
2. Booking (invoice / payment / bank transaction / receipt → verification)
3. Tax report (ledger → INK2 fields)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing reaches the ledger without passing the balance law
- An SIE import is all-or-nothing: every verification is checked
  before the first one is written
- Every step is audited

The store and catalog are passed in explicitly; flows hold no global
ledger state.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Union
from uuid import UUID

import structlog
from pydantic import ValidationError

from ledger_core.accounts import AccountCatalog
from ledger_core.aggregation import Period
from ledger_core.audit import AuditLogger, create_correlation_id
from ledger_core.config import get_settings
from ledger_core.errors import LedgerError, MalformedSIE, UnknownAccount
from ledger_core.journal import RowInput, check_balance, parse_rows, validate
from ledger_core.models.sie import ImportStats, MergeResult, SIEDocument
from ledger_core.models.tax import TaxField, VatReport
from ledger_core.models.verification import SourceType, Verification, round_amount
from ledger_core.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStore,
    InMemoryLedgerStore,
    LedgerStoreInterface,
    StorageError,
)
from ledger_core.sie import parse, parse_bytes
from ledger_core.tax import RESULT_FIELD, calculate_fields, calculate_vat_report, field_value


logger = structlog.get_logger(__name__)

# Accounts used by the booking helpers
ACCOUNTS_RECEIVABLE = "1510"
BANK_ACCOUNT = "1930"
DOMESTIC_SALES = "3001"
OUTPUT_VAT = "2611"


def _account_codes(rows) -> list[str]:
    seen: list[str] = []
    for row in rows:
        if row.account not in seen:
            seen.append(row.account)
    return seen


class SIEImportFlow:
    """
    Orchestrates SIE imports.

    Flow:
    1. Parse → SIEDocument (MalformedSIE aborts)
    2. Validate → every verification through the balance law
    3. Check accounts → against the catalog and the file's #KONTO lines
    4. Register → new accounts into the catalog
    5. Append → verifications into the ledger, renumbered by the store

    Steps 2-3 finish before step 4 starts. A rejected file leaves both
    the catalog and the ledger untouched.
    """

    def __init__(
        self,
        store: Optional[LedgerStoreInterface] = None,
        catalog: Optional[AccountCatalog] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._catalog = catalog
        self._audit_logger = audit_logger
        self._settings = get_settings().ledger

    def _parse(
        self,
        source: Union[str, bytes],
        correlation_id: UUID,
    ) -> SIEDocument:
        if isinstance(source, bytes) and len(source) > self._settings.max_import_size_bytes:
            raise LedgerError(
                f"SIE file is larger than {self._settings.max_import_size_mb} MB"
            )

        try:
            if isinstance(source, bytes):
                document = parse_bytes(source)
            else:
                document = parse(source)
        except MalformedSIE as e:
            if self._audit_logger:
                self._audit_logger.log_sie_rejected(
                    line_number=e.line_number,
                    reason=e.reason,
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            self._audit_logger.log_sie_parsed(
                verifications=len(document.verifications),
                accounts=len(document.accounts),
                balances=len(document.balances),
                period=document.period,
                unbalanced=len(document.unbalanced_verifications),
                correlation_id=correlation_id,
            )
        return document

    @staticmethod
    def _stats(document: SIEDocument) -> dict:
        return dict(
            verifications_count=len(document.verifications),
            accounts_count=len(document.accounts),
            balances_count=len(document.balances),
            period=document.period,
            unbalanced_count=len(document.unbalanced_verifications),
        )

    def parse_only(
        self,
        source: Union[str, bytes],
        correlation_id: Optional[UUID] = None,
    ) -> ImportStats:
        """
        Parse an SIE file and report what it contains. Nothing is stored.

        Raises:
            MalformedSIE: The file is structurally broken.
        """
        correlation_id = correlation_id or create_correlation_id()
        document = self._parse(source, correlation_id)
        return ImportStats(**self._stats(document))

    def _check_accounts(
        self,
        document: SIEDocument,
        catalog: AccountCatalog,
        correlation_id: UUID,
    ) -> None:
        declared = {account.code for account in document.accounts}
        strict = self._settings.strict_accounts and not catalog.allow_adhoc

        for verification in document.verifications:
            for code in _account_codes(verification.rows):
                if code in declared or code in catalog:
                    continue
                if strict:
                    raise UnknownAccount(code)
                if self._audit_logger:
                    self._audit_logger.log_unknown_account(
                        code=code,
                        context=f"SIE verification {verification.reference}",
                        correlation_id=correlation_id,
                    )

    def parse_and_merge(
        self,
        source: Union[str, bytes],
        store: Optional[LedgerStoreInterface] = None,
        catalog: Optional[AccountCatalog] = None,
        correlation_id: Optional[UUID] = None,
    ) -> MergeResult:
        """
        Parse an SIE file and merge it into the ledger and catalog.

        Verifications keep their SIE series but get new numbers from the
        store's counter, so an import never collides with existing
        entries.

        Raises:
            MalformedSIE: The file is structurally broken.
            ImbalancedEntry / EmptyEntry: A verification breaks the
                balance law. Nothing has been written.
            ValidationError: A verification cannot be stored as-is (e.g. a
                series longer than 4 characters or a text over 500).
                Nothing has been written.
            UnknownAccount: Strict mode and a row uses an account that is
                neither in the catalog nor declared in the file.
        """
        correlation_id = correlation_id or create_correlation_id()
        store = store or self._store
        catalog = catalog or self._catalog
        if store is None or catalog is None:
            raise ValueError("parse_and_merge needs a ledger store and an account catalog")

        document = self._parse(source, correlation_id)

        # Build every verification once, unstored, before the first write
        try:
            for verification in document.verifications:
                try:
                    verification.to_verification(source_id=verification.reference or None)
                except (LedgerError, ValidationError):
                    logger.warning(
                        "sie_verification_rejected",
                        reference=verification.reference,
                        line_number=verification.line_number,
                    )
                    raise
            self._check_accounts(document, catalog, correlation_id)
        except (LedgerError, ValidationError) as e:
            if self._audit_logger:
                self._audit_logger.log_verification_rejected(
                    reason=str(e),
                    error_code=type(e).__name__,
                    details={"stage": "sie_merge"},
                    correlation_id=correlation_id,
                )
            raise

        new_accounts = [a for a in document.accounts if a.code not in catalog]
        accounts_added = catalog.extend(new_accounts)
        if self._audit_logger:
            for account in new_accounts:
                self._audit_logger.log_account_registered(
                    code=account.code,
                    name=account.name,
                    correlation_id=correlation_id,
                )

        # Ad-hoc codes used by rows but never declared
        for verification in document.verifications:
            for code in _account_codes(verification.rows):
                if code not in catalog and catalog.allow_adhoc:
                    catalog.resolve(code)

        verification_ids = []
        for parsed in document.verifications:
            stored = store.book(
                date=parsed.date,
                description=parsed.description,
                rows=parsed.rows,
                source_id=parsed.reference or None,
                source_type=SourceType.IMPORT,
                series=parsed.series,
            )
            verification_ids.append(stored.id)
            if self._audit_logger:
                self._audit_logger.log_verification_booked(stored, correlation_id)

        if self._audit_logger:
            self._audit_logger.log_sie_merged(
                verifications_added=len(verification_ids),
                accounts_added=accounts_added,
                correlation_id=correlation_id,
            )

        return MergeResult(
            **self._stats(document),
            verifications_added=len(verification_ids),
            accounts_added=accounts_added,
            verification_ids=verification_ids,
        )


class BookingFlow:
    """
    Orchestrates bookings from business events.

    Every helper builds its rows and goes through the same gate:
    balance law, account check, then the store. A rejected entry is
    audited and re-raised; nothing is partially persisted.
    """

    def __init__(
        self,
        store: LedgerStoreInterface,
        catalog: Optional[AccountCatalog] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._catalog = catalog
        self._audit_logger = audit_logger
        self._settings = get_settings().ledger

    def _check_accounts(self, codes: Iterable[str]) -> None:
        if self._catalog is None:
            return
        for code in codes:
            if code in self._catalog:
                continue
            if self._settings.strict_accounts or self._catalog.allow_adhoc:
                # Raises unless ad-hoc extension is on
                self._catalog.resolve(code)
            elif self._audit_logger:
                self._audit_logger.log_unknown_account(code, "booking")

    def _rejected(self, error: Exception, correlation_id: Optional[UUID]) -> None:
        if self._audit_logger:
            self._audit_logger.log_verification_rejected(
                reason=str(error),
                error_code=type(error).__name__,
                correlation_id=correlation_id,
            )

    def _booked(self, verification: Verification, correlation_id: Optional[UUID]) -> Verification:
        if self._audit_logger:
            self._audit_logger.log_verification_booked(verification, correlation_id)
        return verification

    def add_verification(
        self,
        verification: Verification,
        correlation_id: Optional[UUID] = None,
    ) -> Verification:
        """
        Persist an already-built verification.

        Raises:
            ImbalancedEntry / EmptyEntry: Balance law violated
            UnknownAccount: Strict mode and an account is not in the catalog
            DuplicateError: Id or number already in the ledger
        """
        try:
            if not validate(verification):
                check_balance(parse_rows(verification.rows))
            self._check_accounts(verification.accounts)
            stored = self._store.add_verification(verification)
        except LedgerError as e:
            self._rejected(e, correlation_id)
            raise
        return self._booked(stored, correlation_id)

    def book(
        self,
        on: date,
        description: str,
        rows: Iterable[RowInput],
        source_id: Optional[str] = None,
        source_type: SourceType = SourceType.MANUAL,
        series: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Verification:
        """Build, check and store a verification from loose rows."""
        try:
            parsed = parse_rows(rows)
            check_balance(parsed)
            self._check_accounts(_account_codes(parsed))
            stored = self._store.book(
                date=on,
                description=description,
                rows=parsed,
                source_id=source_id,
                source_type=source_type,
                series=series or self._settings.default_series,
            )
        except (LedgerError, ValidationError) as e:
            self._rejected(e, correlation_id)
            raise
        return self._booked(stored, correlation_id)

    def book_invoice(
        self,
        invoice_id: str,
        customer: str,
        amount: Decimal,
        vat_amount: Optional[Decimal] = None,
        on: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Verification:
        """
        Book a customer invoice (VAT included in `amount`).

        Without an explicit VAT amount the configured rate is assumed to
        be included: VAT = total - total / (1 + rate).
        """
        total = round_amount(amount)
        if vat_amount is not None:
            vat = round_amount(vat_amount)
        else:
            rate = self._settings.default_vat_rate
            vat = round_amount(total - total / (1 + rate))
        # Net absorbs the rounding so the entry always balances
        net = total - vat

        rows = [
            {"account": ACCOUNTS_RECEIVABLE, "description": "Kundfordringar", "debit": total},
            {"account": DOMESTIC_SALES, "description": "Försäljning inom Sverige", "credit": net},
        ]
        if vat:
            rows.append({"account": OUTPUT_VAT, "description": "Utgående moms", "credit": vat})

        return self.book(
            on=on or date.today(),
            description=f"Faktura {invoice_id} - {customer}",
            rows=rows,
            source_id=invoice_id,
            source_type=SourceType.INVOICE,
            correlation_id=correlation_id,
        )

    def book_invoice_payment(
        self,
        invoice_id: str,
        customer: str,
        amount: Decimal,
        on: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Verification:
        """Book a customer payment into the bank account."""
        total = round_amount(amount)
        return self.book(
            on=on or date.today(),
            description=f"Betalning faktura {invoice_id} - {customer}",
            rows=[
                {"account": BANK_ACCOUNT, "description": "Företagskonto", "debit": total},
                {"account": ACCOUNTS_RECEIVABLE, "description": "Kundfordringar", "credit": total},
            ],
            source_id=invoice_id,
            source_type=SourceType.PAYMENT,
            correlation_id=correlation_id,
        )

    def book_transaction(
        self,
        transaction_id: str,
        amount: Decimal,
        debit_account: str,
        credit_account: str,
        description: str,
        on: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Verification:
        """
        Book a bank transaction.

        The sign of `amount` is ignored; the accounts decide direction.
        """
        value = abs(round_amount(amount))
        return self.book(
            on=on or date.today(),
            description=description,
            rows=[
                {"account": debit_account, "debit": value},
                {"account": credit_account, "credit": value},
            ],
            source_id=transaction_id,
            source_type=SourceType.TRANSACTION,
            correlation_id=correlation_id,
        )

    def book_receipt(
        self,
        amount: Decimal,
        debit_account: str,
        credit_account: str,
        description: Optional[str] = None,
        on: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Verification:
        """Book a receipt in the receipt series (B by default)."""
        value = round_amount(amount)
        return self.book(
            on=on or date.today(),
            description=description or "Kvitto",
            rows=[
                {"account": debit_account, "debit": value},
                {"account": credit_account, "credit": value},
            ],
            source_type=SourceType.RECEIPT,
            series=self._settings.receipt_series,
            correlation_id=correlation_id,
        )


class TaxReportFlow:
    """Computes INK2 fields and quarterly VAT returns from the ledger."""

    def __init__(
        self,
        store: LedgerStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger

    def calculate(
        self,
        year: int,
        correlation_id: Optional[UUID] = None,
    ) -> list[TaxField]:
        verifications = self._store.list_verifications(
            date_from=date(year, 1, 1),
            date_to=date(year, 12, 31),
        )
        fields = calculate_fields(verifications, year)

        if self._audit_logger:
            self._audit_logger.log_tax_fields_calculated(
                year=year,
                result=field_value(fields, RESULT_FIELD),
                correlation_id=correlation_id,
            )
        return fields

    def vat_report(
        self,
        year: int,
        quarter: int,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> VatReport:
        """VAT return for one calendar quarter; `today` decides the status."""
        period = Period.quarter(year, quarter)
        verifications = self._store.list_verifications(
            date_from=period.start,
            date_to=period.end,
        )
        report = calculate_vat_report(verifications, year, quarter, today=today)

        if self._audit_logger:
            self._audit_logger.log_vat_report_calculated(
                period=report.period,
                net_vat=report.net_vat,
                correlation_id=correlation_id,
            )
        return report


def create_app_components(
    use_storage: bool = True,
) -> tuple[SIEImportFlow, BookingFlow, TaxReportFlow, Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to initialize Google Sheets storage.
                    Set to False for an in-memory ledger.

    Returns:
        (import_flow, booking_flow, tax_flow, sheets_client)
    """
    settings = get_settings().ledger
    catalog = AccountCatalog.bas(allow_adhoc=settings.allow_adhoc_accounts)

    sheets_client = None
    store: LedgerStoreInterface
    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            store = GoogleSheetsLedgerStore(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except (ValidationError, StorageError) as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))
            sheets_client = None
            store = InMemoryLedgerStore()
            audit_logger = AuditLogger()  # Local-only logging
    else:
        store = InMemoryLedgerStore()
        audit_logger = AuditLogger()

    import_flow = SIEImportFlow(store, catalog, audit_logger)
    booking_flow = BookingFlow(store, catalog, audit_logger)
    tax_flow = TaxReportFlow(store, audit_logger)

    return import_flow, booking_flow, tax_flow, sheets_client
