"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the persistent ledger because:
1. The bookkeeper can read the journal directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (fine for a small company's books)
- No transactions: all rows of one verification are written with a
  single append_rows call, so a verification is never half-stored
- Limited query capabilities (we filter in Python)

Layout: one sheet row per verification row. The verification fields
are repeated on each of its rows so the sheet can be pivoted directly.
"""

import json
import threading
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from ledger_core.config import GoogleSheetsSettings, get_settings
from ledger_core.journal import (
    DEFAULT_SERIES,
    RowInput,
    SeriesCounter,
    check_balance,
    create_verification,
    validate,
)
from ledger_core.models.audit import AuditEvent, AuditEventType, AuditSeverity
from ledger_core.models.verification import (
    JournalEntryLine,
    SourceType,
    Verification,
)
from ledger_core.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    LedgerStoreInterface,
    StorageError,
    in_range,
    sort_key,
)


logger = structlog.get_logger(__name__)


# Column mappings for the Verifikationer sheet
VERIFICATION_COLUMNS = [
    "verification_id",
    "series",
    "number",
    "date",
    "description",
    "source_type",
    "source_id",
    "created_at",
    "row_index",
    "account",
    "row_description",
    "debit",
    "credit",
]

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_code",
    "error_message",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(self, title: str, columns: list[str], rows: int) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_verifications_sheet(self) -> gspread.Worksheet:
        """Get or create the verification journal worksheet."""
        return self._get_or_create_sheet(
            self._settings.verifications_sheet_name,
            VERIFICATION_COLUMNS,
            rows=5000,
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name,
            AUDIT_COLUMNS,
            rows=5000,
        )


def _safe_get(row: list, index: int, default: str = "") -> str:
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


def _parse_timestamp(value: str) -> datetime:
    # Rows written before timestamps carried an offset are UTC
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class GoogleSheetsLedgerStore(LedgerStoreInterface):
    """
    Google Sheets implementation of the ledger.

    Writes from this process are serialized by a lock. Verification
    numbers continue from the highest number found in the sheet.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()
        self._lock = threading.RLock()
        self._numbering: Optional[SeriesCounter] = None

    @property
    def numbering(self) -> SeriesCounter:
        with self._lock:
            if self._numbering is None:
                last: dict[str, int] = {}
                for verification in self._read_all():
                    number = last.get(verification.series, 0)
                    last[verification.series] = max(number, verification.number)
                self._numbering = SeriesCounter(last)
            return self._numbering

    def _verification_to_rows(self, verification: Verification) -> list[list]:
        """Convert a Verification to one spreadsheet row per journal row."""
        head = [
            verification.id,
            verification.series,
            str(verification.number),
            verification.date.isoformat(),
            verification.description,
            verification.source_type.value,
            verification.source_id or "",
            verification.created_at.isoformat(),
        ]
        return [
            head + [
                str(index),
                row.account,
                row.description or "",
                str(row.debit),
                str(row.credit),
            ]
            for index, row in enumerate(verification.rows)
        ]

    def _rows_to_verifications(self, sheet_rows: list[list]) -> list[Verification]:
        """Group spreadsheet rows back into verifications, in sheet order."""
        grouped: dict[str, list[list]] = {}
        for row in sheet_rows:
            if not row or not row[0]:  # Skip empty rows
                continue
            grouped.setdefault(row[0], []).append(row)

        verifications = []
        for verification_id, rows in grouped.items():
            try:
                rows.sort(key=lambda r: int(_safe_get(r, 8, "0")))
                first = rows[0]
                verifications.append(Verification(
                    id=verification_id,
                    series=_safe_get(first, 1),
                    number=int(_safe_get(first, 2)),
                    date=date.fromisoformat(_safe_get(first, 3)),
                    description=_safe_get(first, 4),
                    source_type=SourceType(_safe_get(first, 5, SourceType.MANUAL.value)),
                    source_id=_safe_get(first, 6) or None,
                    created_at=_parse_timestamp(_safe_get(first, 7)),
                    rows=[
                        JournalEntryLine(
                            account=_safe_get(r, 9),
                            description=_safe_get(r, 10) or None,
                            debit=Decimal(_safe_get(r, 11, "0")),
                            credit=Decimal(_safe_get(r, 12, "0")),
                        )
                        for r in rows
                    ],
                ))
            except (ValueError, InvalidOperation) as e:
                # A hand-edited sheet must not hide the rest of the ledger
                logger.warning(
                    "sheet_verification_unreadable",
                    verification_id=verification_id,
                    error=str(e),
                )
        return verifications

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _read_all(self) -> list[Verification]:
        try:
            sheet = self._client.get_verifications_sheet()
            # Get all data (excluding header)
            all_rows = sheet.get_all_values()[1:]
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read verifications: {e}")
        return self._rows_to_verifications(all_rows)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _append(self, verification: Verification) -> None:
        try:
            sheet = self._client.get_verifications_sheet()
            sheet.append_rows(
                self._verification_to_rows(verification),
                value_input_option="RAW",
            )
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save verification: {e}")

    def add_verification(self, verification: Verification) -> Verification:
        if not validate(verification):
            check_balance(list(verification.rows))

        with self._lock:
            for stored in self._read_all():
                if stored.id == verification.id:
                    raise DuplicateError(f"Verification already stored: {verification.id}")
                if (stored.series, stored.number) == (verification.series, verification.number):
                    raise DuplicateError(
                        f"Verification number already used: {verification.reference}"
                    )

            self._append(verification)
            self.numbering.observe(verification.series, verification.number)

        logger.info(
            "verification_stored",
            verification_id=verification.id,
            reference=verification.reference,
            rows=len(verification.rows),
        )
        return verification

    def book(
        self,
        date: date,
        description: str,
        rows: Iterable[RowInput],
        source_id: Optional[str] = None,
        source_type: SourceType = SourceType.MANUAL,
        series: Optional[str] = None,
    ) -> Verification:
        series = series or DEFAULT_SERIES
        with self._lock:
            # The counter only advances once the rows are in the sheet
            verification = create_verification(
                date=date,
                description=description,
                rows=rows,
                source_id=source_id,
                source_type=source_type,
                series=series,
                number=self.numbering.peek(series),
            )
            return self.add_verification(verification)

    def list_verifications(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        series: Optional[str] = None,
    ) -> list[Verification]:
        matching = [
            v for v in self._read_all()
            if in_range(v, date_from, date_to, series)
        ]
        matching.sort(key=sort_key)
        return matching

    def get_verification(self, verification_id: str) -> Optional[Verification]:
        for verification in self._read_all():
            if verification.id == verification_id:
                return verification
        return None

    def count(self) -> int:
        return len(self._read_all())


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        return AuditEvent(
            event_id=UUID(_safe_get(row, 0)),
            timestamp=_parse_timestamp(_safe_get(row, 1)),
            event_type=AuditEventType(_safe_get(row, 2)),
            severity=AuditSeverity(_safe_get(row, 3)),
            entity_type=_safe_get(row, 4) or None,
            entity_id=_safe_get(row, 5) or None,
            correlation_id=UUID(_safe_get(row, 6)) if _safe_get(row, 6) else None,
            description=_safe_get(row, 7),
            details=json.loads(_safe_get(row, 8)) if _safe_get(row, 8) else {},
            error_code=_safe_get(row, 9) or None,
            error_message=_safe_get(row, 10) or None,
        )

    def _read_events(self) -> list[AuditEvent]:
        try:
            sheet = self._client.get_audit_sheet()
            all_rows = sheet.get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        events = []
        for row in all_rows:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except ValueError as e:
                logger.warning("audit_row_unreadable", row=row[0], error=str(e))
        return events

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to write audit event: {e}")

    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID."""
        events = [e for e in self._read_events() if e.correlation_id == correlation_id]
        # Sort chronologically
        events.sort(key=lambda e: e.timestamp)
        return events

    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        events = self._read_events()
        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
