"""Tests for ledger and audit storage (in-memory and faked Google Sheets)."""

import threading
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from tenacity import wait_none

from ledger_core.errors import ImbalancedEntry
from ledger_core.journal import create_verification
from ledger_core.models import SourceType
from ledger_core.models.audit import AuditEventBuilder, AuditEventType
from ledger_core.services.storage import (
    DuplicateError,
    GoogleSheetsAuditStorage,
    GoogleSheetsLedgerStore,
    InMemoryAuditStorage,
    InMemoryLedgerStore,
    StorageError,
)
from ledger_core.services.storage.google_sheets import AUDIT_COLUMNS, VERIFICATION_COLUMNS


BALANCED = [
    {"account": "1930", "debit": Decimal("1000")},
    {"account": "1510", "credit": Decimal("1000")},
]
IMBALANCED = [
    {"account": "1930", "debit": Decimal("100")},
    {"account": "1510", "credit": Decimal("99")},
]


class FakeWorksheet:
    """Stands in for gspread.Worksheet; rows are lists of strings."""

    def __init__(self, header):
        self.rows = [list(header)]

    def get_all_values(self):
        return [list(row) for row in self.rows]

    def append_row(self, row, value_input_option=None):
        self.rows.append([str(v) for v in row])

    def append_rows(self, rows, value_input_option=None):
        for row in rows:
            self.append_row(row)


class FlakyWorksheet(FakeWorksheet):
    """A worksheet whose appends fail while `failing` is set."""

    def __init__(self, header):
        super().__init__(header)
        self.failing = True

    def append_rows(self, rows, value_input_option=None):
        if self.failing:
            raise ConnectionError("quota exceeded")
        super().append_rows(rows, value_input_option)


class FakeSheetsClient:
    """Stands in for GoogleSheetsClient without network access."""

    def __init__(self):
        self.verifications = FakeWorksheet(VERIFICATION_COLUMNS)
        self.audit = FakeWorksheet(AUDIT_COLUMNS)

    def get_verifications_sheet(self):
        return self.verifications

    def get_audit_sheet(self):
        return self.audit


@pytest.fixture(params=["memory", "sheets"])
def store(request):
    if request.param == "memory":
        return InMemoryLedgerStore()
    return GoogleSheetsLedgerStore(FakeSheetsClient())


class TestLedgerStore:
    """Behaviour shared by every ledger store."""

    def test_book_appends_balanced_entry(self, store):
        """Test that [1930 D1000, 1510 C1000] is accepted and appended."""
        verification = store.book(date(2024, 3, 1), "Inbetalning", BALANCED)
        assert store.count() == 1
        stored = store.get_verification(verification.id)
        assert stored.reference == "A1"
        assert stored.total_debit == Decimal("1000.00")
        assert [r.account for r in stored.rows] == ["1930", "1510"]

    def test_book_rejects_imbalanced_entry(self, store):
        """Test that [1930 D100, 1510 C99] raises and stores nothing."""
        with pytest.raises(ImbalancedEntry):
            store.book(date(2024, 3, 1), "Fel", IMBALANCED)
        assert store.count() == 0
        assert store.numbering.peek("A") == 1

    def test_numbers_are_sequential_per_series(self, store):
        store.book(date(2024, 1, 1), "a", BALANCED)
        store.book(date(2024, 1, 2), "b", BALANCED, series="B")
        third = store.book(date(2024, 1, 3), "c", BALANCED)
        assert third.reference == "A2"

    def test_add_verification_and_duplicates(self, store):
        verification = create_verification(date(2024, 1, 1), "x", BALANCED, number=5)
        store.add_verification(verification)
        with pytest.raises(DuplicateError):
            store.add_verification(verification)

        same_number = create_verification(date(2024, 1, 1), "y", BALANCED, number=5)
        with pytest.raises(DuplicateError):
            store.add_verification(same_number)

        # Numbering continues after an explicitly numbered entry
        assert store.book(date(2024, 1, 2), "z", BALANCED).number == 6

    def test_list_filters_and_order(self, store):
        store.book(date(2024, 3, 1), "mars", BALANCED)
        store.book(date(2024, 1, 1), "januari", BALANCED)
        store.book(date(2024, 2, 1), "kvitto", BALANCED, series="B")

        assert [v.description for v in store.list_verifications()] == ["januari", "kvitto", "mars"]
        assert [v.description for v in store.list_verifications(date_from=date(2024, 2, 1))] == [
            "kvitto",
            "mars",
        ]
        assert [v.description for v in store.list_verifications(date_to=date(2024, 1, 31))] == [
            "januari",
        ]
        assert [v.description for v in store.list_verifications(series="B")] == ["kvitto"]

    def test_get_missing_verification(self, store):
        assert store.get_verification("missing") is None

    def test_source_fields_survive(self, store):
        verification = store.book(
            date(2024, 1, 1),
            "Faktura 17",
            BALANCED,
            source_id="F-17",
            source_type=SourceType.INVOICE,
        )
        stored = store.get_verification(verification.id)
        assert stored.source_id == "F-17"
        assert stored.source_type == SourceType.INVOICE


class TestInMemoryLedgerStore:
    """Concurrency of the in-memory ledger."""

    def test_concurrent_booking_is_gap_free(self):
        """Test that parallel writers never share or skip a number."""
        store = InMemoryLedgerStore()

        def book_many():
            for _ in range(25):
                store.book(date(2024, 1, 1), "parallell", BALANCED)

        threads = [threading.Thread(target=book_many) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        numbers = sorted(v.number for v in store.list_verifications())
        assert numbers == list(range(1, 201))
        assert store.count() == 200


class TestGoogleSheetsLedgerStore:
    """Sheet layout of the Google Sheets ledger."""

    def test_one_sheet_row_per_journal_row(self):
        client = FakeSheetsClient()
        store = GoogleSheetsLedgerStore(client)
        verification = store.book(date(2024, 3, 1), "Inbetalning", BALANCED)

        rows = client.verifications.rows
        assert rows[0] == VERIFICATION_COLUMNS
        assert len(rows) == 3
        assert rows[1][0] == rows[2][0] == verification.id
        assert rows[1][9:] == ["1930", "", "1000", "0"]
        assert rows[2][9:] == ["1510", "", "0", "1000"]

    def test_numbering_continues_from_sheet(self):
        """Test that a new store picks up numbers already in the sheet."""
        client = FakeSheetsClient()
        GoogleSheetsLedgerStore(client).book(date(2024, 1, 1), "first", BALANCED)
        GoogleSheetsLedgerStore(client).book(date(2024, 1, 2), "second", BALANCED)

        numbers = [v.number for v in GoogleSheetsLedgerStore(client).list_verifications()]
        assert numbers == [1, 2]

    def test_unreadable_rows_are_skipped(self):
        client = FakeSheetsClient()
        store = GoogleSheetsLedgerStore(client)
        store.book(date(2024, 1, 1), "ok", BALANCED)
        client.verifications.rows.append(["broken", "A", "x"])
        assert store.count() == 1

    def test_failed_write_does_not_use_up_a_number(self, monkeypatch):
        """Test that a booking lost to a sheet error leaves no gap."""
        monkeypatch.setattr(GoogleSheetsLedgerStore._append.retry, "wait", wait_none())
        client = FakeSheetsClient()
        client.verifications = FlakyWorksheet(VERIFICATION_COLUMNS)
        store = GoogleSheetsLedgerStore(client)

        with pytest.raises(StorageError):
            store.book(date(2024, 1, 1), "tappad", BALANCED)
        assert store.count() == 0
        assert store.numbering.peek("A") == 1

        client.verifications.failing = False
        assert store.book(date(2024, 1, 2), "sparad", BALANCED).reference == "A1"

    def test_timestamps_are_timezone_aware(self):
        client = FakeSheetsClient()
        store = GoogleSheetsLedgerStore(client)
        verification = store.book(date(2024, 1, 1), "ok", BALANCED)
        assert store.get_verification(verification.id).created_at.tzinfo is not None

    def test_naive_sheet_timestamp_is_utc(self):
        """Test that rows written without an offset are read as UTC."""
        client = FakeSheetsClient()
        store = GoogleSheetsLedgerStore(client)
        verification = store.book(date(2024, 1, 1), "ok", BALANCED)
        for row in client.verifications.rows[1:]:
            row[7] = "2024-01-01T12:00:00"

        stored = store.get_verification(verification.id)
        assert stored.created_at == datetime(2024, 1, 1, 12, tzinfo=timezone.utc)


class TestAuditStorage:
    """Tests for audit storage backends."""

    @pytest.fixture(params=["memory", "sheets"])
    def audit_storage(self, request):
        if request.param == "memory":
            return InMemoryAuditStorage()
        return GoogleSheetsAuditStorage(FakeSheetsClient())

    def test_events_by_correlation_id(self, audit_storage):
        correlation_id = uuid4()
        audit_storage.append_event(AuditEventBuilder.sie_merged(2, 1, correlation_id))
        audit_storage.append_event(AuditEventBuilder.sie_merged(3, 0))
        events = audit_storage.get_events_by_correlation_id(correlation_id)
        assert len(events) == 1
        assert events[0].event_type == AuditEventType.SIE_MERGED
        assert events[0].details["verifications_added"] == 2

    def test_recent_events_newest_first(self, audit_storage):
        first = AuditEventBuilder.account_registered("6310", "Försäkringar")
        second = AuditEventBuilder.unknown_account("6999", "booking").model_copy(
            update={"timestamp": first.timestamp + timedelta(seconds=1)}
        )
        audit_storage.append_event(first)
        audit_storage.append_event(second)
        recent = audit_storage.get_recent_events(limit=1)
        assert [e.event_id for e in recent] == [second.event_id]

    def test_timestamps_are_timezone_aware(self, audit_storage):
        audit_storage.append_event(AuditEventBuilder.sie_merged(1, 0))
        [event] = audit_storage.get_recent_events()
        assert event.timestamp.tzinfo is not None
