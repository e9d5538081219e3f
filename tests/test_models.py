"""
Tests for Ledger Core

Test strategy:
1. Unit tests for individual components (models, parser, aggregator)
2. Integration tests for flows (with in-memory or fake storage)
3. No real API calls in tests (Google Sheets is faked)
"""

import json
import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from ledger_core.models import (
    Account,
    AccountCategory,
    AccountRange,
    JournalEntryLine,
    SourceType,
    Verification,
    category_for_code,
    round_amount,
    row_totals,
)
from ledger_core.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestAccountModels:
    """Tests for account models."""

    def test_category_is_derived_from_code(self):
        """Test that the BAS class decides the category."""
        assert Account(code="1930", name="Bank").category == AccountCategory.ASSET
        assert Account(code="2081", name="Aktiekapital").category == AccountCategory.EQUITY
        assert Account(code="2440", name="Leverantörsskulder").category == AccountCategory.LIABILITY
        assert Account(code="3001", name="Försäljning").category == AccountCategory.REVENUE
        assert Account(code="5010", name="Lokalhyra").category == AccountCategory.EXPENSE
        assert Account(code="8410", name="Räntekostnader").category == AccountCategory.FINANCIAL

    def test_explicit_category_wins(self):
        """Test that an explicit category overrides the derived one."""
        account = Account(code="2081", name="Aktiekapital", category=AccountCategory.LIABILITY)
        assert account.category == AccountCategory.LIABILITY

    def test_account_rejects_bad_code(self):
        """Test that codes must be 4 digits."""
        with pytest.raises(ValueError):
            Account(code="193", name="Bank")
        with pytest.raises(ValueError):
            Account(code="19AB", name="Bank")

    def test_account_outside_bas_ranges_needs_category(self):
        """Test that class 9 codes cannot get a derived category."""
        with pytest.raises(ValueError):
            Account(code="9000", name="Internal")

    def test_account_strips_whitespace(self):
        """Test that whitespace is stripped from names."""
        assert Account(code="1930", name="  Bank  ").name == "Bank"

    def test_category_for_code(self):
        """Test range boundaries."""
        assert category_for_code("2099") == AccountCategory.EQUITY
        assert category_for_code("2100") == AccountCategory.LIABILITY
        with pytest.raises(ValueError):
            category_for_code("0999")


class TestAccountRange:
    """Tests for closed account ranges."""

    def test_contains_is_inclusive(self):
        """Test that both bounds are members."""
        r = AccountRange.of(3000, 3799)
        assert r.contains("3000")
        assert r.contains("3799")
        assert "3500" in r
        assert not r.contains("3800")

    def test_non_numeric_codes_are_not_members(self):
        """Test that malformed codes never match."""
        r = AccountRange.of("1000", "9999")
        assert not r.contains("abcd")
        assert not r.contains(None)
        assert not r.contains("12345")

    def test_low_above_high_rejected(self):
        """Test that an inverted range is rejected."""
        with pytest.raises(ValueError):
            AccountRange.of("5000", "4000")

    def test_str(self):
        assert str(AccountRange.of("7700", "7899")) == "7700-7899"


class TestJournalModels:
    """Tests for verification models."""

    def test_round_amount_half_up(self):
        """Test that amounts round half up to 2 decimals."""
        assert round_amount(Decimal("0.005")) == Decimal("0.01")
        assert round_amount(Decimal("2.675")) == Decimal("2.68")
        assert round_amount(1.1) == Decimal("1.10")

    def test_row_coerces_floats_through_str(self):
        """Test that float amounts keep their decimal representation."""
        row = JournalEntryLine(account="1930", debit=0.1)
        assert row.debit == Decimal("0.1")

    def test_row_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValueError):
            JournalEntryLine(account="1930", debit=Decimal("-100"))

    def test_row_net_and_memo(self):
        assert JournalEntryLine(account="3001", credit=Decimal("100")).net == Decimal("100")
        assert JournalEntryLine(account="3001").is_memo

    def test_row_totals_round(self):
        """Test that totals absorb float drift."""
        rows = [
            JournalEntryLine(account="1930", debit=0.1),
            JournalEntryLine(account="1930", debit=0.2),
            JournalEntryLine(account="3001", credit=0.3),
        ]
        assert row_totals(rows) == (Decimal("0.30"), Decimal("0.30"))

    def test_balanced_verification(self):
        """Test that a balanced verification can be built."""
        verification = Verification(
            number=1,
            date=date(2024, 1, 15),
            rows=[
                JournalEntryLine(account="1930", debit=Decimal("1000")),
                JournalEntryLine(account="1510", credit=Decimal("1000")),
            ],
        )
        assert verification.total_debit == Decimal("1000.00")
        assert verification.total_credit == Decimal("1000.00")
        assert verification.reference == "A1"
        assert verification.source_type == SourceType.MANUAL
        assert verification.accounts == ["1930", "1510"]

    def test_unbalanced_verification_cannot_exist(self):
        """Test that the model validator enforces the balance law."""
        with pytest.raises(ValueError):
            Verification(
                number=1,
                date=date(2024, 1, 15),
                rows=[
                    JournalEntryLine(account="1930", debit=Decimal("100")),
                    JournalEntryLine(account="1510", credit=Decimal("99")),
                ],
            )

    def test_empty_verification_cannot_exist(self):
        with pytest.raises(ValueError):
            Verification(number=1, date=date(2024, 1, 15), rows=[])

    def test_verification_is_frozen(self):
        """Test that stored verifications cannot be edited."""
        verification = Verification(
            number=1,
            date=date(2024, 1, 15),
            rows=[
                JournalEntryLine(account="1930", debit=Decimal("5")),
                JournalEntryLine(account="1510", credit=Decimal("5")),
            ],
        )
        with pytest.raises(ValueError):
            verification.number = 2

    def test_ids_are_unique(self):
        rows = [
            JournalEntryLine(account="1930", debit=Decimal("5")),
            JournalEntryLine(account="1510", credit=Decimal("5")),
        ]
        first = Verification(number=1, date=date(2024, 1, 1), rows=rows)
        second = Verification(number=2, date=date(2024, 1, 1), rows=rows)
        assert first.id != second.id


class TestAuditModels:
    """Tests for audit models."""

    def test_audit_event_creation(self):
        """Test AuditEvent creation."""
        event = AuditEvent(
            event_type=AuditEventType.VERIFICATION_BOOKED,
            description="Test event",
        )
        assert event.event_type == AuditEventType.VERIFICATION_BOOKED
        assert event.severity == AuditSeverity.INFO
        assert event.event_id is not None

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.SIE_MERGED,
            description="SIE merged",
            details={"verifications_added": 2},
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "sie_merged"
        assert log_dict["details"]["verifications_added"] == 2

    def test_audit_event_to_sheets_row(self):
        """Test the sheet row layout."""
        correlation_id = uuid4()
        event = AuditEventBuilder.sie_rejected(
            line_number=12,
            reason="invalid date '20241340'",
            correlation_id=correlation_id,
        )
        row = event.to_sheets_row()
        assert len(row) == 11
        assert row[2] == "sie_rejected"
        assert row[3] == "warning"
        assert row[6] == str(correlation_id)
        assert json.loads(row[8]) == {"line_number": 12}
        assert row[9] == "malformed_sie"

    def test_audit_event_builder_verification_booked(self):
        """Test the booking event builder."""
        event = AuditEventBuilder.verification_booked(
            verification_id="abc",
            reference="A1",
            amount="1000.00",
            source_type="invoice",
        )
        assert event.event_type == AuditEventType.VERIFICATION_BOOKED
        assert event.entity_type == "verification"
        assert event.entity_id == "abc"
        assert "A1" in event.description

    def test_audit_event_builder_sie_parsed_warns_on_unbalanced(self):
        """Test that unbalanced content raises the event severity."""
        clean = AuditEventBuilder.sie_parsed(2, 5, 7, "2024-01-01 - 2024-12-31", 0)
        dirty = AuditEventBuilder.sie_parsed(2, 5, 7, "2024-01-01 - 2024-12-31", 1)
        assert clean.severity == AuditSeverity.INFO
        assert dirty.severity == AuditSeverity.WARNING

    def test_audit_event_builder_system_error(self):
        """Test system error event builder."""
        event = AuditEventBuilder.system_error(
            error_type="TestError",
            error_message="Something went wrong",
            details={"key": "value"},
        )
        assert event.event_type == AuditEventType.SYSTEM_ERROR
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "Something went wrong"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
