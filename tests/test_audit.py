"""Tests for the audit logger."""

from datetime import date
from decimal import Decimal
from uuid import UUID

import pytest

from ledger_core.audit import AuditLogger, create_correlation_id
from ledger_core.journal import create_verification
from ledger_core.models import SourceType
from ledger_core.models.audit import AuditEventBuilder, AuditEventType, AuditSeverity
from ledger_core.services.storage import InMemoryAuditStorage, StorageError


class FailingAuditStorage(InMemoryAuditStorage):
    """Audit storage whose writes always fail."""

    def append_event(self, event):
        raise StorageError("AuditLog sheet unavailable")


@pytest.fixture
def storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(storage):
    return AuditLogger(storage)


class TestAuditLogger:
    """Tests for persisting audit events."""

    def test_verification_booked(self, audit_logger, storage):
        correlation_id = create_correlation_id()
        verification = create_verification(
            date(2024, 3, 1),
            "Faktura 17",
            [
                {"account": "1510", "debit": Decimal("1250")},
                {"account": "3001", "credit": Decimal("1250")},
            ],
            source_type=SourceType.INVOICE,
        )
        audit_logger.log_verification_booked(verification, correlation_id)

        [event] = storage.get_events_by_correlation_id(correlation_id)
        assert event.event_type == AuditEventType.VERIFICATION_BOOKED
        assert event.entity_id == verification.id
        assert event.details == {
            "reference": "A1",
            "amount": "1250.00",
            "source_type": "invoice",
        }

    def test_rejection_is_a_warning(self, audit_logger, storage):
        audit_logger.log_verification_rejected("Debit 100 does not equal credit 99", "ImbalancedEntry")
        [event] = storage.get_recent_events()
        assert event.severity == AuditSeverity.WARNING
        assert event.error_code == "ImbalancedEntry"

    def test_sie_events_share_correlation_id(self, audit_logger, storage):
        """Test that one import can be traced end to end."""
        correlation_id = create_correlation_id()
        audit_logger.log_sie_parsed(2, 6, 7, "2024-01-01 - 2024-12-31", 0, correlation_id)
        audit_logger.log_account_registered("6310", "Företagsförsäkringar", correlation_id)
        audit_logger.log_sie_merged(2, 1, correlation_id)
        audit_logger.log_sie_rejected(4, "bad amount")

        events = storage.get_events_by_correlation_id(correlation_id)
        assert [e.event_type for e in events] == [
            AuditEventType.SIE_PARSED,
            AuditEventType.ACCOUNT_REGISTERED,
            AuditEventType.SIE_MERGED,
        ]

    def test_tax_fields_calculated(self, audit_logger, storage):
        audit_logger.log_tax_fields_calculated(2024, Decimal("4112.00"))
        [event] = storage.get_recent_events()
        assert event.entity_id == "2024"
        assert event.details["result"] == "4112.00"

    def test_errors_are_error_severity(self, audit_logger, storage):
        audit_logger.log_error("unexpected_error", "boom")
        audit_logger.log_storage_error("append_verification", "quota exceeded")
        assert all(e.severity == AuditSeverity.ERROR for e in storage.get_recent_events())

    def test_storage_failure_is_reported_not_raised(self):
        """Test that a broken audit backend never breaks the caller."""
        audit_logger = AuditLogger(FailingAuditStorage())
        audit_logger.log_unknown_account("6310", "booking")
        assert audit_logger.log(_event()) is False

    def test_local_only_logger(self):
        assert AuditLogger().log(_event()) is True


def _event():
    return AuditEventBuilder.unknown_account("6310", "booking")


def test_correlation_ids_are_unique():
    first = create_correlation_id()
    assert isinstance(first, UUID)
    assert first != create_correlation_id()
