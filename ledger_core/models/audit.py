"""
Audit Models for Ledger Core

Every booking, rejection and import is logged for audit purposes.
This provides:
1. Traceability from a ledger row back to the event that produced it
2. Debugging information when an import is rejected
3. A record of rejected entries that never reached the ledger

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Booking
    VERIFICATION_BOOKED = "verification_booked"
    VERIFICATION_REJECTED = "verification_rejected"

    # Accounts
    ACCOUNT_REGISTERED = "account_registered"
    UNKNOWN_ACCOUNT = "unknown_account"

    # SIE import
    SIE_PARSED = "sie_parsed"
    SIE_REJECTED = "sie_rejected"
    SIE_MERGED = "sie_merged"

    # Reporting
    TAX_FIELDS_CALCULATED = "tax_fields_calculated"
    VAT_REPORT_CALCULATED = "vat_report_calculated"

    # System events
    SYSTEM_ERROR = "system_error"
    STORAGE_ERROR = "storage_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'verification', 'account', 'sie_import')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., all events of one import)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         correlation_id, description, details_json, error_code, error_message]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_code or "",
            self.error_message or "",
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.verification_booked(verification, correlation_id)
        event = AuditEventBuilder.sie_rejected(line_number, reason, correlation_id)
    """

    @staticmethod
    def verification_booked(
        verification_id: str,
        reference: str,
        amount: str,
        source_type: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VERIFICATION_BOOKED,
            entity_type="verification",
            entity_id=verification_id,
            correlation_id=correlation_id,
            description=f"Verification {reference} booked: {amount} kr",
            details={
                "reference": reference,
                "amount": amount,
                "source_type": source_type,
            },
        )

    @staticmethod
    def verification_rejected(
        reason: str,
        error_code: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VERIFICATION_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="verification",
            correlation_id=correlation_id,
            description=f"Verification rejected: {reason}"[:500],
            details=details or {},
            error_code=error_code,
            error_message=reason,
        )

    @staticmethod
    def account_registered(
        code: str,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_REGISTERED,
            entity_type="account",
            entity_id=code,
            correlation_id=correlation_id,
            description=f"Account {code} registered: {name}",
            details={"name": name},
        )

    @staticmethod
    def unknown_account(
        code: str,
        context: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.UNKNOWN_ACCOUNT,
            severity=AuditSeverity.WARNING,
            entity_type="account",
            entity_id=code,
            correlation_id=correlation_id,
            description=f"Account {code} is not in the catalog ({context})",
            details={"context": context},
        )

    @staticmethod
    def sie_parsed(
        verifications: int,
        accounts: int,
        balances: int,
        period: str,
        unbalanced: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SIE_PARSED,
            severity=AuditSeverity.WARNING if unbalanced else AuditSeverity.INFO,
            entity_type="sie_import",
            correlation_id=correlation_id,
            description=(
                f"SIE parsed: {verifications} verifications, "
                f"{accounts} accounts, {balances} balances"
            ),
            details={
                "verifications": verifications,
                "accounts": accounts,
                "balances": balances,
                "period": period,
                "unbalanced": unbalanced,
            },
        )

    @staticmethod
    def sie_rejected(
        line_number: int,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SIE_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="sie_import",
            correlation_id=correlation_id,
            description=f"SIE import rejected at line {line_number}",
            details={"line_number": line_number},
            error_code="malformed_sie",
            error_message=reason,
        )

    @staticmethod
    def sie_merged(
        verifications_added: int,
        accounts_added: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SIE_MERGED,
            entity_type="sie_import",
            correlation_id=correlation_id,
            description=(
                f"SIE merged: {verifications_added} verifications, "
                f"{accounts_added} new accounts"
            ),
            details={
                "verifications_added": verifications_added,
                "accounts_added": accounts_added,
            },
        )

    @staticmethod
    def tax_fields_calculated(
        year: int,
        result: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TAX_FIELDS_CALCULATED,
            entity_type="ink2",
            entity_id=str(year),
            correlation_id=correlation_id,
            description=f"INK2 fields calculated for {year}: result {result}",
            details={"year": year, "result": result},
        )

    @staticmethod
    def vat_report_calculated(
        period: str,
        net_vat: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VAT_REPORT_CALCULATED,
            entity_type="vat_return",
            entity_id=period,
            correlation_id=correlation_id,
            description=f"VAT return calculated for {period}: net {net_vat}",
            details={"period": period, "net_vat": net_vat},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"Ledger storage error during {operation}",
            error_message=error_message,
            details={"operation": operation},
            correlation_id=correlation_id,
        )
