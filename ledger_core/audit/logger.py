"""
Audit Logger

DESIGN DECISION: Every booking, rejection and import is logged.
This provides:
1. Traceability from a ledger row back to the flow that wrote it
2. A record of entries that were rejected and never stored
3. Debugging capability when an SIE import fails

The audit logger:
- Runs inline with the (synchronous) ledger operations
- Gracefully handles failures (a broken audit sheet never blocks booking)
- Supports correlation IDs to trace related events
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import structlog

from ledger_core.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from ledger_core.models.verification import Verification
from ledger_core.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, e.g. the AuditLog sheet (for persistence)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Audit persistence must never undo a booking
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_verification_booked(
        self,
        verification: Verification,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.verification_booked(
            verification_id=verification.id,
            reference=verification.reference,
            amount=str(verification.total_debit),
            source_type=verification.source_type.value,
            correlation_id=correlation_id,
        )
        self.log(event)

    def log_verification_rejected(
        self,
        reason: str,
        error_code: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.verification_rejected(
            reason=reason,
            error_code=error_code,
            details=details,
            correlation_id=correlation_id,
        )
        self.log(event)

    def log_account_registered(
        self,
        code: str,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.account_registered(code, name, correlation_id))

    def log_unknown_account(
        self,
        code: str,
        context: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.unknown_account(code, context, correlation_id))

    def log_sie_parsed(
        self,
        verifications: int,
        accounts: int,
        balances: int,
        period: str,
        unbalanced: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.sie_parsed(
            verifications=verifications,
            accounts=accounts,
            balances=balances,
            period=period,
            unbalanced=unbalanced,
            correlation_id=correlation_id,
        )
        self.log(event)

    def log_sie_rejected(
        self,
        line_number: int,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.sie_rejected(line_number, reason, correlation_id))

    def log_sie_merged(
        self,
        verifications_added: int,
        accounts_added: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.sie_merged(
            verifications_added=verifications_added,
            accounts_added=accounts_added,
            correlation_id=correlation_id,
        )
        self.log(event)

    def log_tax_fields_calculated(
        self,
        year: int,
        result: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.tax_fields_calculated(year, str(result), correlation_id))

    def log_vat_report_calculated(
        self,
        period: str,
        net_vat: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.vat_report_calculated(period, str(net_vat), correlation_id))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        self.log(event)

    def log_storage_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.storage_error(operation, error_message, correlation_id))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new action (e.g., one SIE import).
    Pass it through all subsequent operations.
    """
    return uuid4()
