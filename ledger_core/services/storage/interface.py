"""
Abstract Storage Interface

DESIGN DECISION: The ledger is reached only through this interface.
This allows us to:
1. Keep the ledger in Google Sheets where the bookkeeper can read it
2. Use in-memory storage for testing
3. Keep booking logic decoupled from storage implementation

Stores are constructed explicitly and handed to the flows that use
them; there is no module-level ledger.

The interface is intentionally small: verifications are append-only,
so there is no update or delete.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Iterable, Optional
from uuid import UUID

from ledger_core.errors import LedgerError
from ledger_core.journal import RowInput, SeriesCounter
from ledger_core.models.audit import AuditEvent
from ledger_core.models.verification import SourceType, Verification


class LedgerStoreInterface(ABC):
    """
    Abstract interface for the verification ledger.

    Any storage implementation must guarantee that every stored
    verification satisfies the balance law and that numbers within a
    series are unique.
    """

    @property
    @abstractmethod
    def numbering(self) -> SeriesCounter:
        """Counter issuing verification numbers for this ledger."""
        pass

    @abstractmethod
    def add_verification(self, verification: Verification) -> Verification:
        """
        Append an already-built verification.

        Args:
            verification: The verification to store

        Returns:
            The stored verification

        Raises:
            ImbalancedEntry, EmptyEntry: Balance law violated
            DuplicateError: Id or series number already stored
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def book(
        self,
        date: date,
        description: str,
        rows: Iterable[RowInput],
        source_id: Optional[str] = None,
        source_type: SourceType = SourceType.MANUAL,
        series: Optional[str] = None,
    ) -> Verification:
        """
        Build, number and append a verification in one step.

        The number is drawn from this store's counter only after the
        rows have passed the balance check.

        Raises:
            ImbalancedEntry, EmptyEntry: Balance law violated
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def list_verifications(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        series: Optional[str] = None,
    ) -> list[Verification]:
        """
        List verifications with optional filters.

        Args:
            date_from: Only verifications on or after this date
            date_to: Only verifications on or before this date
            series: Only this series

        Returns:
            Matching verifications ordered by date, series and number
        """
        pass

    @abstractmethod
    def get_verification(self, verification_id: str) -> Optional[Verification]:
        """
        Retrieve a verification by its ID.

        Returns:
            The verification if found, None otherwise
        """
        pass

    @abstractmethod
    def count(self) -> int:
        """Number of stored verifications."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one SIE import).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


def sort_key(verification: Verification) -> tuple:
    """Ledger order: date, then series, then number."""
    return (verification.date, verification.series, verification.number)


def in_range(
    verification: Verification,
    date_from: Optional[date],
    date_to: Optional[date],
    series: Optional[str],
) -> bool:
    if date_from and verification.date < date_from:
        return False
    if date_to and verification.date > date_to:
        return False
    if series and verification.series != series:
        return False
    return True


class StorageError(LedgerError):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
