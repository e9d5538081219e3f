"""
In-Memory Storage

A process-local ledger. Used by tests and by callers that only need a
scratch ledger (e.g. computing tax fields for an SIE file without
persisting it).
"""

import threading
from datetime import date
from typing import Iterable, Optional
from uuid import UUID

import structlog

from ledger_core.journal import (
    DEFAULT_SERIES,
    RowInput,
    SeriesCounter,
    check_balance,
    create_verification,
    validate,
)
from ledger_core.models.audit import AuditEvent
from ledger_core.models.verification import SourceType, Verification
from ledger_core.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    LedgerStoreInterface,
    in_range,
    sort_key,
)


logger = structlog.get_logger(__name__)


class InMemoryLedgerStore(LedgerStoreInterface):
    """
    Thread-safe in-memory ledger.

    All writes run under one lock, so a number drawn by book() is
    appended before any other writer can draw the next one.
    """

    def __init__(self, numbering: Optional[SeriesCounter] = None):
        self._verifications: list[Verification] = []
        self._by_id: dict[str, Verification] = {}
        self._numbers: set[tuple[str, int]] = set()
        self._numbering = numbering or SeriesCounter()
        self._lock = threading.RLock()

    @property
    def numbering(self) -> SeriesCounter:
        return self._numbering

    def add_verification(self, verification: Verification) -> Verification:
        if not validate(verification):
            # Raises the specific EmptyEntry / ImbalancedEntry
            check_balance(list(verification.rows))

        with self._lock:
            if verification.id in self._by_id:
                raise DuplicateError(f"Verification already stored: {verification.id}")
            key = (verification.series, verification.number)
            if key in self._numbers:
                raise DuplicateError(
                    f"Verification number already used: {verification.reference}"
                )

            self._verifications.append(verification)
            self._by_id[verification.id] = verification
            self._numbers.add(key)
            self._numbering.observe(verification.series, verification.number)

        logger.debug(
            "verification_stored",
            verification_id=verification.id,
            reference=verification.reference,
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
            verification = create_verification(
                date=date,
                description=description,
                rows=rows,
                source_id=source_id,
                source_type=source_type,
                series=series,
                number=self._numbering.peek(series),
            )
            return self.add_verification(verification)

    def list_verifications(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        series: Optional[str] = None,
    ) -> list[Verification]:
        with self._lock:
            snapshot = list(self._verifications)

        matching = [v for v in snapshot if in_range(v, date_from, date_to, series)]
        matching.sort(key=sort_key)
        return matching

    def get_verification(self, verification_id: str) -> Optional[Verification]:
        with self._lock:
            return self._by_id.get(verification_id)

    def count(self) -> int:
        with self._lock:
            return len(self._verifications)


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only in-memory audit log."""

    def __init__(self):
        self._events: list[AuditEvent] = []
        self._lock = threading.Lock()

    def append_event(self, event: AuditEvent) -> bool:
        with self._lock:
            self._events.append(event)
        return True

    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        with self._lock:
            events = [e for e in self._events if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        with self._lock:
            events = list(self._events)
        events.reverse()
        return events[:limit]
