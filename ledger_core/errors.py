"""
Ledger Error Kinds

Every failure the core can report derives from LedgerError so the
caller-facing boundary can translate them into one message
(see ledger_core.validation.describe_error).

IMPORTANT: None of these are ever auto-corrected.
An imbalanced entry is rejected, not rebalanced.
"""

from decimal import Decimal
from typing import Optional


class LedgerError(Exception):
    """Base exception for ledger core errors."""
    pass


class ImbalancedEntry(LedgerError):
    """Total debit differs from total credit after rounding."""

    def __init__(
        self,
        total_debit: Decimal,
        total_credit: Decimal,
        message: Optional[str] = None,
    ):
        self.total_debit = total_debit
        self.total_credit = total_credit
        self.difference = total_debit - total_credit
        super().__init__(
            message
            or f"Debit {total_debit} does not equal credit {total_credit} "
            f"(difference {self.difference})"
        )


class EmptyEntry(LedgerError):
    """A verification must have at least one row."""

    def __init__(self, message: str = "Verification has no rows"):
        super().__init__(message)


class UnknownAccount(LedgerError):
    """Account code is not in the catalog."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Unknown account: {code}")


class MalformedSIE(LedgerError):
    """Structural defect in an SIE document."""

    def __init__(self, line_number: int, reason: str, line_content: Optional[str] = None):
        self.line_number = line_number
        self.reason = reason
        self.line_content = line_content

        message = f"Line {line_number}: {reason}"
        if line_content:
            message += f" ('{line_content.strip()}')"
        super().__init__(message)
