"""
Validation Models

Results of checking a verification before it is booked, and the
caller-facing translation of core errors.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue, e.g. 'rows[1].account'"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'imbalanced', 'unknown_account', 'empty')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of checking a verification.

    Errors block booking, warnings are shown but don't block.
    """

    verification_id: Optional[str] = None
    validated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    is_valid: bool = Field(
        ...,
        description="Overall validation result"
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")


class ErrorReport(BaseModel):
    """One message plus enough structure to fix the source document."""

    error_type: str
    message: str
    field: Optional[str] = None
    line_number: Optional[int] = None
    details: dict[str, Any] = Field(default_factory=dict)
