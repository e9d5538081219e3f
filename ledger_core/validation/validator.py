"""
Verification Validation

DESIGN DECISION: Validation happens in two places with two purposes:

HARD GATE (ledger_core.journal):
- The balance law, enforced by raising
- Runs on every write; nothing unbalanced is ever stored

REVIEW REPORT (this module):
- Collects every problem in a verification instead of stopping at the
  first, so a bookkeeper can fix an entry (or an SIE file) in one pass
- Adds account checks against the catalog
- Flags suspicious but legal rows as warnings

IMPORTANT: Validation NEVER silently fixes issues.
It reports them for human review.
"""

from collections.abc import Mapping
from decimal import Decimal
from typing import Optional

from pydantic import ValidationError

from ledger_core.accounts import AccountCatalog
from ledger_core.config import get_settings
from ledger_core.errors import (
    EmptyEntry,
    ImbalancedEntry,
    LedgerError,
    MalformedSIE,
    UnknownAccount,
)
from ledger_core.models.validation import (
    ErrorReport,
    ValidationIssue,
    ValidationResult,
)
from ledger_core.models.verification import JournalEntryLine, row_totals
from ledger_core.services.storage.interface import StorageError


class VerificationValidator:
    """
    Checks a verification (stored, parsed from SIE, or a raw mapping)
    and reports every issue found.
    """

    def __init__(
        self,
        catalog: Optional[AccountCatalog] = None,
        strict: Optional[bool] = None,
    ):
        """
        Args:
            catalog: Chart of accounts for account checks.
                     If None, account checks are skipped.
            strict: Unknown accounts are errors (True) or warnings (False).
                    Defaults to LEDGER_STRICT_ACCOUNTS.
        """
        self._catalog = catalog
        self._strict = get_settings().ledger.strict_accounts if strict is None else strict

    def _parse_rows(self, raw_rows) -> tuple[list[JournalEntryLine], list[ValidationIssue]]:
        rows = []
        issues = []
        for index, raw in enumerate(raw_rows or []):
            if isinstance(raw, JournalEntryLine):
                rows.append(raw)
                continue
            try:
                rows.append(JournalEntryLine.model_validate(dict(raw)))
            except (ValidationError, TypeError, ValueError) as e:
                issues.append(ValidationIssue(
                    field=f"rows[{index}]",
                    issue_type="invalid_row",
                    message=f"Row {index + 1} is malformed: {e}",
                    severity="error",
                    suggested_fix="Each row needs a 4-digit account and non-negative amounts",
                ))
        return rows, issues

    def validate(
        self,
        verification,
        strict: Optional[bool] = None,
    ) -> ValidationResult:
        """
        Validate one verification.

        Args:
            verification: Verification, SIEVerification or a mapping
                          with "rows" (and optionally "id")
            strict: Override the validator's strictness for this call

        Returns:
            ValidationResult; is_valid is False if any error was found
        """
        strict = self._strict if strict is None else strict

        if isinstance(verification, Mapping):
            raw_rows = verification.get("rows")
            verification_id = verification.get("id")
        else:
            raw_rows = getattr(verification, "rows", None)
            verification_id = getattr(verification, "id", None)

        rows, issues = self._parse_rows(raw_rows)
        warnings: list[str] = []

        if not raw_rows:
            issues.append(ValidationIssue(
                field="rows",
                issue_type="empty",
                message="Verification has no rows",
                severity="error",
                suggested_fix="Add at least one debit and one credit row",
            ))
        elif not issues:
            debit, credit = row_totals(rows)
            if debit != credit:
                issues.append(ValidationIssue(
                    field="rows",
                    issue_type="imbalanced",
                    message=f"Debit {debit} does not equal credit {credit}",
                    severity="error",
                    suggested_fix=f"Adjust the rows by {abs(debit - credit)} so both sides match",
                ))

        for index, row in enumerate(rows):
            if row.debit > 0 and row.credit > 0:
                message = f"Row {index + 1} ({row.account}) has both debit and credit"
                issues.append(ValidationIssue(
                    field=f"rows[{index}]",
                    issue_type="mixed_row",
                    message=message,
                    severity="warning",
                    suggested_fix="Split it into one debit row and one credit row",
                ))
                warnings.append(message)

            if self._catalog is not None and row.account not in self._catalog:
                message = f"Account {row.account} is not in the chart of accounts"
                issues.append(ValidationIssue(
                    field=f"rows[{index}].account",
                    issue_type="unknown_account",
                    message=message,
                    severity="error" if strict else "warning",
                    suggested_fix="Register the account or use a BAS account",
                ))
                if not strict:
                    warnings.append(message)

        return ValidationResult(
            verification_id=verification_id,
            is_valid=not any(issue.severity == "error" for issue in issues),
            issues=issues,
            warnings=warnings,
        )

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """
        Generate a user-friendly summary of validation results.

        This is what we show to the bookkeeper.
        """
        if result.is_valid and not result.warnings:
            return "✅ All checks passed."

        lines = []

        if result.has_errors:
            lines.append("❌ The verification cannot be booked:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        lines.append("")
        if result.is_valid:
            lines.append("You can still book it, but please review carefully.")
        else:
            lines.append("Please fix the issues above before booking.")

        return "\n".join(lines)


def _decimal_details(**values: Decimal) -> dict[str, str]:
    return {key: str(value) for key, value in values.items()}


def describe_error(exc: Exception) -> ErrorReport:
    """
    Translate a core error into one caller-facing report.

    Knows every LedgerError kind plus pydantic's ValidationError (raised
    for malformed row input). Anything else is reported as unexpected.
    """
    if isinstance(exc, ImbalancedEntry):
        return ErrorReport(
            error_type="imbalanced_entry",
            message=str(exc),
            field="rows",
            details=_decimal_details(
                total_debit=exc.total_debit,
                total_credit=exc.total_credit,
                difference=exc.difference,
            ),
        )
    if isinstance(exc, EmptyEntry):
        return ErrorReport(error_type="empty_entry", message=str(exc), field="rows")
    if isinstance(exc, UnknownAccount):
        return ErrorReport(
            error_type="unknown_account",
            message=str(exc),
            field="account",
            details={"code": exc.code},
        )
    if isinstance(exc, MalformedSIE):
        return ErrorReport(
            error_type="malformed_sie",
            message=str(exc),
            line_number=exc.line_number,
            details={"reason": exc.reason, "line": exc.line_content or ""},
        )
    if isinstance(exc, ValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        return ErrorReport(
            error_type="invalid_input",
            message=first.get("msg", str(exc)),
            field=".".join(str(part) for part in first.get("loc", ())) or None,
            details={"errors": [
                {"loc": list(e.get("loc", ())), "msg": e.get("msg", "")}
                for e in errors
            ]},
        )
    if isinstance(exc, StorageError):
        return ErrorReport(
            error_type="storage_error",
            message=str(exc),
            details={"kind": type(exc).__name__},
        )
    if isinstance(exc, LedgerError):
        return ErrorReport(error_type="ledger_error", message=str(exc))
    return ErrorReport(
        error_type="unexpected_error",
        message=str(exc) or type(exc).__name__,
        details={"kind": type(exc).__name__},
    )
