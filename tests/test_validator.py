"""Tests for the verification validator and error reports."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from ledger_core.accounts import AccountCatalog
from ledger_core.errors import EmptyEntry, ImbalancedEntry, LedgerError, MalformedSIE, UnknownAccount
from ledger_core.models.verification import JournalEntryLine
from ledger_core.services.storage import NotFoundError
from ledger_core.sie import parse
from ledger_core.validation import VerificationValidator, describe_error


@pytest.fixture
def validator():
    return VerificationValidator(AccountCatalog.bas(), strict=True)


class TestVerificationValidator:
    """Tests for collecting issues."""

    def test_balanced_entry_passes(self, validator):
        result = validator.validate({"rows": [
            {"account": "1930", "debit": "1000"},
            {"account": "1510", "credit": "1000"},
        ]})
        assert result.is_valid
        assert result.issues == []
        assert validator.get_user_friendly_summary(result) == "✅ All checks passed."

    def test_imbalance_suggests_difference(self, validator):
        result = validator.validate({"id": "v1", "rows": [
            {"account": "1930", "debit": "100"},
            {"account": "1510", "credit": "99"},
        ]})
        assert not result.is_valid
        assert result.verification_id == "v1"
        issue = result.issues[0]
        assert issue.issue_type == "imbalanced"
        assert "1.00" in issue.suggested_fix

    def test_empty_entry(self, validator):
        result = validator.validate({"rows": []})
        assert [i.issue_type for i in result.issues] == ["empty"]
        assert result.error_count == 1

    def test_all_issues_are_collected(self, validator):
        """Test that one pass reports every malformed row, not just the first."""
        result = validator.validate({"rows": [
            {"account": "19", "debit": "1"},
            {"account": "1510", "credit": "-5"},
            {"account": "3001", "credit": "1"},
        ]})
        assert [i.field for i in result.issues] == ["rows[0]", "rows[1]"]
        assert all(i.issue_type == "invalid_row" for i in result.issues)

    def test_mixed_row_is_a_warning(self, validator):
        result = validator.validate({"rows": [
            {"account": "1930", "debit": "10", "credit": "5"},
            {"account": "1510", "credit": "5"},
        ]})
        assert result.is_valid
        assert result.issues[0].issue_type == "mixed_row"
        assert len(result.warnings) == 1

    def test_unknown_account_strict(self, validator):
        result = validator.validate({"rows": [
            {"account": "6310", "debit": "10"},
            {"account": "1930", "credit": "10"},
        ]})
        assert not result.is_valid
        assert result.issues[0].field == "rows[0].account"
        assert result.issues[0].severity == "error"

    def test_unknown_account_lenient(self, validator):
        result = validator.validate({"rows": [
            {"account": "6310", "debit": "10"},
            {"account": "1930", "credit": "10"},
        ]}, strict=False)
        assert result.is_valid
        assert result.warnings == ["Account 6310 is not in the chart of accounts"]
        summary = validator.get_user_friendly_summary(result)
        assert "⚠️" in summary
        assert "review carefully" in summary

    def test_without_catalog_accounts_are_not_checked(self):
        result = VerificationValidator().validate({"rows": [
            {"account": "6310", "debit": "10"},
            {"account": "1930", "credit": "10"},
        ]})
        assert result.is_valid

    def test_parsed_sie_verification(self, validator):
        """Test that unbalanced parsed verifications can be reviewed."""
        document = parse("#VER A 1 20240115\n{\n#TRANS 1930 {} 100\n#TRANS 3001 {} -99\n}\n")
        result = validator.validate(document.verifications[0])
        assert [i.issue_type for i in result.issues] == ["imbalanced"]

    def test_summary_lists_errors_with_fixes(self, validator):
        result = validator.validate({"rows": [
            {"account": "1930", "debit": "100"},
            {"account": "1510", "credit": "99"},
        ]})
        summary = validator.get_user_friendly_summary(result)
        assert summary.startswith("❌")
        assert "💡" in summary
        assert summary.endswith("Please fix the issues above before booking.")


class TestDescribeError:
    """Tests for the caller-facing error translation."""

    def test_imbalanced(self):
        report = describe_error(ImbalancedEntry(Decimal("100.00"), Decimal("99.00")))
        assert report.error_type == "imbalanced_entry"
        assert report.field == "rows"
        assert report.details == {
            "total_debit": "100.00",
            "total_credit": "99.00",
            "difference": "1.00",
        }

    def test_empty(self):
        assert describe_error(EmptyEntry()).error_type == "empty_entry"

    def test_unknown_account(self):
        report = describe_error(UnknownAccount("6310"))
        assert report.error_type == "unknown_account"
        assert report.details["code"] == "6310"

    def test_malformed_sie(self):
        report = describe_error(MalformedSIE(12, "bad amount", "#TRANS 1930 {} x"))
        assert report.error_type == "malformed_sie"
        assert report.line_number == 12
        assert report.details["reason"] == "bad amount"
        assert report.message.startswith("Line 12:")

    def test_pydantic_validation_error(self):
        with pytest.raises(ValidationError) as exc_info:
            JournalEntryLine(account="19", debit=1)
        report = describe_error(exc_info.value)
        assert report.error_type == "invalid_input"
        assert report.field == "account"

    def test_storage_error(self):
        report = describe_error(NotFoundError("no such verification"))
        assert report.error_type == "storage_error"
        assert report.details["kind"] == "NotFoundError"

    def test_other_ledger_error(self):
        assert describe_error(LedgerError("too big")).error_type == "ledger_error"

    def test_unexpected_error(self):
        report = describe_error(RuntimeError())
        assert report.error_type == "unexpected_error"
        assert report.message == "RuntimeError"
