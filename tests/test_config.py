"""Tests for configuration loading."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from ledger_core.config import LedgerSettings, get_settings, validate_all_settings


class TestLedgerSettings:
    """Tests for the LEDGER_ settings."""

    def test_defaults(self):
        settings = get_settings().ledger
        assert settings.default_series == "A"
        assert settings.receipt_series == "B"
        assert settings.strict_accounts is True
        assert settings.allow_adhoc_accounts is False
        assert settings.default_vat_rate == Decimal("0.25")
        assert settings.max_import_size_bytes == 10 * 1024 * 1024

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("LEDGER_RECEIPT_SERIES", "K")
        monkeypatch.setenv("LEDGER_DEFAULT_VAT_RATE", "0.12")
        settings = get_settings().ledger
        assert settings.receipt_series == "K"
        assert settings.default_vat_rate == Decimal("0.12")

    def test_vat_rate_bounds(self):
        with pytest.raises(ValidationError):
            LedgerSettings(default_vat_rate=Decimal("1.5"))

    def test_sie_encoding(self, monkeypatch):
        assert get_settings().sie.encoding == "cp437"
        monkeypatch.setenv("SIE_ENCODING", "utf-8")
        assert get_settings().sie.encoding == "utf-8"


def test_validate_all_settings_reports_missing_sheets(monkeypatch):
    """Test that an unconfigured Sheets backend is reported, not raised."""
    monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
    monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)
    results = validate_all_settings()
    assert results["ledger"] is True
    assert results["sie"] is True
    assert results["google_sheets"] is False
    assert "google_sheets_error" in results
