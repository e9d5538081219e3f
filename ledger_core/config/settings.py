"""
Configuration Management for Ledger Core

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see which knobs the ledger has and
ensures all required configuration is validated at startup.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """
    Bookkeeping rules.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    default_series: str = Field(
        default="A",
        min_length=1,
        max_length=4,
        description="Verification series for manual and bank bookings"
    )
    receipt_series: str = Field(
        default="B",
        min_length=1,
        max_length=4,
        description="Verification series for receipts"
    )
    strict_accounts: bool = Field(
        default=True,
        description="Reject bookings against accounts missing from the catalog"
    )
    allow_adhoc_accounts: bool = Field(
        default=False,
        description="Accept unknown account codes as ad-hoc catalog extensions"
    )
    default_vat_rate: Decimal = Field(
        default=Decimal("0.25"),
        ge=0,
        le=1,
        description="VAT rate assumed when an invoice carries no VAT amount"
    )
    max_import_size_mb: int = Field(
        default=10,
        ge=1,
        le=200,
        description="Maximum SIE upload size in MB"
    )

    @property
    def max_import_size_bytes(self) -> int:
        """Get max import size in bytes."""
        return self.max_import_size_mb * 1024 * 1024


class SIESettings(BaseSettings):
    """SIE import configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SIE_",
        extra="ignore"
    )

    # SIE 4 mandates IBM PC 8-bit extended ASCII
    encoding: str = Field(
        default="cp437",
        description="Text encoding of SIE files"
    )


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets ledger storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # Sheet names within the spreadsheet
    verifications_sheet_name: str = Field(
        default="Verifikationer",
        description="Name of the sheet for verification rows"
    )
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily to allow partial configuration

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def sie(self) -> SIESettings:
        return SIESettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("ledger", "sie", "google_sheets"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
