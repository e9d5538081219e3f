"""Configuration package."""

from ledger_core.config.settings import (
    GoogleSheetsSettings,
    LedgerSettings,
    SIESettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "GoogleSheetsSettings",
    "LedgerSettings",
    "SIESettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
