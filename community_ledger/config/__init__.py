"""Configuration package."""

from community_ledger.config.settings import (
    LedgerSettings,
    SecuritySettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "LedgerSettings",
    "SecuritySettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
