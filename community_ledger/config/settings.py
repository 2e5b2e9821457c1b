"""
Configuration Management for Community Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Labels, defaults and storage keys live in one place so the ledger
functions never hardcode them, and so a different association can
reuse the same core with its own values.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from community_ledger.models.records import PaymentMethod


class StorageSettings(BaseSettings):
    """Blob store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_STORAGE_",
        extra="ignore"
    )

    backend: Literal["json", "memory"] = Field(
        default="json",
        description="Blob store backend"
    )
    data_dir: Path = Field(
        default=Path("data"),
        description="Directory holding one JSON file per collection key"
    )

    # Keys of the blob store, one per collection
    members_key: str = Field(default="ampm_members")
    payments_key: str = Field(default="ampm_payments")
    expenses_key: str = Field(default="ampm_expenses")
    users_key: str = Field(default="ampm_users")

    audit_key: str = Field(
        default="ampm_audit",
        description="Key of the append-only audit log"
    )
    audit_enabled: bool = Field(
        default=True,
        description="Persist audit events next to the collections"
    )

    @field_validator("members_key", "payments_key", "expenses_key", "users_key", "audit_key")
    @classmethod
    def validate_key(cls, v: str) -> str:
        """Keys double as file names, so path separators are rejected."""
        if not v or "/" in v or "\\" in v:
            raise ValueError(f"Invalid storage key: {v!r}")
        return v


class LedgerSettings(BaseSettings):
    """
    Defaults and display labels used by the ledger functions.

    The label values match what the association's records already
    contain, so changing them only affects newly derived views.
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Dues defaults for an empty matrix cell
    default_dues_amount: float = Field(
        default=30.0,
        ge=0.0,
        description="Amount proposed when opening an empty dues cell"
    )
    default_payment_method: PaymentMethod = Field(
        default=PaymentMethod.PIX,
        description="Payment method proposed for new payments and expenses"
    )

    # Fallback labels for derived views
    system_operator_label: str = Field(default="Sistema")
    unknown_member_label: str = Field(default="Associado")
    unknown_method_label: str = Field(default="Não Inf.")
    dues_category_label: str = Field(default="Mensalidade")
    dues_description_prefix: str = Field(default="Mensalidade")

    # Rollups
    top_operators_limit: int = Field(default=5, ge=1)
    recent_activity_limit: int = Field(default=8, ge=1)
    latest_members_limit: int = Field(default=4, ge=1)
    birthday_window_days: int = Field(default=7, ge=0, le=366)

    # Display formats of the stored strings
    timestamp_format: str = Field(
        default="%d/%m/%Y %H:%M:%S",
        description="Format of updatedAt / createdAt stamps"
    )
    join_date_format: str = Field(
        default="%d/%m/%Y",
        description="Format of Member.joinDate"
    )

    # New member form defaults
    default_neighborhood: str = Field(default="Praia do Meio")
    default_zip_code: str = Field(default="59010-000")


class SecuritySettings(BaseSettings):
    """Credential hashing and bootstrap account configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_SECURITY_",
        extra="ignore"
    )

    bcrypt_rounds: int = Field(
        default=12,
        ge=4,
        le=31,
        description="bcrypt work factor"
    )
    min_password_length: int = Field(default=6, ge=1)

    bootstrap_admin_username: str = Field(default="admin")
    bootstrap_admin_password: str = Field(default="123456")
    bootstrap_admin_name: str = Field(default="Administrador Geral")


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

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def security(self) -> SecuritySettings:
        return SecuritySettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with an extra
    "<name>_error" entry for each section that failed.
    """
    results = {}

    settings = get_settings()

    for name in ("storage", "ledger", "security"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
