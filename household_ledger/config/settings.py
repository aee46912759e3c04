"""
Configuration Management for Household Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The anchor balance, the default month template and the storage location
are all read once and validated at startup.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from household_ledger.keys import DEFAULT_KEY_PREFIX


class LedgerSettings(BaseSettings):
    """Ledger engine configuration."""
    
    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )
    
    anchor_balance: Decimal = Field(
        default=Decimal("1579"),
        description="Starting balance of the first month of every year"
    )
    storage_key_prefix: str = Field(
        default=DEFAULT_KEY_PREFIX,
        min_length=1,
        description="Namespace for month storage keys"
    )
    
    # Template for months that have never been opened
    default_expense_labels: str = Field(
        default="Housing,Food,Transportation",
        description="Comma-separated expense rows for a new month"
    )
    default_income_labels: str = Field(
        default="Salary,Bonus,Other",
        description="Comma-separated income rows for a new month"
    )
    
    # Labels for rows added by the user
    new_expense_label: str = Field(
        default="New category",
        description="Label given to a newly added expense row"
    )
    new_income_label: str = Field(
        default="New income",
        description="Label given to a newly added income row"
    )
    
    autosave_on_edit: bool = Field(
        default=True,
        description="Persist the current month after every row edit"
    )
    
    @field_validator('anchor_balance')
    @classmethod
    def validate_anchor_balance(cls, v: Decimal) -> Decimal:
        """The anchor must be a real number, not NaN or infinity."""
        if not v.is_finite():
            raise ValueError("Anchor balance must be a finite number")
        return v
    
    @property
    def default_expense_labels_list(self) -> list[str]:
        """Get default expense labels as a list."""
        return [label.strip() for label in self.default_expense_labels.split(",") if label.strip()]
    
    @property
    def default_income_labels_list(self) -> list[str]:
        """Get default income labels as a list."""
        return [label.strip() for label in self.default_income_labels.split(",") if label.strip()]


class StorageSettings(BaseSettings):
    """Month and audit storage configuration."""
    
    model_config = SettingsConfigDict(
        env_prefix="LEDGER_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )
    
    backend: Literal["json_file", "memory"] = Field(
        default="json_file",
        description="Where month records are kept"
    )
    data_dir: Path = Field(
        default=Path("budget_data"),
        description="Directory holding one JSON document per month"
    )
    audit_log_path: Optional[Path] = Field(
        default=None,
        description="JSON-lines file for audit events (local logging only if unset)"
    )
    
    # Retry policy for file writes
    write_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per write before giving up"
    )
    write_retry_min_wait: float = Field(
        default=0.5,
        ge=0.0,
        description="Minimum seconds between write attempts"
    )
    write_retry_max_wait: float = Field(
        default=4.0,
        ge=0.0,
        description="Maximum seconds between write attempts"
    )


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
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()
    
    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()


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
    "<name>_error" entry for each group that failed to load.
    """
    results = {}
    
    settings = get_settings()
    
    for name in ("ledger", "storage"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)
    
    return results
