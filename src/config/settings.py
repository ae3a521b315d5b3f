# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for all deployment-specific settings.
Environment variables use the TRANSNORM_ prefix (e.g. TRANSNORM_CACHE_ROOT).
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_prefix="TRANSNORM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Cache ===
    cache_enabled: bool = True
    cache_backend: Literal["json", "sqlite"] = "json"
    cache_root: Path = Path("~/.transnorm/cache")

    # === Output mirror ===
    output_dir: Path | None = None
    mirror_output: bool = False
    format_version: str = "1.0"

    # === Classification ===
    csv_min_columns: int = 2

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("csv_min_columns")
    @classmethod
    def validate_csv_min_columns(cls, v: int) -> int:  # noqa: N805
        if v < 1:
            raise ValueError("csv_min_columns must be >= 1")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.mirror_output and self.output_dir is None:
            errors.append("MIRROR_OUTPUT requires OUTPUT_DIR")

        if self.log_retention < 0:
            errors.append("LOG_RETENTION must be >= 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-call config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
