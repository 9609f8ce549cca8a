"""
Application settings with Pydantic validation.
Supports .env file and environment variable overrides.

Paths point at the default input files the CLI reads when no path is given
on the command line:
    - ASSUMPTIONS_PATH  versioned assumption set (YAML/JSON)
    - ROSTER_PATH       sales roster and hiring plan (YAML/JSON)
    - ACCOUNTS_PATH     account snapshot (YAML/JSON/CSV)
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from tam import defaults


class Settings(BaseSettings):
    """Global application settings loaded from environment / .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Inputs ---
    assumptions_path: Path | None = Field(
        default=None,
        description="Assumption set file; documented defaults are used when unset",
    )
    roster_path: Path | None = Field(
        default=None,
        description="Roster file; an empty roster (all accounts reactive) when unset",
    )
    accounts_path: Path | None = Field(default=None, description="Account snapshot file")

    # --- Planning ---
    horizon_start_year: int = Field(
        default=defaults.DEFAULT_HORIZON_START_YEAR, ge=2000, le=2100,
        description="First fiscal year of the 12-quarter horizon, when the assumption file omits it",
    )
    default_target_coverage_count: int | None = Field(
        default=None, ge=0,
        description="Coverage count override applied to every run (None = use the assumption set)",
    )

    # --- Application ---
    log_level: str = Field(default="INFO", description="Logging level")


# Singleton instance
settings = Settings()
