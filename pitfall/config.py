"""
Pitfall Configuration — pydantic-settings based.

All settings are read from PITFALL_* environment variables or a .env file.
List values are given as JSON, e.g. PITFALL_DISABLED_RULES='["raw-call-without-gas"]'.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

VERSION = "1.0.0"


class Settings(BaseSettings):
    """Application-wide settings sourced from environment variables."""

    # ── Rules ──
    disabled_rules: list[str] = Field(
        default_factory=list, description="Rule ids to skip entirely"
    )
    event_prefixes: list[str] = Field(
        default=["Log"], description="Prefixes that mark an identifier as an event name"
    )

    # ── Suppression ──
    suppression_file: str | None = Field(
        default=None, description="Path to a suppression list, one '<rule> <location>' per line"
    )
    suppressions: list[str] = Field(
        default_factory=list, description="Inline suppression entries, same syntax as the file"
    )

    # ── Execution ──
    unit_budget_seconds: float | None = Field(
        default=None, description="Wall-clock budget per unit; overruns fail the unit"
    )
    batch_workers: int = Field(
        default=1, ge=1, description="Units analyzed in parallel within a batch"
    )
    rule_workers: int = Field(
        default=1, ge=1, description="Rules evaluated in parallel within a unit"
    )

    # ── Output ──
    output_format: str = Field(default="text", pattern="^(text|json)$")

    # ── Server ──
    port: int = Field(default=5001, description="Server port")
    host: str = Field(default="0.0.0.0", description="Server bind host")
    max_units_per_request: int = Field(
        default=200, description="Units accepted by a single /scan request"
    )

    # ── Audit ──
    audit_log_path: str = Field(
        default="audit.jsonl", description="Path to JSON-lines audit log file"
    )

    model_config = SettingsConfigDict(
        env_prefix="PITFALL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


# Singleton instance, imported by other modules
settings = Settings()
