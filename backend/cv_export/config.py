"""Application configuration with Pydantic Settings validation."""

from __future__ import annotations

from typing import Optional

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    """All application settings, loaded from environment / .env file."""

    model_config = SettingsConfigDict(
        env_file=("../.env", ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Runtime mode ──────────────────────────────────────
    app_env: str = "production"  # development disables the export secret check

    # ── Export access ─────────────────────────────────────
    campaign_export_secret: SecretStr = SecretStr("")
    default_position: str = "elektriker"
    default_role: str = "elektriker"
    default_bucket: str = "candidate-cvs"

    # ── Database ──────────────────────────────────────────
    database_url: str = "sqlite:///cv_export.db"
    db_create_tables: bool = False

    # ── Object storage (Supabase) ─────────────────────────
    supabase_url: str = ""
    supabase_service_role_key: SecretStr = SecretStr("")

    # ── Server ────────────────────────────────────────────
    host: str = "0.0.0.0"
    port: int = 8000

    # ── Logging ───────────────────────────────────────────
    log_level: str = "INFO"
    log_file: Optional[str] = None

    # ── Validators ────────────────────────────────────────
    @field_validator("db_create_tables", mode="before")
    @classmethod
    def parse_bool(cls, v: object) -> bool:
        if isinstance(v, str):
            return v.strip().lower() in {"1", "true", "yes", "on"}
        return bool(v)

    @field_validator("app_env", "supabase_url", mode="before")
    @classmethod
    def ensure_string(cls, v: object) -> str:
        return str(v).strip()

    @property
    def is_development(self) -> bool:
        return self.app_env.lower() == "development"

    @property
    def export_secret(self) -> Optional[str]:
        """The shared export secret, or None when it is not configured."""
        return self.campaign_export_secret.get_secret_value() or None

    @property
    def storage_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_role_key.get_secret_value())


def get_config() -> AppConfig:
    """Load and return validated application config."""
    return AppConfig()
