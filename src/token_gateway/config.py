"""Centralised configuration via pydantic-settings + .env."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class AppCredentials:
    """Application identity and signing secret shared by every request."""

    app_id: str
    app_certificate: str

    def __repr__(self) -> str:
        return f"AppCredentials(app_id={self.app_id!r}, app_certificate='***')"


class Settings(BaseSettings):
    """All knobs live here.  Loaded from environment / .env in project root."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # ── Agora application ────────────────────────────────
    app_id: str
    app_certificate: str

    # ── Server ───────────────────────────────────────────
    host: str = "0.0.0.0"
    port: int = 18080
    ssl_certfile: str | None = None
    ssl_keyfile: str | None = None
    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"])

    # ── Tokens ───────────────────────────────────────────
    default_expiry_seconds: int = 3600

    # ── Logging / Metrics ───────────────────────────────
    log_level: str = "INFO"
    metrics_enabled: bool = True

    # ── Derived helpers ──────────────────────────────────
    @property
    def credentials(self) -> AppCredentials:
        return AppCredentials(app_id=self.app_id, app_certificate=self.app_certificate)

    @property
    def tls_enabled(self) -> bool:
        return bool(self.ssl_certfile and self.ssl_keyfile)

    @field_validator("app_id", "app_certificate")
    @classmethod
    def _credential_not_empty(cls, v: str, info: ValidationInfo) -> str:
        if not v:
            raise ValueError(
                f"{info.field_name.upper()} is required. "
                "Set it in .env or as an environment variable."
            )
        return v

    @field_validator("default_expiry_seconds")
    @classmethod
    def _expiry_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("DEFAULT_EXPIRY_SECONDS must be positive")
        return v


def get_settings() -> Settings:
    """Singleton-ish factory; import and call where needed."""
    return Settings()
