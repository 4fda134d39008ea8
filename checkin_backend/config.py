"""
Configuration and settings for the check-in backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")

    # Storage selection: Postgres, then SQLite, then JSON files.
    database_url: Optional[str] = Field(default=None)
    use_sqlite: bool = Field(default=False)
    sqlite_path: str = Field(default="data/checkins.db")
    data_dir: str = Field(default="data")

    # Development toggles
    use_in_memory_store: bool = Field(default=False)

    # Admin shared secret
    admin_username: str = Field(default="professor")
    admin_key: Optional[str] = Field(default=None)

    # Reports and notifications
    report_title: str = Field(default="Relatório Semanal")
    report_webhook_url: Optional[str] = Field(default=None)
    smtp_host: Optional[str] = Field(default=None)
    smtp_port: int = Field(default=587)
    smtp_username: Optional[str] = Field(default=None)
    smtp_password: Optional[str] = Field(default=None)
    smtp_use_tls: bool = Field(default=True)
    smtp_sender: Optional[str] = Field(default=None)
    report_email_to: Optional[str] = Field(default=None)
    whatsapp_token: Optional[str] = Field(default=None)
    whatsapp_phone_number_id: Optional[str] = Field(default=None)
    whatsapp_api_version: str = Field(default="v19.0")
    whatsapp_to: Optional[str] = Field(default=None)
    notification_timeout: float = Field(default=10.0)

    # CORS
    cors_origins: list[str] = Field(default_factory=list)
    cors_origin_regex: Optional[str] = Field(default=r"^https?://localhost(:\d+)?$")

    max_photo_size: int = Field(default=512, ge=32, le=2048)
    log_level: str = Field(default="INFO")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
