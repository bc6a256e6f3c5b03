# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Application configuration via environment variables and .env files."""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(v: object) -> list[str]:
    if isinstance(v, str):
        return [item.strip() for item in v.split(",") if item.strip()]
    return v if isinstance(v, list) else []


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="IPSENTRY_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
    )

    # Database
    db_path: Path = Path("ipsentry.db")
    auto_migrate: bool = True

    # API server
    api_host: str = "127.0.0.1"
    api_port: int = 8000
    api_keys: list[str] = []
    cors_origins: list[str] = ["http://localhost:3000"]

    @field_validator("api_keys", "cors_origins", mode="before")
    @classmethod
    def _parse_csv_lists(cls, v: object) -> list[str]:
        return _split_csv(v)

    # Security event sink
    event_log_dir: Path | None = None

    # Threat detection
    local_timezone: str = ""  # IANA name; empty = host local time
    suspicious_ips: list[str] = ["192.168.1.100", "10.0.0.50"]
    max_tracked_subjects: int = 10_000

    @field_validator("suspicious_ips", mode="before")
    @classmethod
    def _parse_suspicious_ips(cls, v: object) -> list[str]:
        return _split_csv(v)

    # Audit trail and metrics
    audit_trail_cap: int = 1000
    metrics_cap: int = 1000
    audit_retention_days: int = 90

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"

    # Notification channels
    notification_channels: list[str] = []
    webhook_url: str = ""
    webhook_secret: str = ""
    slack_webhook_url: str = ""
    notify_min_level: str = "high_risk"

    @field_validator("notification_channels", mode="before")
    @classmethod
    def _parse_notification_channels(cls, v: object) -> list[str]:
        return _split_csv(v)


def get_settings() -> Settings:
    return Settings()
