"""Environment-driven application configuration."""

from __future__ import annotations

from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from clubevents.constants import (
    DEFAULT_AUTH_ROLE_HEADER,
    DEFAULT_AUTH_USER_HEADER,
    DEFAULT_CALENDAR_TIMEZONE,
    DEFAULT_NOTIFICATION_TIMEOUT_SECONDS,
    DEFAULT_SWEEP_INTERVAL_SECONDS,
)
from clubevents.db.enums import MissingContactPolicy


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field(alias="DATABASE_URL")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")
    app_host: str = Field(default="0.0.0.0", alias="APP_HOST")
    app_port: int = Field(default=8080, alias="APP_PORT")

    smtp_host: str | None = Field(default=None, alias="SMTP_HOST")
    smtp_port: int = Field(default=587, alias="SMTP_PORT")
    smtp_username: str | None = Field(default=None, alias="SMTP_USERNAME")
    smtp_password: str | None = Field(default=None, alias="SMTP_PASSWORD")
    smtp_starttls: bool = Field(default=True, alias="SMTP_STARTTLS")
    mail_from: str | None = Field(default=None, alias="MAIL_FROM")

    notification_timeout_seconds: float = Field(
        default=DEFAULT_NOTIFICATION_TIMEOUT_SECONDS,
        alias="NOTIFICATION_TIMEOUT_SECONDS",
    )
    sweep_interval_seconds: int = Field(default=DEFAULT_SWEEP_INTERVAL_SECONDS, alias="SWEEP_INTERVAL_SECONDS")
    missing_contact_policy: MissingContactPolicy = Field(
        default=MissingContactPolicy.REJECT,
        alias="MISSING_CONTACT_POLICY",
    )

    calendar_uid_domain: str = Field(default="clubevents.local", alias="CALENDAR_UID_DOMAIN")
    calendar_timezone: str = Field(default=DEFAULT_CALENDAR_TIMEZONE, alias="CALENDAR_TIMEZONE")
    default_organizer_name: str = Field(default="VereinsApp", alias="DEFAULT_ORGANIZER_NAME")

    auth_user_header: str = Field(default=DEFAULT_AUTH_USER_HEADER, alias="AUTH_USER_HEADER")
    auth_role_header: str = Field(default=DEFAULT_AUTH_ROLE_HEADER, alias="AUTH_ROLE_HEADER")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("missing_contact_policy", mode="before")
    @classmethod
    def parse_missing_contact_policy(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("notification_timeout_seconds")
    @classmethod
    def validate_notification_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("NOTIFICATION_TIMEOUT_SECONDS must be positive")
        return value

    @field_validator("sweep_interval_seconds")
    @classmethod
    def validate_sweep_interval(cls, value: int) -> int:
        if value < 0:
            raise ValueError("SWEEP_INTERVAL_SECONDS must be 0 (disabled) or a positive number of seconds")
        return value

    @field_validator("calendar_timezone")
    @classmethod
    def validate_calendar_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"CALENDAR_TIMEZONE is not a known time zone: {value}") from exc
        return value

    @model_validator(mode="after")
    def validate_mail_from(self) -> "Settings":
        """Validate that MAIL_FROM is provided when SMTP delivery is enabled."""
        if self.smtp_host and not self.mail_from:
            raise ValueError("MAIL_FROM is required when SMTP_HOST is set")
        return self

    @property
    def email_enabled(self) -> bool:
        return bool(self.smtp_host)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
