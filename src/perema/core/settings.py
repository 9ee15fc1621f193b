"""Application settings.

All values can be overridden via environment variables prefixed with
``PEREMA_`` or through a ``.env`` file in the working directory.

Order of precedence (highest → lowest):
    1. Keyword arguments (tests, ``create_app(settings=...)``)
    2. Environment variables (``PEREMA_DATABASE_URL``, ...)
    3. ``.env`` file
    4. Defaults below

A handful of variable names from earlier deployments are still honoured
(``SQLITE_DB_PATH``, ``SENDGRID_API_KEY``, ``SENDGRID_TO_EMAIL``,
``SENDGRID_BIRTHDAY_TEMPLATE_ID``) so existing ``.env`` files keep working.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PeremaSettings(BaseSettings):
    """Settings for the API server, scheduler and mail delivery."""

    model_config = SettingsConfigDict(
        env_prefix="PEREMA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # ── Server ───────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8080, description="Bind port")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Log level")
    log_json: bool | None = Field(
        default=None, description="Force JSON (true) or console (false) logs; auto when unset"
    )

    # ── API ──────────────────────────────────────────────────────────────
    api_prefix: str = Field(default="/api/v1", description="URL prefix for all endpoints")
    api_title: str = Field(default="perema API", description="OpenAPI title")
    api_version: str = Field(default="0.3.0", description="OpenAPI version string")
    cors_origins: list[str] = Field(default=["*"], description="Allowed CORS origins")

    # ── Database ─────────────────────────────────────────────────────────
    database_url: str = Field(
        default="sqlite:///perema.db",
        description="SQLAlchemy connection URL",
    )
    sqlite_db_path: str | None = Field(
        default=None,
        validation_alias=AliasChoices("PEREMA_SQLITE_DB_PATH", "SQLITE_DB_PATH"),
        description="Path to a SQLite file; overrides database_url when set",
    )

    # ── Files ────────────────────────────────────────────────────────────
    static_dir: Path = Field(default=Path("static"), description="Frontend build directory")
    photo_dir: Path = Field(default=Path("photos"), description="Uploaded contact photos")
    max_photo_size_mb: int = Field(default=10, ge=1, le=50, description="Photo upload limit")

    # ── Scheduler ────────────────────────────────────────────────────────
    scheduler_enabled: bool = Field(default=True, description="Run background jobs in the API process")
    scheduler_timezone: str = Field(default="UTC", description="Timezone for cron triggers")
    birthday_job_time: str = Field(default="08:00", description="Daily birthday job time (HH:MM)")
    reminder_poll_minutes: int = Field(default=15, ge=1, description="Due-reminder check interval")

    # ── Mail ─────────────────────────────────────────────────────────────
    mail_backend: str = Field(default="console", description="sendgrid | smtp | console")
    mail_to: str = Field(
        default="",
        validation_alias=AliasChoices("PEREMA_MAIL_TO", "SENDGRID_TO_EMAIL"),
        description="Recipient of notification mails",
    )
    mail_from: str = Field(default="perema@localhost", description="Sender address")
    sendgrid_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("PEREMA_SENDGRID_API_KEY", "SENDGRID_API_KEY"),
    )
    sendgrid_birthday_template_id: str = Field(
        default="",
        validation_alias=AliasChoices(
            "PEREMA_SENDGRID_BIRTHDAY_TEMPLATE_ID", "SENDGRID_BIRTHDAY_TEMPLATE_ID"
        ),
    )
    sendgrid_reminder_template_id: str = Field(default="")
    smtp_host: str = Field(default="localhost")
    smtp_port: int = Field(default=587)
    smtp_user: str | None = Field(default=None)
    smtp_password: str | None = Field(default=None)
    smtp_use_tls: bool = Field(default=True)

    @field_validator("mail_backend")
    @classmethod
    def _known_backend(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in {"sendgrid", "smtp", "console"}:
            raise ValueError(f"mail_backend must be sendgrid, smtp or console, got {v!r}")
        return v

    @field_validator("birthday_job_time")
    @classmethod
    def _valid_time(cls, v: str) -> str:
        hour, _, minute = v.partition(":")
        if not (hour.isdigit() and minute.isdigit() and int(hour) < 24 and int(minute) < 60):
            raise ValueError(f"birthday_job_time must be HH:MM, got {v!r}")
        return v

    @field_validator("scheduler_timezone")
    @classmethod
    def _known_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"scheduler_timezone must be an IANA zone name, got {v!r}") from None
        return v

    @property
    def effective_database_url(self) -> str:
        """``database_url``, unless a bare SQLite path was configured."""
        if self.sqlite_db_path:
            return f"sqlite:///{self.sqlite_db_path}"
        return self.database_url

    @property
    def birthday_job_hour_minute(self) -> tuple[int, int]:
        hour, _, minute = self.birthday_job_time.partition(":")
        return int(hour), int(minute)

    @property
    def max_photo_size_bytes(self) -> int:
        return self.max_photo_size_mb * 1024 * 1024


@lru_cache(maxsize=1)
def get_settings() -> PeremaSettings:
    """Cached settings — loaded once per process.

    Call ``get_settings.cache_clear()`` to reload.
    """
    return PeremaSettings()
