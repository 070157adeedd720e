"""Runtime settings loaded from environment variables."""

import os
import logging
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY_PRIORITY = "USD"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


def _list_env(name: str) -> List[str]:
    raw = os.getenv(name, "")
    return [item.strip() for item in raw.split(",") if item.strip()]


def parse_program_tokens(raw: str) -> Dict[str, str]:
    """Parse ``NAME:prg-token;OTHER:prg-token`` into a program registry.

    Raises:
        ValueError: If a segment has no program token.
    """
    programs: Dict[str, str] = {}
    for segment in raw.split(";"):
        segment = segment.strip()
        if not segment:
            continue
        name, sep, token = segment.partition(":")
        if not sep or not name.strip() or not token.strip():
            raise ValueError(f"Invalid program entry {segment!r}, expected NAME:TOKEN")
        programs[name.strip()] = token.strip()
    return programs


class SmtpSettings(BaseModel):
    host: str
    port: int = 25
    sender: str = "payouts-sync@localhost"
    username: Optional[str] = None
    password: Optional[str] = None
    use_tls: bool = True
    recipients: List[str] = Field(default_factory=list)


class Settings(BaseModel):
    """All knobs the jobs read at startup."""
    connector: str = Field(default="mirakl", description="mirakl or simulator")
    simulator_fixture_path: Optional[str] = None

    mirakl_base_url: str = "http://localhost:8080"
    mirakl_api_key: Optional[str] = None

    hyperwallet_base_url: str = "https://api.sandbox.hyperwallet.com"
    hyperwallet_username: Optional[str] = None
    hyperwallet_password: Optional[str] = None
    hyperwallet_programs: Dict[str, str] = Field(default_factory=dict)

    request_timeout_seconds: float = 30.0
    search_by_id_max_days: int = 180
    default_lookback_minutes: int = 60

    retry_attempts: int = 3
    retry_delay_seconds: float = 5.0

    currency_priority: str = DEFAULT_CURRENCY_PRIORITY

    smtp: Optional[SmtpSettings] = None

    api_key: Optional[str] = None
    job_rate_limit: str = "30/minute"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from ``PAYOUTS_SYNC_*`` and related variables.

        Raises:
            ValueError: If a numeric or structured variable is malformed.
        """
        smtp = None
        smtp_host = os.getenv("ALERT_SMTP_HOST")
        if smtp_host:
            smtp = SmtpSettings(
                host=smtp_host,
                port=_int_env("ALERT_SMTP_PORT", 25),
                sender=os.getenv("ALERT_EMAIL_FROM", "payouts-sync@localhost"),
                username=os.getenv("ALERT_SMTP_USERNAME"),
                password=os.getenv("ALERT_SMTP_PASSWORD"),
                use_tls=os.getenv("ALERT_SMTP_USE_TLS", "true").lower() == "true",
                recipients=_list_env("ALERT_EMAIL_TO"),
            )

        settings = cls(
            connector=os.getenv("PAYOUTS_SYNC_CONNECTOR", "mirakl").lower(),
            simulator_fixture_path=os.getenv("PAYOUTS_SYNC_SIMULATOR_FIXTURES") or None,
            mirakl_base_url=os.getenv("MIRAKL_BASE_URL", "http://localhost:8080"),
            mirakl_api_key=os.getenv("MIRAKL_API_KEY"),
            hyperwallet_base_url=os.getenv("HYPERWALLET_BASE_URL", "https://api.sandbox.hyperwallet.com"),
            hyperwallet_username=os.getenv("HYPERWALLET_USERNAME"),
            hyperwallet_password=os.getenv("HYPERWALLET_PASSWORD"),
            hyperwallet_programs=parse_program_tokens(os.getenv("HYPERWALLET_PROGRAMS", "")),
            request_timeout_seconds=_float_env("PAYOUTS_SYNC_REQUEST_TIMEOUT", 30.0),
            search_by_id_max_days=_int_env("INVOICES_SEARCH_BY_ID_MAX_DAYS", 180),
            default_lookback_minutes=_int_env("PAYOUTS_SYNC_DEFAULT_LOOKBACK_MINUTES", 60),
            retry_attempts=_int_env("HYPERWALLET_RETRY_ATTEMPTS", 3),
            retry_delay_seconds=_float_env("HYPERWALLET_RETRY_DELAY_SECONDS", 5.0),
            currency_priority=os.getenv("HYPERWALLET_CURRENCY_PRIORITY", DEFAULT_CURRENCY_PRIORITY),
            smtp=smtp,
            api_key=os.getenv("PAYOUTS_SYNC_API_KEY"),
            job_rate_limit=os.getenv("PAYOUTS_SYNC_RATE_LIMIT", "30/minute"),
        )
        if settings.retry_attempts < 1:
            raise ValueError("HYPERWALLET_RETRY_ATTEMPTS must be at least 1")
        logger.debug(f"Loaded settings for connector {settings.connector}")
        return settings


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Process-wide settings, read from the environment on first use."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings
