"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files

DEFAULT_SOURCE_URL = "https://nafdac.gov.ng/category/recalls-and-alerts/"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(compatible; RegAlertBot/1.0)"
)


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


@dataclass(frozen=True)
class ScraperSettings:
    """
    HTTP behaviour of the upstream alert source.
    """

    source_url: str = DEFAULT_SOURCE_URL
    user_agent: str = DEFAULT_USER_AGENT
    timeout_seconds: float = 10.0
    max_retries: int = 2
    backoff_initial_seconds: float = 0.5
    backoff_multiplier: float = 2.0
    rate_limit_per_second: float = 0.5


@dataclass(frozen=True)
class TriggerSettings:
    """
    Scrape trigger authentication and per-trigger alert limits.
    """

    cron_secret: str | None = None
    secret_header: str = "X-Cron-Secret"
    cron_limit: int = 5
    manual_limit: int = 10


@dataclass(frozen=True)
class ScheduleSettings:
    """
    In-process scheduler settings (UTC).
    """

    enabled: bool = True
    hour: int = 9
    minute: int = 0


@lru_cache(maxsize=1)
def get_scraper_settings() -> ScraperSettings:
    """
    Return cached alert source settings from environment variables.
    """

    return ScraperSettings(
        source_url=_get_str_env("SCRAPER_SOURCE_URL", DEFAULT_SOURCE_URL),
        user_agent=_get_str_env("SCRAPER_USER_AGENT", DEFAULT_USER_AGENT),
        timeout_seconds=max(1.0, _get_float_env("SCRAPER_TIMEOUT_SECONDS", 10.0)),
        max_retries=max(0, _get_int_env("SCRAPER_MAX_RETRIES", 2)),
        backoff_initial_seconds=max(0.1, _get_float_env("SCRAPER_BACKOFF_INITIAL_SECONDS", 0.5)),
        backoff_multiplier=max(1.0, _get_float_env("SCRAPER_BACKOFF_MULTIPLIER", 2.0)),
        rate_limit_per_second=max(0.1, _get_float_env("SCRAPER_RATE_LIMIT_PER_SECOND", 0.5)),
    )


@lru_cache(maxsize=1)
def get_trigger_settings() -> TriggerSettings:
    """
    Return cached trigger settings from environment variables.
    """

    return TriggerSettings(
        cron_secret=_get_optional_str_env("SCRAPER_CRON_SECRET"),
        secret_header=_get_str_env("SCRAPER_CRON_SECRET_HEADER", "X-Cron-Secret"),
        cron_limit=max(1, _get_int_env("SCRAPER_CRON_LIMIT", 5)),
        manual_limit=max(1, _get_int_env("SCRAPER_MANUAL_LIMIT", 10)),
    )


@lru_cache(maxsize=1)
def get_schedule_settings() -> ScheduleSettings:
    """
    Return cached scheduler settings from environment variables.
    """

    return ScheduleSettings(
        enabled=_get_bool_env("SCRAPER_SCHEDULE_ENABLED", True),
        hour=min(23, max(0, _get_int_env("SCRAPER_SCHEDULE_HOUR", 9))),
        minute=min(59, max(0, _get_int_env("SCRAPER_SCHEDULE_MINUTE", 0))),
    )
