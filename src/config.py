"""Centralized configuration for the accountability tracker.

This module reads environment variables (optionally from a .env file) and
exposes simple constants and a small helper to access configuration values.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import quote_plus, urlencode

from dotenv import load_dotenv

# If a .env file is present, load it.
_env_path = Path(".") / ".env"
if _env_path.exists():
    load_dotenv(dotenv_path=str(_env_path))

_TRUTHY = {"1", "true", "t", "yes", "y", "on"}


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUTHY


def _env_choice(name: str, choices: set[str], default: str) -> str:
    """Return a lowercase env value restricted to ``choices``.

    Unknown values fall back to ``default`` instead of failing at import time.
    """

    value = os.getenv(name)
    if value is None:
        return default

    cleaned = value.strip().lower()
    return cleaned if cleaned in choices else default


# Runtime / deployment context
APP_ENV: str = os.getenv("APP_ENV", os.getenv("ENVIRONMENT", "local"))


# Database configuration
DATABASE_ENGINE: str = os.getenv("DATABASE_ENGINE", "postgresql+psycopg2")
DATABASE_HOST: Optional[str] = os.getenv("DATABASE_HOST")
DATABASE_PORT: Optional[str] = os.getenv("DATABASE_PORT", "5432")
DATABASE_NAME: Optional[str] = os.getenv("DATABASE_NAME")
DATABASE_USER: Optional[str] = os.getenv("DATABASE_USER")
DATABASE_PASSWORD: Optional[str] = os.getenv("DATABASE_PASSWORD")
DATABASE_SSLMODE: Optional[str] = os.getenv("DATABASE_SSLMODE")
DATABASE_REQUIRE_SSL: bool = _env_bool("DATABASE_REQUIRE_SSL", False)

_database_url = os.getenv("DATABASE_URL")

if not _database_url and all([DATABASE_HOST, DATABASE_NAME, DATABASE_USER]):
    user = quote_plus(DATABASE_USER or "")
    auth_segment = user
    if DATABASE_PASSWORD:
        auth_segment += f":{quote_plus(DATABASE_PASSWORD)}"
    auth_segment = f"{auth_segment}@" if auth_segment else ""
    port_segment = f":{DATABASE_PORT}" if DATABASE_PORT else ""

    sslmode = DATABASE_SSLMODE or ("require" if DATABASE_REQUIRE_SSL else None)
    query = f"?{urlencode({'sslmode': sslmode})}" if sslmode else ""

    _database_url = (
        f"{DATABASE_ENGINE}://{auth_segment}{DATABASE_HOST}{port_segment}/"
        f"{DATABASE_NAME}{query}"
    )

DATABASE_URL: str = _database_url or "sqlite:///data/accountability.db"


# Logging
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT_JSON: bool = _env_bool("LOG_FORMAT_JSON", False)


# Domain intelligence
DOMAIN_MATCH_STRATEGY: str = _env_choice(
    "DOMAIN_MATCH_STRATEGY", {"substring", "hostname"}, "substring"
)
DOMAIN_LIST_PAGE_SIZE: int = int(os.getenv("DOMAIN_LIST_PAGE_SIZE", "50"))


def get_config() -> Dict[str, Any]:
    """Return a dict of the most important configuration values.

    Useful for logging at startup or asserting on in tests.
    """
    effective_sslmode = DATABASE_SSLMODE or (
        "require" if DATABASE_REQUIRE_SSL else None
    )

    return {
        "runtime": {
            "environment": APP_ENV,
        },
        "database_url": DATABASE_URL,
        "log_level": LOG_LEVEL,
        "log_format_json": LOG_FORMAT_JSON,
        "database": {
            "engine": DATABASE_ENGINE,
            "host": DATABASE_HOST,
            "port": DATABASE_PORT,
            "name": DATABASE_NAME,
            "user": DATABASE_USER,
            "sslmode": effective_sslmode,
        },
        "domain_intelligence": {
            "match_strategy": DOMAIN_MATCH_STRATEGY,
            "list_page_size": DOMAIN_LIST_PAGE_SIZE,
        },
    }
