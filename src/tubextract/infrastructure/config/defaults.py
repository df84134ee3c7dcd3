"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_BASE_URL = "https://www.youtube.com"
DEFAULT_HTTP_TIMEOUT_SECONDS = 30.0
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)
DEFAULT_ACCEPT_LANGUAGE = "en"

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "tubextract",
    "environment": "dev",
    "http": {
        "base_url": DEFAULT_BASE_URL,
        "timeout_seconds": DEFAULT_HTTP_TIMEOUT_SECONDS,
        "user_agent": DEFAULT_USER_AGENT,
        "accept_language": DEFAULT_ACCEPT_LANGUAGE,
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "extraction": {
        "field_table_path": None,  # None = packaged table
    },
}
