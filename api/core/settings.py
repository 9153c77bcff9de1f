"""
Environment-backed settings.

Values are read at call time so tests (and long-running workers) see
the current environment.
"""

from __future__ import annotations

import os

from .errors import ConfigurationError

DEFAULT_FETCH_LIMIT = 25
DEFAULT_TIMEOUT_S = 30.0


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _required(name: str) -> str:
    value = os.environ.get(name, "").strip()
    if not value:
        raise ConfigurationError(f"{name} is not set.")
    return value


def catalog_api_url() -> str:
    return _required("CAT_API_URL").rstrip("/")


def catalog_api_key() -> str:
    return _required("CAT_API_KEY")


def fetch_limit() -> int:
    value = _env_int("CAT_API_FETCH_LIMIT", DEFAULT_FETCH_LIMIT)
    if value <= 0:
        return DEFAULT_FETCH_LIMIT
    return value


def request_timeout_s() -> float:
    raw = os.environ.get("CAT_API_TIMEOUT_S", "").strip()
    if not raw:
        return DEFAULT_TIMEOUT_S
    try:
        value = float(raw)
    except ValueError:
        return DEFAULT_TIMEOUT_S
    return value if value > 0 else DEFAULT_TIMEOUT_S
