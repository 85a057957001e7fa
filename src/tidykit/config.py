"""Environment-driven configuration and logging setup.

Values are read from the environment at call time so that a host process
(or a test) can change them before building caches or services.
"""
from __future__ import annotations

import logging
import os

from tidykit.domain.entities import (
    DEFAULT_CHECK_INTERVAL,
    DEFAULT_MAX_KEYS,
    DEFAULT_TTL,
    CacheOptions,
)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

DEFAULT_HTTP_TIMEOUT = 15.0  # seconds


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


def cache_settings() -> dict[str, float | int]:
    """Return cache option overrides taken from TIDYKIT_* environment variables."""
    return {
        "default_ttl": _env_float("TIDYKIT_DEFAULT_TTL", DEFAULT_TTL),
        "check_interval": _env_float("TIDYKIT_CHECK_INTERVAL", DEFAULT_CHECK_INTERVAL),
        "max_keys": _env_int("TIDYKIT_MAX_KEYS", DEFAULT_MAX_KEYS),
    }


def cache_options_from_env() -> CacheOptions:
    """Build cache options from the TIDYKIT_* environment variables."""
    return CacheOptions.overlay(cache_settings())


def http_timeout() -> float:
    return _env_float("TIDYKIT_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT)


def configure_logging(level: str | None = None) -> None:
    """Configure root logging the same way for every entry point.

    The level comes from the argument, then LOG_LEVEL, then INFO.
    """
    name = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(level=getattr(logging, name, logging.INFO), format=LOG_FORMAT)
