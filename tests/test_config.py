"""Tests for environment-driven configuration."""
from __future__ import annotations

import logging
from unittest.mock import patch

from tidykit import config
from tidykit.domain.entities import CacheOptions


def test_cache_settings_defaults(monkeypatch) -> None:  # type: ignore[no-untyped-def]
    for name in ("TIDYKIT_DEFAULT_TTL", "TIDYKIT_CHECK_INTERVAL", "TIDYKIT_MAX_KEYS"):
        monkeypatch.delenv(name, raising=False)
    assert config.cache_settings() == {
        "default_ttl": 6000.0,
        "check_interval": 600.0,
        "max_keys": 0,
    }


def test_unparseable_values_fall_back(monkeypatch) -> None:  # type: ignore[no-untyped-def]
    monkeypatch.setenv("TIDYKIT_MAX_KEYS", "many")
    monkeypatch.setenv("TIDYKIT_HTTP_TIMEOUT", "slow")
    assert config.cache_settings()["max_keys"] == 0
    assert config.http_timeout() == 15.0


def test_http_timeout_override(monkeypatch) -> None:  # type: ignore[no-untyped-def]
    monkeypatch.setenv("TIDYKIT_HTTP_TIMEOUT", " 2.5 ")
    assert config.http_timeout() == 2.5


def test_configure_logging_uses_log_level(monkeypatch) -> None:  # type: ignore[no-untyped-def]
    monkeypatch.setenv("LOG_LEVEL", "debug")
    with patch.object(config.logging, "basicConfig") as basic_config:
        config.configure_logging()
    basic_config.assert_called_once_with(level=logging.DEBUG, format=config.LOG_FORMAT)


def test_configure_logging_unknown_level_is_info() -> None:
    with patch.object(config.logging, "basicConfig") as basic_config:
        config.configure_logging("chatty")
    basic_config.assert_called_once_with(level=logging.INFO, format=config.LOG_FORMAT)


def test_cache_options_from_env(monkeypatch) -> None:  # type: ignore[no-untyped-def]
    monkeypatch.setenv("TIDYKIT_DEFAULT_TTL", "30")
    monkeypatch.setenv("TIDYKIT_MAX_KEYS", "7")
    monkeypatch.delenv("TIDYKIT_CHECK_INTERVAL", raising=False)

    options = config.cache_options_from_env()

    assert options == CacheOptions(default_ttl=30.0, check_interval=600.0, max_keys=7)
