"""Tests for cache entities and option handling."""
from __future__ import annotations

import logging

import pytest

from tidykit.domain.entities import CacheEntry, CacheOptions
from tidykit.domain.exceptions import ValidationError


def test_entry_with_zero_expiry_never_expires() -> None:
    entry = CacheEntry(key="k", value=1, expires_at=0)
    assert entry.is_expired(10**12) is False


def test_entry_expires_at_boundary() -> None:
    entry = CacheEntry(key="k", value=1, expires_at=100.0)
    assert entry.is_expired(99.9) is False
    assert entry.is_expired(100.0) is True


def test_overlay_none_gives_defaults() -> None:
    assert CacheOptions.overlay(None) == CacheOptions()


def test_overlay_ignores_unknown_keys(caplog) -> None:  # type: ignore[no-untyped-def]
    with caplog.at_level(logging.WARNING):
        options = CacheOptions.overlay({"max_keys": 3, "colour": "blue"})
    assert options == CacheOptions(max_keys=3)
    assert "colour" in caplog.text


def test_overlay_rejects_non_mapping() -> None:
    with pytest.raises(ValidationError):
        CacheOptions.overlay([("max_keys", 3)])  # type: ignore[arg-type]


@pytest.mark.parametrize(
    "overrides",
    [
        {"default_ttl": -1},
        {"default_ttl": "soon"},
        {"check_interval": 0},
        {"max_keys": -2},
        {"max_keys": 1.5},
        {"max_keys": True},
    ],
)
def test_invalid_options(overrides) -> None:  # type: ignore[no-untyped-def]
    with pytest.raises(ValidationError):
        CacheOptions.overlay(overrides)

