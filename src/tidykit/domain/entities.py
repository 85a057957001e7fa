from __future__ import annotations

import dataclasses
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from tidykit.domain.exceptions import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_TTL = 6000.0  # seconds
DEFAULT_CHECK_INTERVAL = 600.0  # seconds
DEFAULT_MAX_KEYS = 0  # 0 = unlimited


@dataclass
class CacheEntry:
    """A single value held by an ExpiringCache."""

    key: str
    value: Any
    expires_at: float  # absolute clock reading; 0 means never expires

    def is_expired(self, now: float) -> bool:
        """Return True when the entry has a non-zero expiry at or before now."""
        return self.expires_at != 0 and self.expires_at <= now


@dataclass(frozen=True)
class CacheOptions:
    """Tunables for an ExpiringCache. All durations are in seconds."""

    default_ttl: float = DEFAULT_TTL  # 0 = entries never expire
    check_interval: float = DEFAULT_CHECK_INTERVAL
    max_keys: int = DEFAULT_MAX_KEYS  # 0 = unlimited

    def __post_init__(self) -> None:
        for name in ("default_ttl", "check_interval"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValidationError(f"{name} must be a number, got {value!r}")
            if value < 0:
                raise ValidationError(f"{name} must not be negative, got {value!r}")
        if self.check_interval == 0:
            raise ValidationError("check_interval must be greater than zero")
        if isinstance(self.max_keys, bool) or not isinstance(self.max_keys, int):
            raise ValidationError(f"max_keys must be an integer, got {self.max_keys!r}")
        if self.max_keys < 0:
            raise ValidationError(f"max_keys must not be negative, got {self.max_keys!r}")

    @classmethod
    def overlay(cls, overrides: Mapping[str, Any] | None = None) -> CacheOptions:
        """Shallow-merge recognised fields from overrides onto the defaults.

        Unknown keys are logged and ignored.
        """
        if overrides is None:
            return cls()
        if not isinstance(overrides, Mapping):
            raise ValidationError(f"cache options must be a mapping, got {type(overrides).__name__}")
        known = {f.name for f in dataclasses.fields(cls)}
        recognised: dict[str, Any] = {}
        for name, value in overrides.items():
            if name in known:
                recognised[name] = value
            else:
                logger.warning("Ignoring unknown cache option %r", name)
        return cls(**recognised)
