from __future__ import annotations


class TidyKitError(Exception):
    """Base exception for all tidykit errors."""


class ValidationError(TidyKitError):
    """Raised when an argument has the wrong shape or type."""


class CacheDestroyedError(TidyKitError):
    """Raised when an ExpiringCache is used after destroy()."""


class ApiError(TidyKitError):
    """Raised when an upstream HTTP endpoint returns a non-2xx status."""

    def __init__(self, status_code: int, message: str = "") -> None:
        self.status_code = status_code
        super().__init__(message or f"Upstream API error ({status_code})")


class LookupFailedError(TidyKitError):
    """Raised when a lookup was rejected with values that are not an exception."""

    def __init__(self, key: str, values: tuple) -> None:  # type: ignore[type-arg]
        self.key = key
        self.values = values
        super().__init__(f"Lookup failed for {key!r}: {values!r}")


class LookupCancelledError(TidyKitError):
    """Raised when an in-flight lookup is cancelled by closing its service."""
