"""
Azure Storage Cache - Expiration Policy

Pure functions shared by every backend: computing the absolute expiration of a
write and deciding whether a loaded entry has expired. Expiration is lazy;
entries are only checked (and deleted) when they are read or refreshed.
"""

from datetime import datetime, timezone
from enum import Enum

from ..errors import OutOfRangeError
from .options import CacheEntryOptions


class ExpirationSupport(str, Enum):
    """How much of the expiration protocol a backend enforces."""

    FULL = "full"  # expiration persisted and enforced on read/refresh
    NONE = "none"  # payload only; expiration is the caller's concern


def utcnow() -> datetime:
    """Current time as an aware UTC timestamp."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Interpret naive timestamps as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def compute_absolute_expiration(options: CacheEntryOptions, now: datetime) -> datetime | None:
    """
    Compute the absolute expiration to persist for a write happening at ``now``.

    Args:
        options: Expiration settings supplied with the write
        now: Write-time clock

    Returns:
        Absolute expiration, or None when the entry never expires

    Raises:
        OutOfRangeError: If ``options.absolute_expiration`` is not strictly after ``now``
    """
    now = ensure_utc(now)

    if options.absolute_expiration_relative_to_now is not None:
        return now + options.absolute_expiration_relative_to_now

    if options.absolute_expiration is not None:
        absolute_expiration = ensure_utc(options.absolute_expiration)
        if absolute_expiration <= now:
            raise OutOfRangeError(
                "absolute_expiration",
                absolute_expiration,
                "The absolute expiration value must be in the future.",
            )
        return absolute_expiration

    return None


def is_expired(absolute_expiration: datetime | None, now: datetime) -> bool:
    """An entry is expired iff it has an absolute expiration at or before ``now``."""
    if absolute_expiration is None:
        return False
    return ensure_utc(absolute_expiration) <= ensure_utc(now)
