"""
Azure Storage Cache - Entry Options

Expiration configuration supplied with every write. The options are persisted
next to the payload as a JSON snapshot so that refresh() can recompute the
expiration without caller input.
"""

from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CacheEntryOptions(BaseModel):
    """
    Expiration settings for a cache entry.

    Precedence when computing the stored absolute expiration:
    ``absolute_expiration_relative_to_now`` wins over ``absolute_expiration``.
    ``sliding_expiration`` is persisted with the entry but is not enforced on
    its own; only a relative expiration renewed through refresh() behaves like
    a sliding window.
    """

    absolute_expiration: datetime | None = Field(
        default=None,
        description="Fixed point in time after which the entry expires (naive values are UTC)",
    )
    absolute_expiration_relative_to_now: timedelta | None = Field(
        default=None,
        description="Expiration relative to the time of each write",
    )
    sliding_expiration: timedelta | None = Field(
        default=None,
        description="Inactivity window (persisted, not enforced)",
    )

    model_config = ConfigDict(frozen=True)

    @field_validator("absolute_expiration")
    @classmethod
    def normalize_absolute_expiration(cls, v: datetime | None) -> datetime | None:
        """Store absolute expirations as aware UTC timestamps."""
        if v is None:
            return None
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @field_validator("absolute_expiration_relative_to_now", "sliding_expiration")
    @classmethod
    def validate_positive(cls, v: timedelta | None) -> timedelta | None:
        """Durations must be positive."""
        if v is not None and v <= timedelta(0):
            raise ValueError("expiration durations must be positive")
        return v

    @classmethod
    def from_ttl(cls, ttl_seconds: float | None) -> "CacheEntryOptions":
        """Build options that expire ``ttl_seconds`` after each write (None or 0 = never)."""
        if not ttl_seconds:
            return cls()
        return cls(absolute_expiration_relative_to_now=timedelta(seconds=ttl_seconds))

    @property
    def has_expiration(self) -> bool:
        return self.absolute_expiration is not None or self.absolute_expiration_relative_to_now is not None

    def to_json(self) -> str:
        """Serialize to the snapshot stored alongside the entry."""
        return self.model_dump_json(exclude_none=True)

    @classmethod
    def from_json(cls, snapshot: str) -> "CacheEntryOptions":
        """Parse a stored snapshot."""
        return cls.model_validate_json(snapshot)
