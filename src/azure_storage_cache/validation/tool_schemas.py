"""
Azure Storage Cache - Tool Input Validation Schemas

Pydantic models for validating all MCP tool inputs.
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


def _key_not_blank(v: str) -> str:
    if not v.strip():
        raise ValueError("Key cannot be empty or only whitespace")
    return v


class CheckStatusInput(BaseModel):
    """Input validation for check_status tool (no parameters)."""

    pass


class CacheGetInput(BaseModel):
    """Input validation for cache_get tool."""

    key: str = Field(..., min_length=1, max_length=1024, description="Cache key to retrieve")

    @field_validator("key")
    @classmethod
    def validate_key_not_empty(cls, v: str) -> str:
        """Ensure key is not just whitespace."""
        return _key_not_blank(v)


class CacheSetInput(BaseModel):
    """Input validation for cache_set tool."""

    key: str = Field(..., min_length=1, max_length=1024, description="Cache key")
    value: str = Field(..., description="Text value to store (UTF-8 encoded)")
    ttl_seconds: int | None = Field(
        default=None,
        ge=1,
        description="Expire this many seconds after each write (renewed by cache_refresh)",
    )
    absolute_expiration: datetime | None = Field(
        default=None,
        description="Fixed expiration time (ISO 8601, UTC if no offset); ignored when ttl_seconds is set",
    )
    sliding_seconds: int | None = Field(
        default=None,
        ge=1,
        description="Sliding window in seconds (stored, not enforced)",
    )

    @field_validator("key")
    @classmethod
    def validate_key_not_empty(cls, v: str) -> str:
        """Ensure key is not just whitespace."""
        return _key_not_blank(v)


class CacheRefreshInput(BaseModel):
    """Input validation for cache_refresh tool."""

    key: str = Field(..., min_length=1, max_length=1024, description="Cache key to refresh")

    @field_validator("key")
    @classmethod
    def validate_key_not_empty(cls, v: str) -> str:
        """Ensure key is not just whitespace."""
        return _key_not_blank(v)


class CacheRemoveInput(BaseModel):
    """Input validation for cache_remove tool."""

    key: str = Field(..., min_length=1, max_length=1024, description="Cache key to remove")

    @field_validator("key")
    @classmethod
    def validate_key_not_empty(cls, v: str) -> str:
        """Ensure key is not just whitespace."""
        return _key_not_blank(v)
