"""
Azure Storage Cache - Configuration Schemas

Defines typed configuration models using Pydantic for validation and type safety.
All configuration must be defined here and validated at startup.
"""

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Azure Table names: alphanumeric, 3-63 characters, starting with a letter
_TABLE_NAME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9]{2,62}$")

# Azure Blob container names: lowercase letters, digits and single hyphens, 3-63 characters
_CONTAINER_NAME_RE = re.compile(r"^(?=.{3,63}$)[a-z0-9]+(-[a-z0-9]+)*$")


class Environment(str, Enum):
    """Runtime environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


class CacheBackend(str, Enum):
    """Supported cache backends."""

    TABLE = "table"
    BLOB = "blob"


class LogLevel(str, Enum):
    """Log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class CacheConfig(BaseModel):
    """Cache configuration."""

    backend: CacheBackend = Field(default=CacheBackend.TABLE, description="Cache backend to use")
    connection_string: str | None = Field(default=None, description="Azure Storage account connection string")
    create_if_missing: bool = Field(
        default=True,
        description="Create the table or container on first use if it does not exist",
    )

    # Table-specific settings (only used when backend=table)
    table_name: str = Field(default="cache", description="Table holding cache rows")
    partition_key: str = Field(default="cache", min_length=1, description="Partition shared by all entries")

    # Blob-specific settings (only used when backend=blob)
    container_name: str = Field(default="cache", description="Container holding cache blobs")
    store_expiration_metadata: bool = Field(
        default=False,
        description="Persist options and expiration as blob metadata and enforce them on read",
    )

    @field_validator("connection_string")
    @classmethod
    def validate_connection_string(cls, v: str | None) -> str | None:
        """Ensure a non-blank connection string is provided."""
        if v is None or not v.strip():
            raise ValueError("connection_string is required for the storage cache")
        return v.strip()

    @field_validator("table_name")
    @classmethod
    def validate_table_name(cls, v: str) -> str:
        """Enforce Azure Table naming rules."""
        if not _TABLE_NAME_RE.match(v):
            raise ValueError("table_name must be 3-63 alphanumeric characters starting with a letter")
        return v

    @field_validator("partition_key")
    @classmethod
    def validate_partition_key(cls, v: str) -> str:
        """Ensure partition key is not just whitespace."""
        if not v.strip():
            raise ValueError("partition_key cannot be empty or only whitespace")
        return v

    @field_validator("container_name")
    @classmethod
    def validate_container_name(cls, v: str) -> str:
        """Enforce Azure Blob container naming rules."""
        if not _CONTAINER_NAME_RE.match(v):
            raise ValueError(
                "container_name must be 3-63 lowercase letters, digits or single hyphens, "
                "starting and ending with a letter or digit"
            )
        return v

    # Defaults are validated too, so a connection string must always be supplied
    model_config = ConfigDict(validate_default=True)


class StorageCacheConfig(BaseModel):
    """Root configuration for the storage cache."""

    environment: Environment = Field(default=Environment.DEVELOPMENT, description="Runtime environment")
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")

    cache: CacheConfig

    model_config = ConfigDict(use_enum_values=True, validate_assignment=True)
