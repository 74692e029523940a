"""
Azure Storage Cache - Cache Entry

The persisted cache record and its mapping onto table rows and blob metadata.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from ..errors import InvalidArgumentError, InvariantViolationError
from .expiration import ensure_utc, is_expired
from .options import CacheEntryOptions

# Table row property names
PARTITION_KEY_FIELD = "PartitionKey"
ROW_KEY_FIELD = "RowKey"
DATA_FIELD = "Data"
OPTIONS_FIELD = "Options"
ABSOLUTE_EXPIRATION_FIELD = "AbsoluteExpiration"

# Blob metadata names (lowercase: the service does not preserve case)
OPTIONS_METADATA = "cache_options"
ABSOLUTE_EXPIRATION_METADATA = "absolute_expiration"


@dataclass(frozen=True)
class CacheEntry:
    """
    A single cached value as persisted by a backend.

    ``etag`` and ``last_modified`` are backend metadata carried through for
    callers; writes are unconditional and never check them.
    """

    key: str
    payload: bytes
    options_snapshot: str | None = None
    absolute_expiration: datetime | None = None
    partition: str | None = None
    etag: str | None = None
    last_modified: datetime | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.key, str) or not self.key.strip():
            raise InvalidArgumentError("key", "Cache key cannot be empty or only whitespace")
        if self.payload is None:
            raise InvalidArgumentError("payload", "Cache payload is required")
        if self.absolute_expiration is not None:
            object.__setattr__(self, "absolute_expiration", ensure_utc(self.absolute_expiration))

    def is_expired(self, now: datetime) -> bool:
        return is_expired(self.absolute_expiration, now)

    def options(self) -> CacheEntryOptions:
        """Parse the stored options snapshot (empty options when none was stored)."""
        if self.options_snapshot is None:
            return CacheEntryOptions()
        try:
            return CacheEntryOptions.from_json(self.options_snapshot)
        except ValidationError as e:
            raise InvariantViolationError(
                f"Stored options for key '{self.key}' are corrupt",
                details={"key": self.key, "partition": self.partition, "error": str(e)},
            ) from e

    # ------------ Table rows ------------

    def to_table_entity(self) -> dict[str, Any]:
        """Full row for an unconditional replace; AbsoluteExpiration is omitted when unset."""
        if not self.partition:
            raise InvalidArgumentError("partition", "Table entries require a partition key")
        if self.options_snapshot is None:
            raise InvalidArgumentError("options", "Table entries require an options snapshot")

        entity: dict[str, Any] = {
            PARTITION_KEY_FIELD: self.partition,
            ROW_KEY_FIELD: self.key,
            DATA_FIELD: self.payload,
            OPTIONS_FIELD: self.options_snapshot,
        }
        if self.absolute_expiration is not None:
            entity[ABSOLUTE_EXPIRATION_FIELD] = self.absolute_expiration
        return entity

    @classmethod
    def from_table_entity(cls, entity: Mapping[str, Any]) -> "CacheEntry":
        """Build an entry from a queried row (a TableEntity or plain mapping)."""
        data = entity.get(DATA_FIELD)
        if data is None:
            raise InvariantViolationError(
                "Cache row has no payload",
                details={"partition": entity.get(PARTITION_KEY_FIELD), "key": entity.get(ROW_KEY_FIELD)},
            )
        # Rows written by string-based writers hold text
        if isinstance(data, str):
            data = data.encode("utf-8")

        metadata = getattr(entity, "metadata", None) or {}
        return cls(
            key=entity[ROW_KEY_FIELD],
            payload=bytes(data),
            options_snapshot=entity.get(OPTIONS_FIELD),
            absolute_expiration=entity.get(ABSOLUTE_EXPIRATION_FIELD),
            partition=entity.get(PARTITION_KEY_FIELD),
            etag=metadata.get("etag"),
            last_modified=metadata.get("timestamp"),
        )

    # ------------ Blobs ------------

    def to_blob_metadata(self) -> dict[str, str]:
        if self.options_snapshot is None:
            return {}
        metadata = {OPTIONS_METADATA: self.options_snapshot}
        if self.absolute_expiration is not None:
            metadata[ABSOLUTE_EXPIRATION_METADATA] = self.absolute_expiration.isoformat()
        return metadata

    @classmethod
    def from_blob(
        cls,
        key: str,
        data: bytes,
        metadata: Mapping[str, str] | None = None,
        etag: str | None = None,
        last_modified: datetime | None = None,
    ) -> "CacheEntry":
        """Build an entry from a downloaded blob; metadata is ignored when None."""
        options_snapshot = None
        absolute_expiration = None
        if metadata:
            options_snapshot = metadata.get(OPTIONS_METADATA)
            raw_expiration = metadata.get(ABSOLUTE_EXPIRATION_METADATA)
            if raw_expiration:
                try:
                    absolute_expiration = datetime.fromisoformat(raw_expiration)
                except ValueError as e:
                    raise InvariantViolationError(
                        f"Stored expiration for key '{key}' is corrupt",
                        details={"key": key, "value": raw_expiration},
                    ) from e

        return cls(
            key=key,
            payload=bytes(data),
            options_snapshot=options_snapshot,
            absolute_expiration=absolute_expiration,
            etag=etag,
            last_modified=last_modified,
        )
