"""
Azure Storage Cache - Table Storage Backend

Cache entries stored as rows of an Azure Storage table:
- All entries of one cache instance share a single partition
- Each row holds the payload, the options snapshot and the absolute expiration
- Writes are unconditional replace-upserts (last writer wins, etags ignored)
- Expired rows are deleted lazily when read or refreshed

Requires: azure-data-tables with an async transport (aiohttp)

Example:
    cache = TableCacheBackend(connection_string=conn, partition_key="web", table_name="cache")
    await cache.set("greeting", b"hello", CacheEntryOptions.from_ttl(60))
    val = await cache.get("greeting")
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from datetime import datetime
from typing import Any

from azure.core.exceptions import ResourceExistsError, ResourceNotFoundError
from azure.data.tables import UpdateMode
from azure.data.tables.aio import TableClient

from ...errors import CacheNotFoundError, InvalidArgumentError, InvariantViolationError
from ..entry import CacheEntry
from ..expiration import ExpirationSupport, compute_absolute_expiration, utcnow
from ..interface import CacheInterface, complete_mutation, validate_key, validate_value
from ..options import CacheEntryOptions

logger = logging.getLogger(__name__)

# Characters Azure Tables rejects in PartitionKey and RowKey values
_DISALLOWED_KEY_CHARS = re.compile(r"[/\\#?\x00-\x1f\x7f-\x9f]")

_ENTRY_FILTER = "PartitionKey eq @partition and RowKey eq @key"


def _validate_table_key(argument: str, value: Any) -> str:
    if argument == "key":
        validate_key(value)
    elif not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError(argument, f"{argument} cannot be empty or only whitespace")
    if _DISALLOWED_KEY_CHARS.search(value):
        raise InvalidArgumentError(
            argument,
            f"{argument} may not contain '/', '\\', '#', '?' or control characters",
            details={"value": value},
        )
    return value


class TableCacheBackend(CacheInterface):
    """
    Azure Table Storage cache backend with full expiration support.

    Notes:
    - Identity is (partition_key, key); more than one row for an identity is
      reported as InvariantViolationError and never repaired.
    - Storage client failures propagate unchanged; nothing is retried here.
    - The client is built once per instance and shared by concurrent callers
      without locking.
    """

    backend_name = "table"

    def __init__(
        self,
        connection_string: str | None = None,
        partition_key: str = "cache",
        table_name: str = "cache",
        *,
        table_client: TableClient | None = None,
        create_if_missing: bool = True,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """
        Initialize table cache backend.

        Args:
            connection_string: Storage account connection string
            partition_key: Partition shared by every entry of this cache
            table_name: Table holding the cache rows
            table_client: Pre-built async TableClient (replaces connection_string)
            create_if_missing: Create the table on first use
            clock: Source of the current UTC time
        """
        self.partition_key = _validate_table_key("partition_key", partition_key)
        if not table_name or not table_name.strip():
            raise InvalidArgumentError("table_name", "table_name cannot be empty or only whitespace")
        self.table_name = table_name
        self.create_if_missing = create_if_missing
        self._clock = clock

        if table_client is None:
            if not connection_string or not connection_string.strip():
                raise InvalidArgumentError("connection_string", "connection_string is required")
            table_client = TableClient.from_connection_string(connection_string, table_name=table_name)

        self._client = table_client
        self._provisioned = not create_if_missing

    @property
    def expiration_support(self) -> ExpirationSupport:
        return ExpirationSupport.FULL

    def describe(self) -> dict[str, Any]:
        return {
            "backend": self.backend_name,
            "table_name": self.table_name,
            "partition_key": self.partition_key,
            "expiration_support": self.expiration_support.value,
        }

    # ------------ Helpers ------------

    async def initialize(self) -> None:
        """Create the table if it does not exist yet."""
        if self._provisioned:
            return

        try:
            await self._client.create_table()
            logger.info(f"Created cache table '{self.table_name}'", extra={"table": self.table_name})
        except ResourceExistsError:
            logger.debug(f"Cache table '{self.table_name}' already exists", extra={"table": self.table_name})

        self._provisioned = True

    async def _query_rows(self, key: str) -> list[Any]:
        """Return at most two rows matching (partition, key)."""
        rows: list[Any] = []
        pages = self._client.query_entities(
            _ENTRY_FILTER,
            parameters={"partition": self.partition_key, "key": key},
        )
        async for entity in pages:
            rows.append(entity)
            if len(rows) > 1:
                break
        return rows

    async def _delete(self, key: str) -> None:
        try:
            await complete_mutation(self._client.delete_entity(partition_key=self.partition_key, row_key=key))
        except ResourceNotFoundError:
            logger.debug(
                f"Delete of missing key '{key}' ignored",
                extra={"key": key, "partition": self.partition_key},
            )

    # ------------ Core Interface ------------

    async def get_entry(self, key: str) -> CacheEntry:
        """Load the unique live row for a key."""
        _validate_table_key("key", key)
        await self.initialize()

        rows = await self._query_rows(key)
        if not rows:
            raise CacheNotFoundError(key, {"partition": self.partition_key})
        if len(rows) > 1:
            logger.error(
                f"Multiple cache rows found for key '{key}'",
                extra={"key": key, "partition": self.partition_key, "table": self.table_name},
            )
            raise InvariantViolationError(
                f"More than one cache row for key '{key}'",
                details={"key": key, "partition": self.partition_key, "table": self.table_name},
            )

        entry = CacheEntry.from_table_entity(rows[0])
        if entry.is_expired(self._clock()):
            logger.debug(
                f"Cache entry '{key}' expired, deleting",
                extra={"key": key, "partition": self.partition_key, "expired_at": str(entry.absolute_expiration)},
            )
            await self._delete(key)
            raise CacheNotFoundError(key, {"partition": self.partition_key, "expired": True})

        return entry

    async def set(
        self,
        key: str,
        value: bytes,
        options: CacheEntryOptions | None,
    ) -> None:
        """Upsert the full row, recomputing the absolute expiration from now."""
        _validate_table_key("key", key)
        payload = validate_value(value)
        if options is None:
            raise InvalidArgumentError("options", "Cache entry options are required")

        absolute_expiration = compute_absolute_expiration(options, self._clock())
        entry = CacheEntry(
            key=key,
            payload=payload,
            options_snapshot=options.to_json(),
            absolute_expiration=absolute_expiration,
            partition=self.partition_key,
        )

        await self.initialize()
        await complete_mutation(self._client.upsert_entity(entry.to_table_entity(), mode=UpdateMode.REPLACE))
        logger.debug(
            f"Stored cache entry '{key}'",
            extra={"key": key, "partition": self.partition_key, "expires_at": str(absolute_expiration)},
        )

    async def remove(self, key: str) -> None:
        """Delete the row for a key (missing rows are ignored)."""
        _validate_table_key("key", key)
        await self.initialize()
        await self._delete(key)

    async def close(self) -> None:
        """Close the table client and release resources."""
        await self._client.close()
        logger.info(
            f"Closed table cache backend for table '{self.table_name}'",
            extra={"table": self.table_name, "partition": self.partition_key},
        )
