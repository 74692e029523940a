"""
Azure Storage Cache - Blob Storage Backend

Cache entries stored as blobs named by their key.

Two forms:
- Minimal (default): the blob holds the raw payload only. Expiration is not
  persisted or enforced; options are still validated on write.
- Expiration metadata: the options snapshot and absolute expiration are stored
  as blob metadata and enforced on read/refresh like the table backend.

Requires: azure-storage-blob with the aio extra

Example:
    cache = BlobCacheBackend(connection_string=conn, container_name="cache")
    await cache.set("report", b"...")
    val = await cache.get("report")
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from azure.core.exceptions import ResourceExistsError, ResourceNotFoundError
from azure.storage.blob.aio import ContainerClient

from ...errors import CacheNotFoundError, InvalidArgumentError
from ..entry import CacheEntry
from ..expiration import ExpirationSupport, compute_absolute_expiration, utcnow
from ..interface import CacheInterface, complete_mutation, validate_key, validate_value
from ..options import CacheEntryOptions

logger = logging.getLogger(__name__)


class BlobCacheBackend(CacheInterface):
    """
    Azure Blob Storage cache backend.

    Notes:
    - Identity is the blob name, equal to the cache key.
    - Uploads always overwrite; deletes of missing blobs are ignored.
    - Storage client failures propagate unchanged; nothing is retried here.
    """

    backend_name = "blob"

    def __init__(
        self,
        connection_string: str | None = None,
        container_name: str = "cache",
        *,
        container_client: ContainerClient | None = None,
        store_expiration_metadata: bool = False,
        create_if_missing: bool = True,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """
        Initialize blob cache backend.

        Args:
            connection_string: Storage account connection string
            container_name: Container holding the cache blobs
            container_client: Pre-built async ContainerClient (replaces connection_string)
            store_expiration_metadata: Persist and enforce expiration via blob metadata
            create_if_missing: Create the container on first use
            clock: Source of the current UTC time
        """
        if not container_name or not container_name.strip():
            raise InvalidArgumentError("container_name", "container_name cannot be empty or only whitespace")
        self.container_name = container_name
        self.store_expiration_metadata = store_expiration_metadata
        self.create_if_missing = create_if_missing
        self._clock = clock

        if container_client is None:
            if not connection_string or not connection_string.strip():
                raise InvalidArgumentError("connection_string", "connection_string is required")
            container_client = ContainerClient.from_connection_string(connection_string, container_name)

        self._client = container_client
        self._provisioned = not create_if_missing

    @property
    def expiration_support(self) -> ExpirationSupport:
        if self.store_expiration_metadata:
            return ExpirationSupport.FULL
        return ExpirationSupport.NONE

    def describe(self) -> dict[str, Any]:
        return {
            "backend": self.backend_name,
            "container_name": self.container_name,
            "expiration_support": self.expiration_support.value,
        }

    # ------------ Helpers ------------

    async def initialize(self) -> None:
        """Create the container if it does not exist yet."""
        if self._provisioned:
            return

        try:
            await self._client.create_container()
            logger.info(f"Created cache container '{self.container_name}'", extra={"container": self.container_name})
        except ResourceExistsError:
            logger.debug(
                f"Cache container '{self.container_name}' already exists",
                extra={"container": self.container_name},
            )

        self._provisioned = True

    async def _delete(self, key: str) -> None:
        try:
            await complete_mutation(self._client.delete_blob(key))
        except ResourceNotFoundError:
            logger.debug(
                f"Delete of missing blob '{key}' ignored",
                extra={"key": key, "container": self.container_name},
            )

    # ------------ Core Interface ------------

    async def get_entry(self, key: str) -> CacheEntry:
        """Download the blob for a key."""
        validate_key(key)
        await self.initialize()

        try:
            downloader = await self._client.download_blob(key)
            data = await downloader.readall()
        except ResourceNotFoundError as e:
            raise CacheNotFoundError(key, {"container": self.container_name}) from e

        properties = downloader.properties
        entry = CacheEntry.from_blob(
            key,
            data,
            metadata=properties.metadata if self.store_expiration_metadata else None,
            etag=properties.etag,
            last_modified=properties.last_modified,
        )

        if entry.is_expired(self._clock()):
            logger.debug(
                f"Cache blob '{key}' expired, deleting",
                extra={"key": key, "container": self.container_name, "expired_at": str(entry.absolute_expiration)},
            )
            await self._delete(key)
            raise CacheNotFoundError(key, {"container": self.container_name, "expired": True})

        return entry

    async def set(
        self,
        key: str,
        value: bytes,
        options: CacheEntryOptions | None = None,
    ) -> None:
        """Upload the payload, overwriting any existing blob."""
        validate_key(key)
        payload = validate_value(value)
        now = self._clock()

        metadata: dict[str, str] | None = None
        if self.store_expiration_metadata:
            options = options or CacheEntryOptions()
            entry = CacheEntry(
                key=key,
                payload=payload,
                options_snapshot=options.to_json(),
                absolute_expiration=compute_absolute_expiration(options, now),
            )
            metadata = entry.to_blob_metadata()
        elif options is not None:
            # Not persisted, but a past absolute expiration is still rejected
            compute_absolute_expiration(options, now)

        await self.initialize()
        await complete_mutation(self._client.upload_blob(key, payload, overwrite=True, metadata=metadata))
        logger.debug(
            f"Uploaded cache blob '{key}'",
            extra={"key": key, "container": self.container_name, "size": len(payload)},
        )

    async def remove(self, key: str) -> None:
        """Delete the blob for a key (missing blobs are ignored)."""
        validate_key(key)
        await self.initialize()
        await self._delete(key)

    async def close(self) -> None:
        """Close the container client and release resources."""
        await self._client.close()
        logger.info(
            f"Closed blob cache backend for container '{self.container_name}'",
            extra={"container": self.container_name},
        )
