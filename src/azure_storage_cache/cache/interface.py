"""
Azure Storage Cache - Cache Interface

Defines the abstract interface that all cache backends must implement, plus
the operations whose behaviour is identical on every backend (get, refresh,
string helpers) written once on top of the backend primitives.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable
from typing import Any, TypeVar

from ..errors import CacheNotFoundError, InvalidArgumentError, OutOfRangeError
from .entry import CacheEntry
from .expiration import ExpirationSupport
from .options import CacheEntryOptions

logger = logging.getLogger(__name__)

T = TypeVar("T")


def validate_key(key: Any) -> str:
    """Reject missing, non-string and whitespace-only keys."""
    if not isinstance(key, str) or not key.strip():
        raise InvalidArgumentError("key", "Cache key cannot be empty or only whitespace")
    return key


def validate_value(value: Any) -> bytes:
    """Accept bytes-like payloads only."""
    if value is None:
        raise InvalidArgumentError("value", "Cache value is required")
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise InvalidArgumentError(
            "value",
            f"Cache value must be bytes, got {type(value).__name__}; use set_string() for text",
        )
    return bytes(value)


async def complete_mutation(operation: Awaitable[T]) -> T:
    """
    Await a storage mutation so that cancelling the caller cannot interrupt it.

    The caller still receives CancelledError, but the upsert or delete already
    in flight runs to completion instead of being abandoned halfway.
    """
    task = asyncio.ensure_future(operation)
    try:
        return await asyncio.shield(task)
    except asyncio.CancelledError:
        task.add_done_callback(_log_detached_failure)
        raise


def _log_detached_failure(task: "asyncio.Future[Any]") -> None:
    """Retrieve and log the outcome of a mutation whose caller was cancelled."""
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.warning(
            f"Storage mutation failed after its caller was cancelled: {error}",
            extra={"error": str(error), "error_type": type(error).__name__},
        )


class CacheInterface(ABC):
    """
    Abstract base class for cache backends.

    All operations are coroutines. Backends implement the primitives
    (get_entry, set, remove); get, exists and refresh are derived from them so
    the expiration protocol reads the same on every backend. Use
    BlockingCache for synchronous callers.
    """

    backend_name: str = "unknown"

    @property
    @abstractmethod
    def expiration_support(self) -> ExpirationSupport:
        """Whether this backend persists and enforces expiration."""

    @abstractmethod
    async def initialize(self) -> None:
        """
        Provision the backing table or container if needed.

        Idempotent; operations call it implicitly on first use.
        """

    @abstractmethod
    async def get_entry(self, key: str) -> CacheEntry:
        """
        Load the live entry for a key.

        Expired entries are deleted as a side effect.

        Args:
            key: Cache key

        Returns:
            The stored entry with its backend metadata

        Raises:
            CacheNotFoundError: If the key is missing or its entry has expired
        """

    @abstractmethod
    async def set(
        self,
        key: str,
        value: bytes,
        options: CacheEntryOptions | None,
    ) -> None:
        """
        Store a value, replacing any existing entry for the key.

        Args:
            key: Cache key
            value: Payload bytes
            options: Expiration settings

        Raises:
            InvalidArgumentError: On an empty key, missing value or missing options
            OutOfRangeError: If options carry an absolute expiration that is not in the future
        """

    @abstractmethod
    async def remove(self, key: str) -> None:
        """
        Delete the entry for a key.

        Removing a key that does not exist is not an error.
        """

    @abstractmethod
    async def close(self) -> None:
        """
        Close the backend client and release resources.

        Should be called during graceful shutdown.
        """

    @abstractmethod
    def describe(self) -> dict[str, Any]:
        """Static facts about this cache instance (backend, target, expiration support)."""

    async def get(self, key: str) -> bytes | None:
        """
        Retrieve a payload.

        Returns:
            Payload bytes, or None if the key is missing or expired
        """
        try:
            entry = await self.get_entry(key)
        except CacheNotFoundError:
            return None
        return entry.payload

    async def exists(self, key: str) -> bool:
        """Check if a live entry exists (expired entries are deleted)."""
        try:
            await self.get_entry(key)
        except CacheNotFoundError:
            return False
        return True

    async def refresh(self, key: str) -> None:
        """
        Re-write an entry with its stored options.

        Recomputes the absolute expiration from the current time, which renews
        entries written with a relative expiration. Missing or expired keys are
        a no-op (an expired entry is deleted).
        """
        try:
            entry = await self.get_entry(key)
        except CacheNotFoundError:
            logger.debug("Refresh skipped, no live entry for key '%s'", key, extra={"key": key})
            return

        try:
            await self.set(key, entry.payload, entry.options())
        except OutOfRangeError:
            # Fixed absolute expiration elapsed after the read
            logger.debug("Refresh found key '%s' expired, deleting", key, extra={"key": key})
            await self.remove(key)

    async def get_string(self, key: str, encoding: str = "utf-8") -> str | None:
        """Retrieve a payload decoded as text."""
        value = await self.get(key)
        if value is None:
            return None
        return value.decode(encoding)

    async def set_string(
        self,
        key: str,
        value: str,
        options: CacheEntryOptions | None,
        encoding: str = "utf-8",
    ) -> None:
        """Store text encoded as bytes."""
        if value is None:
            raise InvalidArgumentError("value", "Cache value is required")
        await self.set(key, value.encode(encoding), options)

    async def __aenter__(self) -> "CacheInterface":
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
