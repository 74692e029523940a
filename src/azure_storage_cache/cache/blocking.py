"""
Azure Storage Cache - Blocking Wrapper

Synchronous access to any CacheInterface. Each call runs the async operation to
completion on the calling thread using an event loop owned by the wrapper, so
the backend's async clients stay bound to that single loop.

Each call ties up the calling thread for a full storage round trip; callers
needing throughput should use the async interface directly.

Example:
    with BlockingCache(TableCacheBackend(conn, "web", "cache")) as cache:
        cache.set("greeting", b"hello", CacheEntryOptions.from_ttl(60))
        cache.get("greeting")
"""

import asyncio
import logging
import threading
from collections.abc import Coroutine
from typing import Any, TypeVar

from .entry import CacheEntry
from .interface import CacheInterface
from .options import CacheEntryOptions

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BlockingCache:
    """
    Blocking facade over an async cache backend.

    Calls are serialized per wrapper (one event loop cannot run two calls at
    once). Must not be used from inside a running event loop.
    """

    def __init__(self, cache: CacheInterface) -> None:
        self.cache = cache
        self._loop = asyncio.new_event_loop()
        self._lock = threading.Lock()

    def _run(self, operation: Coroutine[Any, Any, T]) -> T:
        if self._loop.is_closed():
            operation.close()
            raise RuntimeError("BlockingCache is closed")
        with self._lock:
            return self._loop.run_until_complete(operation)

    def initialize(self) -> None:
        self._run(self.cache.initialize())

    def get(self, key: str) -> bytes | None:
        return self._run(self.cache.get(key))

    def get_entry(self, key: str) -> CacheEntry:
        return self._run(self.cache.get_entry(key))

    def get_string(self, key: str, encoding: str = "utf-8") -> str | None:
        return self._run(self.cache.get_string(key, encoding))

    def exists(self, key: str) -> bool:
        return self._run(self.cache.exists(key))

    def set(self, key: str, value: bytes, options: CacheEntryOptions | None) -> None:
        self._run(self.cache.set(key, value, options))

    def set_string(self, key: str, value: str, options: CacheEntryOptions | None, encoding: str = "utf-8") -> None:
        self._run(self.cache.set_string(key, value, options, encoding))

    def refresh(self, key: str) -> None:
        self._run(self.cache.refresh(key))

    def remove(self, key: str) -> None:
        self._run(self.cache.remove(key))

    def close(self) -> None:
        """Close the backend, then the private event loop."""
        if self._loop.is_closed():
            return
        try:
            self._run(self.cache.close())
        finally:
            with self._lock:
                self._loop.close()
            logger.debug("Blocking cache wrapper closed", extra={"backend": self.cache.backend_name})

    def __enter__(self) -> "BlockingCache":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
