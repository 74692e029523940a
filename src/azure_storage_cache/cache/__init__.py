"""
Azure Storage Cache - Cache Module

Distributed key-value cache backed by Azure Table Storage or Azure Blob Storage.

Layout:
- factory.py: creation and registry of named cache instances
- interface.py: abstract cache interface all backends implement
- options.py / expiration.py / entry.py: expiration settings, policy and the persisted record
- backends/: table and blob implementations
- blocking.py: synchronous wrapper

Usage:
    from azure_storage_cache.cache import CacheEntryOptions, create_cache

    cache = create_cache()
    await cache.set("key", b"value", CacheEntryOptions.from_ttl(3600))
    value = await cache.get("key")
"""

from .blocking import BlockingCache
from .entry import CacheEntry
from .expiration import ExpirationSupport, compute_absolute_expiration, is_expired
from .factory import (
    close_all_caches,
    create_cache,
    get_cache,
    list_cache_instances,
    register_cache,
    reset_cache_factory,
)
from .interface import CacheInterface
from .options import CacheEntryOptions

__all__ = [
    # Factory functions
    "create_cache",
    "get_cache",
    "register_cache",
    "close_all_caches",
    "list_cache_instances",
    "reset_cache_factory",
    # Interface and wrappers
    "CacheInterface",
    "BlockingCache",
    # Entry model and expiration policy
    "CacheEntry",
    "CacheEntryOptions",
    "ExpirationSupport",
    "compute_absolute_expiration",
    "is_expired",
]
