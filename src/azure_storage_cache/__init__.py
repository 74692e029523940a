"""
Azure Storage Cache

Distributed key-value cache stored in Azure Table Storage or Azure Blob
Storage, with absolute and relative expiration, lazy expiry on read and
refresh-based renewal.
"""

__version__ = "1.0.0"

from .cache import (
    BlockingCache,
    CacheEntry,
    CacheEntryOptions,
    CacheInterface,
    ExpirationSupport,
    close_all_caches,
    create_cache,
    get_cache,
)
from .errors import (
    CacheNotFoundError,
    ConfigurationError,
    InvalidArgumentError,
    InvariantViolationError,
    OutOfRangeError,
    StorageCacheError,
)

__all__ = [
    "BlockingCache",
    "CacheEntry",
    "CacheEntryOptions",
    "CacheInterface",
    "ExpirationSupport",
    "close_all_caches",
    "create_cache",
    "get_cache",
    "CacheNotFoundError",
    "ConfigurationError",
    "InvalidArgumentError",
    "InvariantViolationError",
    "OutOfRangeError",
    "StorageCacheError",
]
