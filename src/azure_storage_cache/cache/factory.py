"""
Azure Storage Cache - Cache Factory

Canonical factory for creating cache instances based on configuration.
Application code obtains its distributed cache here instead of constructing
backends directly.

Key points:
- Backend selected with CACHE_BACKEND=table|blob (table by default)
- AZURE_STORAGE_CONNECTION_STRING must be set for either backend
- All configuration is typed and validated via Pydantic models

Examples:
    from azure_storage_cache.cache.factory import create_cache, get_cache

    # Uses env-configured backend
    cache = create_cache()

    # Or explicitly supply a CacheConfig (e.g., for tests)
    from azure_storage_cache.config import CacheConfig, CacheBackend
    cfg = CacheConfig(backend=CacheBackend.BLOB, connection_string=conn, container_name="sessions")
    blob_cache = create_cache(cfg, name="sessions")
"""

from __future__ import annotations

import logging

from ..config import CacheBackend, CacheConfig, get_config
from ..errors import ConfigurationError, StorageCacheError
from .interface import CacheInterface

logger = logging.getLogger(__name__)

# Global cache instances registry
_cache_instances: dict[str, CacheInterface] = {}


def _missing_sdk(backend: str, package: str, error: ImportError) -> ConfigurationError:
    logger.error(
        f"{backend} backend selected but the Azure SDK is not installed",
        extra={"package": package, "error": str(error)},
    )
    return ConfigurationError(
        f"{backend} backend selected but {package} is unavailable. Install with: pip install '{package}'",
        details={"package": package, "error": str(error), "backend": backend},
    )


def _create_table_cache(config: CacheConfig) -> CacheInterface:
    """Internal helper to construct a table cache backend with lazy import."""
    try:
        from .backends.table import TableCacheBackend
    except ImportError as e:
        raise _missing_sdk("table", "azure-data-tables", e) from e

    return TableCacheBackend(
        connection_string=config.connection_string,
        partition_key=config.partition_key,
        table_name=config.table_name,
        create_if_missing=config.create_if_missing,
    )


def _create_blob_cache(config: CacheConfig) -> CacheInterface:
    """Internal helper to construct a blob cache backend with lazy import."""
    try:
        from .backends.blob import BlobCacheBackend
    except ImportError as e:
        raise _missing_sdk("blob", "azure-storage-blob[aio]", e) from e

    return BlobCacheBackend(
        connection_string=config.connection_string,
        container_name=config.container_name,
        store_expiration_metadata=config.store_expiration_metadata,
        create_if_missing=config.create_if_missing,
    )


def create_cache(
    config: CacheConfig | None = None,
    name: str = "default",
) -> CacheInterface:
    """
    Create a cache backend instance based on configuration.

    Args:
        config: Cache configuration (uses global config if not provided)
        name: Cache instance name (for multiple cache instances)

    Returns:
        Configured cache backend instance

    Raises:
        ConfigurationError: If cache configuration is invalid or backend unavailable
    """
    # Return existing instance if already created
    if name in _cache_instances:
        logger.debug("Returning existing cache instance: %s", name)
        return _cache_instances[name]

    # Use global config if not provided
    if config is None:
        config = get_config().cache

    logger.info(
        "Creating cache instance '%s' with backend: %s",
        name,
        config.backend,
        extra={"cache_name": name, "backend": str(config.backend)},
    )

    try:
        if config.backend == CacheBackend.TABLE:
            cache = _create_table_cache(config)
        elif config.backend == CacheBackend.BLOB:
            cache = _create_blob_cache(config)
        else:
            raise ConfigurationError(
                f"Unknown cache backend: {config.backend}",
                details={
                    "backend": str(config.backend),
                    "supported": [backend.value for backend in CacheBackend],
                },
            )
    except ConfigurationError:
        raise
    except StorageCacheError as e:
        raise ConfigurationError(
            f"Failed to create cache instance '{name}': {e.message}",
            details={"cache_name": name, "backend": str(config.backend), **e.details},
        ) from e
    except ValueError as e:
        # The Azure SDK rejects malformed connection strings with ValueError
        logger.error(
            "Invalid storage settings for cache instance '%s': %s",
            name,
            e,
            extra={"cache_name": name, "backend": str(config.backend)},
        )
        raise ConfigurationError(
            f"Failed to create cache instance '{name}': {e}",
            details={"cache_name": name, "backend": str(config.backend), "error": str(e)},
        ) from e

    # Store instance in registry
    _cache_instances[name] = cache

    logger.info(
        "Cache instance '%s' created successfully",
        name,
        extra={"cache_name": name, "backend": str(config.backend)},
    )

    return cache


def get_cache(name: str = "default") -> CacheInterface:
    """
    Get an existing cache instance by name.

    If the instance doesn't exist, it will be created automatically
    using the global configuration.
    """
    if name not in _cache_instances:
        logger.debug("Cache instance '%s' not found, creating new instance", name)
        return create_cache(name=name)

    return _cache_instances[name]


async def close_all_caches() -> None:
    """
    Close all cache instances and release resources.

    Must be called during graceful shutdown so client sessions are closed.
    """
    if not _cache_instances:
        logger.debug("No cache instances to close")
        return

    logger.info("Closing %d cache instance(s)...", len(_cache_instances))

    for name, cache in list(_cache_instances.items()):
        try:
            await cache.close()
            logger.info("Closed cache instance: %s", name)
        except Exception as e:
            logger.error(
                "Error closing cache instance '%s': %s",
                name,
                e,
                extra={"cache_name": name, "error": str(e)},
                exc_info=True,
            )

    _cache_instances.clear()
    logger.info("All cache instances closed")


def reset_cache_factory() -> None:
    """
    Reset the cache factory by clearing all instance references.

    Does NOT call close() on instances - use close_all_caches() for proper cleanup.
    Only use this in testing contexts.
    """
    count = len(_cache_instances)
    _cache_instances.clear()
    logger.debug("Reset cache factory, cleared %d instance reference(s)", count)


def register_cache(cache: CacheInterface, name: str = "default") -> CacheInterface:
    """Register an externally constructed cache under a name, replacing any previous one."""
    _cache_instances[name] = cache
    logger.debug("Registered cache instance '%s' (%s)", name, cache.backend_name)
    return cache


def list_cache_instances() -> list[str]:
    """
    List all registered cache instance names.

    Returns:
        List of cache instance names
    """
    return list(_cache_instances.keys())
