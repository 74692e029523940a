"""
Azure Storage Cache - MCP Server

FastMCP server using stdio transport (Model Context Protocol) that exposes the
configured storage cache as tools.

- Configuration via typed Pydantic models only
- Cache created once at startup and closed on shutdown
- Tool inputs validated before reaching the cache
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import Any

from fastmcp import FastMCP

from . import __version__
from .cache import CacheEntryOptions, close_all_caches, get_cache
from .config import load_config
from .validation import validate_input
from .validation.tool_schemas import (
    CacheGetInput,
    CacheRefreshInput,
    CacheRemoveInput,
    CacheSetInput,
    CheckStatusInput,
)

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def server_lifespan(server: Any) -> Any:
    """Server lifespan manager (startup/shutdown)."""
    await initialize_server()
    yield
    await cleanup_server()


# Create FastMCP server with lifespan
mcp = FastMCP("Azure Storage Cache", lifespan=server_lifespan)

# Global state
_initialized = False


@mcp.tool()
@validate_input(CheckStatusInput)
async def check_status() -> dict[str, Any]:
    """
    Check server health and the configured cache backend.

    Returns:
        Service status and cache description
    """
    cache = get_cache()

    return {
        "status": "healthy",
        "service": "azure-storage-cache",
        "version": __version__,
        "cache": cache.describe(),
    }


@mcp.tool()
@validate_input(CacheGetInput)
async def cache_get(key: str) -> dict[str, Any]:
    """
    Retrieve a text value from the cache.

    Expired entries are deleted and reported as not found.

    Args:
        key: Cache key to retrieve

    Returns:
        The value and whether it was found
    """
    cache = get_cache()
    value = await cache.get_string(key)

    return {"key": key, "found": value is not None, "value": value}


@mcp.tool()
@validate_input(CacheSetInput)
async def cache_set(
    key: str,
    value: str,
    ttl_seconds: int | None = None,
    absolute_expiration: datetime | None = None,
    sliding_seconds: int | None = None,
) -> dict[str, Any]:
    """
    Store a text value in the cache, replacing any existing entry.

    Args:
        key: Cache key
        value: Value to store
        ttl_seconds: Expire this many seconds after each write
        absolute_expiration: Fixed expiration time (must be in the future)
        sliding_seconds: Sliding window in seconds (stored, not enforced)

    Returns:
        Confirmation with the backend's expiration support
    """
    cache = get_cache()
    options = CacheEntryOptions(
        absolute_expiration=absolute_expiration,
        absolute_expiration_relative_to_now=timedelta(seconds=ttl_seconds) if ttl_seconds else None,
        sliding_expiration=timedelta(seconds=sliding_seconds) if sliding_seconds else None,
    )

    await cache.set_string(key, value, options)

    return {
        "success": True,
        "key": key,
        "expiration_support": cache.expiration_support.value,
    }


@mcp.tool()
@validate_input(CacheRefreshInput)
async def cache_refresh(key: str) -> dict[str, Any]:
    """
    Renew an entry's expiration using the options it was stored with.

    Args:
        key: Cache key to refresh

    Returns:
        Confirmation (missing or expired keys are a no-op)
    """
    cache = get_cache()
    await cache.refresh(key)

    return {"success": True, "key": key}


@mcp.tool()
@validate_input(CacheRemoveInput)
async def cache_remove(key: str) -> dict[str, Any]:
    """
    Remove an entry from the cache.

    Args:
        key: Cache key to remove

    Returns:
        Confirmation (removing a missing key is not an error)
    """
    cache = get_cache()
    await cache.remove(key)

    return {"success": True, "key": key}


async def initialize_server() -> None:
    """Initialize server resources on startup."""
    global _initialized

    if _initialized:
        return

    logger.info("Initializing Azure Storage Cache server...")

    try:
        config = load_config()
        logging.getLogger().setLevel(config.log_level)
        logger.info(f"Configuration loaded: environment={config.environment}")

        cache = get_cache()
        await cache.initialize()
        logger.info(f"Cache initialized: backend={cache.backend_name}", extra=cache.describe())

        _initialized = True
        logger.info("Azure Storage Cache server initialized successfully")

    except Exception as e:
        logger.error(f"Failed to initialize server: {e}", exc_info=True)
        raise


async def cleanup_server() -> None:
    """Cleanup server resources on shutdown."""
    global _initialized

    if not _initialized:
        return

    logger.info("Cleaning up Azure Storage Cache server...")

    try:
        await close_all_caches()
        _initialized = False
        logger.info("Azure Storage Cache server cleanup complete")

    except Exception as e:
        logger.error(f"Error during cleanup: {e}", exc_info=True)


def main() -> None:
    """CLI entry point for azure-storage-cache-mcp command."""
    mcp.run()


if __name__ == "__main__":
    main()
