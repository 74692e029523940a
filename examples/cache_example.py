"""
Storage Cache Usage Example

Demonstrates how to use the Azure Storage cache.

This example shows:
- Creating a cache from environment configuration
- Writing entries with relative and absolute expiration
- Renewing an entry with refresh
- Blocking access from synchronous code
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone

from azure_storage_cache import (
    BlockingCache,
    CacheEntryOptions,
    close_all_caches,
    get_cache,
)
from azure_storage_cache.cache.backends.table import TableCacheBackend
from azure_storage_cache.config import get_config

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def example_session_entry():
    """Example: Session-style entry renewed by refresh."""
    logger.info("=" * 60)
    logger.info("Example 1: Relative expiration and refresh")
    logger.info("=" * 60)

    cache = get_cache()
    await cache.set_string("session:42", '{"user": "demo"}', CacheEntryOptions.from_ttl(20))

    entry = await cache.get_entry("session:42")
    logger.info(f"Stored session, expires at {entry.absolute_expiration}")

    await asyncio.sleep(1)
    await cache.refresh("session:42")

    entry = await cache.get_entry("session:42")
    logger.info(f"Refreshed session, now expires at {entry.absolute_expiration}")


async def example_absolute_expiration():
    """Example: Entry with a fixed expiration time."""
    logger.info("=" * 60)
    logger.info("Example 2: Absolute expiration")
    logger.info("=" * 60)

    cache = get_cache()
    end_of_day = datetime.now(timezone.utc).replace(hour=23, minute=59, second=59, microsecond=0)
    if end_of_day <= datetime.now(timezone.utc):
        end_of_day += timedelta(days=1)

    await cache.set("report:daily", b"...", CacheEntryOptions(absolute_expiration=end_of_day))
    logger.info(f"Report cached until {end_of_day.isoformat()}")

    value = await cache.get("report:daily")
    logger.info(f"Read back {len(value or b'')} bytes")

    await cache.remove("report:daily")
    logger.info(f"After remove: {await cache.get('report:daily')}")


def example_blocking():
    """Example: Synchronous access to a table cache."""
    logger.info("=" * 60)
    logger.info("Example 3: Blocking wrapper")
    logger.info("=" * 60)

    config = get_config().cache
    backend = TableCacheBackend(config.connection_string, partition_key="examples", table_name=config.table_name)

    with BlockingCache(backend) as cache:
        cache.set_string("greeting", "hello", CacheEntryOptions.from_ttl(60))
        logger.info(f"Blocking read: {cache.get_string('greeting')}")
        cache.remove("greeting")


async def main():
    """Run all examples."""
    logger.info("Azure Storage Cache Examples")
    logger.info("Set AZURE_STORAGE_CONNECTION_STRING (and optionally CACHE_BACKEND) in .env\n")

    try:
        await example_session_entry()
        await example_absolute_expiration()
    finally:
        logger.info("Closing caches...")
        await close_all_caches()


if __name__ == "__main__":
    asyncio.run(main())
    example_blocking()
