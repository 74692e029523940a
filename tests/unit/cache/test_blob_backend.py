"""
Unit tests for the Azure Blob Storage cache backend.

Covers both the minimal payload-only form and the expiration-metadata form.
"""

from datetime import timedelta
from typing import Any

import pytest
from azure.core.exceptions import HttpResponseError

from azure_storage_cache.cache.backends.blob import BlobCacheBackend
from azure_storage_cache.cache.entry import ABSOLUTE_EXPIRATION_METADATA, OPTIONS_METADATA
from azure_storage_cache.cache.expiration import ExpirationSupport
from azure_storage_cache.cache.options import CacheEntryOptions
from azure_storage_cache.errors import CacheNotFoundError, InvalidArgumentError, OutOfRangeError


class TestBlobBackendMinimal:
    """Test the payload-only blob backend."""

    async def test_set_and_get(self, blob_cache: BlobCacheBackend) -> None:
        """Test storing and retrieving a payload."""
        await blob_cache.set("report.json", b'{"ok": true}')

        assert await blob_cache.get("report.json") == b'{"ok": true}'

    async def test_blob_holds_raw_payload(self, blob_cache: BlobCacheBackend, container_client: Any) -> None:
        """Test that the blob body is the payload and no metadata is written."""
        await blob_cache.set("k", b"raw", CacheEntryOptions.from_ttl(60))

        stored = container_client.blobs["k"]
        assert stored.data == b"raw"
        assert stored.metadata == {}

    async def test_get_missing(self, blob_cache: BlobCacheBackend) -> None:
        """Test that a missing blob reads as None and get_entry raises."""
        assert await blob_cache.get("missing") is None

        with pytest.raises(CacheNotFoundError):
            await blob_cache.get_entry("missing")

    async def test_overwrite(self, blob_cache: BlobCacheBackend) -> None:
        """Test that writes replace the existing blob."""
        await blob_cache.set("k", b"v1")
        await blob_cache.set("k", b"v2")

        assert await blob_cache.get("k") == b"v2"

    async def test_remove_twice_is_noop(self, blob_cache: BlobCacheBackend) -> None:
        """Test that removing a missing blob does not raise."""
        await blob_cache.set("k", b"v")
        await blob_cache.remove("k")
        await blob_cache.remove("k")

        assert await blob_cache.exists("k") is False

    async def test_expiration_not_enforced(self, blob_cache: BlobCacheBackend, clock: Any) -> None:
        """Test that relative expirations are not persisted in the minimal form."""
        await blob_cache.set("k", b"v", CacheEntryOptions.from_ttl(1))

        clock.advance(3600)

        assert await blob_cache.get("k") == b"v"

    async def test_past_absolute_expiration_still_rejected(
        self, blob_cache: BlobCacheBackend, container_client: Any, clock: Any
    ) -> None:
        """Test that options are validated even though they are not stored."""
        options = CacheEntryOptions(absolute_expiration=clock.now - timedelta(minutes=1))

        with pytest.raises(OutOfRangeError):
            await blob_cache.set("k", b"v", options)

        assert container_client.blobs == {}

    async def test_refresh_rewrites_payload(self, blob_cache: BlobCacheBackend, container_client: Any) -> None:
        """Test that refresh re-uploads the existing payload."""
        await blob_cache.set("k", b"v")

        await blob_cache.refresh("k")

        assert container_client.upload_calls == 2
        assert await blob_cache.get("k") == b"v"

    async def test_entry_metadata(self, blob_cache: BlobCacheBackend) -> None:
        """Test that get_entry exposes etag and last-modified."""
        await blob_cache.set("k", b"v")

        entry = await blob_cache.get_entry("k")

        assert entry.etag is not None
        assert entry.last_modified is not None
        assert entry.absolute_expiration is None

    def test_describe(self, blob_cache: BlobCacheBackend) -> None:
        """Test that the minimal form reports no expiration support."""
        assert blob_cache.expiration_support == ExpirationSupport.NONE
        assert blob_cache.describe() == {
            "backend": "blob",
            "container_name": "cache",
            "expiration_support": "none",
        }

    @pytest.mark.parametrize("key", ["", "  "])
    async def test_invalid_key(self, blob_cache: BlobCacheBackend, key: str) -> None:
        """Test that blank keys are rejected."""
        with pytest.raises(InvalidArgumentError):
            await blob_cache.set(key, b"v")

        with pytest.raises(InvalidArgumentError):
            await blob_cache.get(key)

    async def test_invalid_value(self, blob_cache: BlobCacheBackend) -> None:
        """Test that a None payload is rejected."""
        with pytest.raises(InvalidArgumentError):
            await blob_cache.set("k", None)  # type: ignore[arg-type]

    async def test_container_created_once(self, blob_cache: BlobCacheBackend, container_client: Any) -> None:
        """Test that the container is provisioned on first use only."""
        await blob_cache.set("a", b"1")
        await blob_cache.get("a")

        assert container_client.create_calls == 1

    async def test_transport_error_propagates(
        self, blob_cache: BlobCacheBackend, container_client: Any, throttled_error: HttpResponseError
    ) -> None:
        """Test that service errors surface unchanged."""
        container_client.error = throttled_error

        with pytest.raises(HttpResponseError):
            await blob_cache.get("k")

    async def test_close(self, blob_cache: BlobCacheBackend, container_client: Any) -> None:
        """Test that close releases the client."""
        await blob_cache.close()

        assert container_client.closed is True


class TestBlobBackendWithMetadata:
    """Test the blob backend that stores and enforces expiration metadata."""

    async def test_metadata_written(
        self, metadata_blob_cache: BlobCacheBackend, container_client: Any, clock: Any
    ) -> None:
        """Test that options and expiration are stored as blob metadata."""
        options = CacheEntryOptions.from_ttl(60)
        await metadata_blob_cache.set("k", b"v", options)

        metadata = container_client.blobs["k"].metadata
        assert CacheEntryOptions.from_json(metadata[OPTIONS_METADATA]) == options
        assert metadata[ABSOLUTE_EXPIRATION_METADATA] == (clock.now + timedelta(seconds=60)).isoformat()

    async def test_missing_options_default_to_no_expiration(
        self, metadata_blob_cache: BlobCacheBackend, container_client: Any
    ) -> None:
        """Test that writes without options never expire."""
        await metadata_blob_cache.set("k", b"v")

        metadata = container_client.blobs["k"].metadata
        assert OPTIONS_METADATA in metadata
        assert ABSOLUTE_EXPIRATION_METADATA not in metadata

    async def test_entry_expires(
        self, metadata_blob_cache: BlobCacheBackend, container_client: Any, clock: Any
    ) -> None:
        """Test that expired blobs read as missing and are deleted."""
        await metadata_blob_cache.set("k", b"v", CacheEntryOptions.from_ttl(1))

        clock.advance(1)

        assert await metadata_blob_cache.get("k") is None
        assert "k" not in container_client.blobs

    async def test_refresh_renews(self, metadata_blob_cache: BlobCacheBackend, clock: Any) -> None:
        """Test that refresh extends a relative expiration."""
        await metadata_blob_cache.set("k", b"v", CacheEntryOptions.from_ttl(1))

        clock.advance(0.8)
        await metadata_blob_cache.refresh("k")
        clock.advance(0.7)

        assert await metadata_blob_cache.get("k") == b"v"

    async def test_options_round_trip(self, metadata_blob_cache: BlobCacheBackend) -> None:
        """Test that get_entry restores the stored options."""
        options = CacheEntryOptions(sliding_expiration=timedelta(seconds=20))
        await metadata_blob_cache.set("k", b"v", options)

        entry = await metadata_blob_cache.get_entry("k")

        assert entry.options() == options

    async def test_blob_without_metadata_never_expires(
        self, metadata_blob_cache: BlobCacheBackend, blob_cache: BlobCacheBackend, clock: Any
    ) -> None:
        """Test that blobs written by the minimal form are readable with no expiration."""
        await blob_cache.set("legacy", b"v", CacheEntryOptions.from_ttl(1))
        clock.advance(60)

        entry = await metadata_blob_cache.get_entry("legacy")

        assert entry.payload == b"v"
        assert entry.absolute_expiration is None

    def test_describe(self, metadata_blob_cache: BlobCacheBackend) -> None:
        """Test that the metadata form reports full expiration support."""
        assert metadata_blob_cache.expiration_support == ExpirationSupport.FULL
        assert metadata_blob_cache.describe()["expiration_support"] == "full"
