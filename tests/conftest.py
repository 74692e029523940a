"""
Azure Storage Cache - Test Configuration and Shared Fixtures

Provides pytest configuration and shared fixtures for unit and integration tests.
The Azure SDK clients are replaced by in-memory fakes exposing the same async
surface the backends use, so no storage account is needed.
"""

import asyncio
import os
from collections.abc import AsyncIterator, Generator
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any

import pytest
from azure.core.exceptions import HttpResponseError, ResourceExistsError, ResourceNotFoundError
from azure.data.tables import UpdateMode

from azure_storage_cache.cache.backends.blob import BlobCacheBackend
from azure_storage_cache.cache.backends.table import TableCacheBackend

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "DEBUG"

TEST_CONNECTION_STRING = (
    "DefaultEndpointsProtocol=https;AccountName=cachetests;AccountKey=ZmFrZWtleWZvcnRlc3Rz;EndpointSuffix=core.windows.net"
)


class FakeClock:
    """Controllable UTC clock passed to backends as ``clock``."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class _Etags:
    def __init__(self) -> None:
        self._counter = 0

    def next(self) -> str:
        self._counter += 1
        return f'W/"datetime\'{self._counter}\'"'


class FakeTableEntity(dict):
    """Mapping with a ``metadata`` attribute, like azure.data.tables.TableEntity."""

    def __init__(self, data: dict[str, Any], metadata: dict[str, Any]) -> None:
        super().__init__(data)
        self.metadata = metadata


class FakeTableClient:
    """In-memory stand-in for azure.data.tables.aio.TableClient."""

    def __init__(self) -> None:
        self.rows: list[tuple[dict[str, Any], dict[str, Any]]] = []
        self.exists = False
        self.create_calls = 0
        self.upsert_calls = 0
        self.delete_calls = 0
        self.closed = False
        self.error: Exception | None = None
        self.upsert_gate: asyncio.Event | None = None
        self._etags = _Etags()

    def _raise_if_failing(self) -> None:
        if self.error is not None:
            raise self.error

    async def create_table(self) -> None:
        self.create_calls += 1
        if self.exists:
            raise ResourceExistsError("TableAlreadyExists")
        self.exists = True

    def query_entities(self, query_filter: str, *, parameters: dict[str, Any], **kwargs: Any) -> AsyncIterator[Any]:
        self._raise_if_failing()
        assert "PartitionKey" in query_filter and "RowKey" in query_filter
        return self._iter_rows(parameters["partition"], parameters["key"])

    async def _iter_rows(self, partition: str, key: str) -> AsyncIterator[FakeTableEntity]:
        for entity, metadata in list(self.rows):
            if entity["PartitionKey"] == partition and entity["RowKey"] == key:
                yield FakeTableEntity(entity, metadata)

    async def upsert_entity(self, entity: dict[str, Any], mode: UpdateMode = UpdateMode.MERGE, **kwargs: Any) -> None:
        if self.upsert_gate is not None:
            await self.upsert_gate.wait()
        self._raise_if_failing()
        assert mode == UpdateMode.REPLACE
        self.upsert_calls += 1
        identity = (entity["PartitionKey"], entity["RowKey"])
        self.rows = [row for row in self.rows if (row[0]["PartitionKey"], row[0]["RowKey"]) != identity]
        metadata = {"etag": self._etags.next(), "timestamp": datetime.now(timezone.utc)}
        self.rows.append((dict(entity), metadata))

    async def delete_entity(self, partition_key: str, row_key: str, **kwargs: Any) -> None:
        self._raise_if_failing()
        self.delete_calls += 1
        self.rows = [
            row for row in self.rows if (row[0]["PartitionKey"], row[0]["RowKey"]) != (partition_key, row_key)
        ]

    async def close(self) -> None:
        self.closed = True

    # Test helpers

    def find(self, partition: str, key: str) -> list[dict[str, Any]]:
        return [entity for entity, _ in self.rows if entity["PartitionKey"] == partition and entity["RowKey"] == key]

    def insert_raw(self, entity: dict[str, Any]) -> None:
        """Append a row without upsert semantics (used to simulate duplicates)."""
        self.rows.append((dict(entity), {"etag": self._etags.next(), "timestamp": datetime.now(timezone.utc)}))


class FakeDownloader:
    """Stand-in for azure.storage.blob.aio.StorageStreamDownloader."""

    def __init__(self, data: bytes, properties: SimpleNamespace) -> None:
        self._data = data
        self.properties = properties

    async def readall(self) -> bytes:
        return self._data


class FakeContainerClient:
    """In-memory stand-in for azure.storage.blob.aio.ContainerClient."""

    def __init__(self) -> None:
        self.blobs: dict[str, SimpleNamespace] = {}
        self.exists = False
        self.create_calls = 0
        self.upload_calls = 0
        self.closed = False
        self.error: Exception | None = None
        self._etags = _Etags()

    def _raise_if_failing(self) -> None:
        if self.error is not None:
            raise self.error

    async def create_container(self, **kwargs: Any) -> None:
        self.create_calls += 1
        if self.exists:
            raise ResourceExistsError("ContainerAlreadyExists")
        self.exists = True

    async def download_blob(self, blob: str, **kwargs: Any) -> FakeDownloader:
        self._raise_if_failing()
        if blob not in self.blobs:
            raise ResourceNotFoundError("BlobNotFound")
        stored = self.blobs[blob]
        properties = SimpleNamespace(
            name=blob,
            metadata=dict(stored.metadata),
            etag=stored.etag,
            last_modified=stored.last_modified,
        )
        return FakeDownloader(stored.data, properties)

    async def upload_blob(
        self,
        name: str,
        data: bytes,
        overwrite: bool = False,
        metadata: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> None:
        self._raise_if_failing()
        if name in self.blobs and not overwrite:
            raise ResourceExistsError("BlobAlreadyExists")
        self.upload_calls += 1
        self.blobs[name] = SimpleNamespace(
            data=bytes(data),
            metadata=dict(metadata or {}),
            etag=self._etags.next(),
            last_modified=datetime.now(timezone.utc),
        )

    async def delete_blob(self, blob: str, **kwargs: Any) -> None:
        self._raise_if_failing()
        if blob not in self.blobs:
            raise ResourceNotFoundError("BlobNotFound")
        del self.blobs[blob]

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def clock() -> FakeClock:
    """A clock that only moves when the test advances it."""
    return FakeClock()


@pytest.fixture
def table_client() -> FakeTableClient:
    return FakeTableClient()


@pytest.fixture
def container_client() -> FakeContainerClient:
    return FakeContainerClient()


@pytest.fixture
def table_cache(table_client: FakeTableClient, clock: FakeClock) -> TableCacheBackend:
    """Table backend over the fake client, partition 'tests'."""
    return TableCacheBackend(
        partition_key="tests",
        table_name="cache",
        table_client=table_client,  # type: ignore[arg-type]
        clock=clock,
    )


@pytest.fixture
def blob_cache(container_client: FakeContainerClient, clock: FakeClock) -> BlobCacheBackend:
    """Minimal (payload-only) blob backend over the fake client."""
    return BlobCacheBackend(
        container_name="cache",
        container_client=container_client,  # type: ignore[arg-type]
        clock=clock,
    )


@pytest.fixture
def metadata_blob_cache(container_client: FakeContainerClient, clock: FakeClock) -> BlobCacheBackend:
    """Blob backend that persists and enforces expiration metadata."""
    return BlobCacheBackend(
        container_name="cache",
        container_client=container_client,  # type: ignore[arg-type]
        store_expiration_metadata=True,
        clock=clock,
    )


@pytest.fixture
def throttled_error() -> HttpResponseError:
    """A 503 response error as raised by the storage SDK."""
    error = HttpResponseError(message="Server busy")
    error.status_code = 503
    return error


@pytest.fixture
def test_connection_string() -> str:
    return TEST_CONNECTION_STRING


@pytest.fixture
def mock_env_table(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set environment variables for the table backend."""
    monkeypatch.setenv("CACHE_BACKEND", "table")
    monkeypatch.setenv("AZURE_STORAGE_CONNECTION_STRING", TEST_CONNECTION_STRING)
    monkeypatch.setenv("CACHE_TABLE_NAME", "testcache")
    monkeypatch.setenv("CACHE_PARTITION_KEY", "test")


@pytest.fixture
def mock_env_blob(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set environment variables for the blob backend."""
    monkeypatch.setenv("CACHE_BACKEND", "blob")
    monkeypatch.setenv("AZURE_STORAGE_CONNECTION_STRING", TEST_CONNECTION_STRING)
    monkeypatch.setenv("CACHE_CONTAINER_NAME", "test-cache")
    monkeypatch.setenv("CACHE_BLOB_EXPIRATION_METADATA", "true")


@pytest.fixture(autouse=True)
def reset_cache_state() -> Generator[None, None, None]:
    """Reset cache factory and loaded config after each test to prevent state leakage."""
    yield
    from azure_storage_cache.cache.factory import reset_cache_factory
    from azure_storage_cache.config import reset_config

    reset_cache_factory()
    reset_config()
