"""
Azure Storage Cache - Cache Backends

Backend implementations:
- table.TableCacheBackend (requires azure-data-tables)
- blob.BlobCacheBackend (requires azure-storage-blob[aio])

Both are lazy-loaded via factory.py so that selecting one backend never
imports the other backend's SDK.
"""

__all__: list[str] = []
