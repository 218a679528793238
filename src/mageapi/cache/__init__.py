"""File-backed response caching for mageapi.

This package provides :class:`CacheStore`, an expiring key/value store
persisted to a single JSON file, and :class:`CacheHandle`, the value
object holding one file's loaded table.

The store is consumed by :class:`~mageapi.client.MagentoClient`, which
caches successful GET results under a request fingerprint, and is
controlled by the ``cache`` section of a profile
(:class:`~mageapi.models.CacheConfig`).
"""

from mageapi.cache.store import CacheHandle, CacheStore

__all__ = ["CacheHandle", "CacheStore"]
