"""Caching services."""

from .cache_persistence import JsonCachePersistence
from .cache_store import CacheEntry, CacheStore

__all__ = ["CacheEntry", "CacheStore", "JsonCachePersistence"]
