"""
Response cache: store adapters, key derivation and the manager.

Tags:
    cache, edgecache

Doc-Types:
    - API Reference
"""

from edgecache.core.cache.base import AsyncCacheBackend, CacheBackend, CacheEntry, CacheStats
from edgecache.core.cache.keys import CacheConfig, CacheRequest, derive_cache_key
from edgecache.core.cache.manager import CacheManager, build_cache_manager
from edgecache.core.cache.memory import BoundedMemoryCache
from edgecache.core.cache.redis import ConnectionState, RedisCache

__all__ = [
    "AsyncCacheBackend",
    "BoundedMemoryCache",
    "CacheBackend",
    "CacheConfig",
    "CacheEntry",
    "CacheManager",
    "CacheRequest",
    "CacheStats",
    "ConnectionState",
    "RedisCache",
    "build_cache_manager",
    "derive_cache_key",
]
