"""
edgecache - request-scoped response cache for ASGI applications.

A cache manager owns one store adapter (bounded in-process or Redis),
derives deterministic keys from requests under per-route policies, serves
stored JSON responses on hit and captures outgoing JSON responses on miss.
"""

__version__ = "0.1.0"

from edgecache.core.cache import (
    BoundedMemoryCache,
    CacheConfig,
    CacheManager,
    CacheRequest,
    RedisCache,
    build_cache_manager,
    derive_cache_key,
)
from edgecache.core.settings import CacheOptions, CacheSettings

__all__ = [
    "__version__",
    "BoundedMemoryCache",
    "CacheConfig",
    "CacheManager",
    "CacheOptions",
    "CacheRequest",
    "CacheSettings",
    "RedisCache",
    "build_cache_manager",
    "derive_cache_key",
]
