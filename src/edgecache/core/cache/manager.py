"""
Cache manager: one backend, many route policies.

Manifesto:
    The manager is the only object the HTTP layer talks to. It owns exactly
    one store adapter, chosen once from configuration, derives keys under
    each route's policy and hides whether the adapter suspends. Nothing it
    does may fail or delay a request.

Architecture:
    ::

        build_cache_manager(settings)
              │  redis_enabled?
              ├── yes, url set ──► RedisCache
              ├── yes, no url  ──► BoundedMemoryCache  (degraded, logged)
              └── no           ──► BoundedMemoryCache

        CacheManager
        ├── derive_key(request, config)      pure
        ├── middleware(config)               → ResponseCacheHandler
        ├── lookup(key)                      fail-open read
        ├── store(key, value, ttl)           write-after, detached for async
        ├── clear_cache(pattern=None)        flush or regex delete
        └── status() / start() / aclose()

Tags:
    cache, manager, dependency-injection, fail-open, edgecache

Doc-Types:
    - API Reference
    - Technical Design
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from edgecache.core.background import drain, spawn_logged
from edgecache.core.cache.base import AsyncCacheBackend, CacheBackend
from edgecache.core.cache.keys import CacheConfig, CacheRequest, derive_cache_key
from edgecache.core.cache.memory import BoundedMemoryCache
from edgecache.core.cache.redis import RedisCache
from edgecache.core.errors import MissingConfigError
from edgecache.core.logging import get_logger
from edgecache.core.settings import CacheOptions, CacheSettings

if TYPE_CHECKING:
    from edgecache.api.middleware.cache import ResponseCacheHandler

log = get_logger(__name__)

Backend = CacheBackend | AsyncCacheBackend


class CacheManager:
    """Owns one store adapter and orchestrates read-through / write-after.

    Construct it once per process and pass it to whatever builds the
    routes; there is no module-level instance.

    Example::

        manager = CacheManager(BoundedMemoryCache(max_keys=1000), CacheOptions())
        app.add_middleware(ResponseCacheMiddleware, manager=manager,
                           config=CacheConfig(duration=60))
    """

    def __init__(
        self,
        backend: Backend,
        options: CacheOptions | None = None,
        *,
        degraded: bool = False,
    ) -> None:
        self._backend = backend
        self._options = options or CacheOptions()
        self._is_async = bool(getattr(backend, "is_async", False))
        self._pending: set[asyncio.Task[Any]] = set()
        self.degraded = degraded
        self.default_config = CacheConfig(duration=self._options.default_ttl)

    @property
    def backend(self) -> Backend:
        return self._backend

    @property
    def is_async(self) -> bool:
        return self._is_async

    # ------------------------------------------------------------------ #
    # Keys and middleware
    # ------------------------------------------------------------------ #

    def derive_key(self, request: CacheRequest, config: CacheConfig | None = None) -> str:
        return derive_cache_key(request, config or self.default_config)

    def middleware(
        self, config: CacheConfig | Mapping[str, Any] | None = None
    ) -> ResponseCacheHandler:
        """Return the request handler bound to ``default_config`` merged with ``config``."""
        from edgecache.api.middleware.cache import ResponseCacheHandler

        route_config = self._as_config(config)
        return ResponseCacheHandler(
            self,
            self.default_config.merge(route_config),
            eligible_methods_override=route_config is not None
            and route_config.custom_key_generator is not None,
        )

    @staticmethod
    def _as_config(config: CacheConfig | Mapping[str, Any] | None) -> CacheConfig | None:
        if config is None or isinstance(config, CacheConfig):
            return config
        return CacheConfig(**dict(config))

    # ------------------------------------------------------------------ #
    # Read / write
    # ------------------------------------------------------------------ #

    async def lookup(self, key: str) -> Any | None:
        """Read ``key``; any backend failure reads as a miss."""
        try:
            if self._is_async:
                return await self._backend.get(key)
            return self._backend.get(key)
        except Exception as exc:
            log.warning("cache_lookup_failed", key=key, error=str(exc))
            return None

    def store(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Persist a captured payload without delaying the caller."""
        ttl = ttl if ttl is not None else self._options.default_ttl
        if self._is_async:
            spawn_logged(
                self._backend.set(key, value, ttl),
                name="cache_write",
                registry=self._pending,
                key=key,
            )
            return
        try:
            self._backend.set(key, value, ttl)
        except Exception as exc:
            log.warning("cache_write_failed", key=key, error=str(exc))

    # ------------------------------------------------------------------ #
    # Invalidation
    # ------------------------------------------------------------------ #

    async def clear_cache(self, pattern: str | re.Pattern[str] | None = None) -> int | None:
        """Flush everything, or delete every key ``pattern`` matches.

        ``pattern`` is a regular expression searched anywhere in the key
        (anchor with ``^`` to match a prefix). Returns the number of keys
        deleted, or ``None`` for a full flush.
        """
        if pattern is None:
            if self._is_async:
                await self._backend.clear()
            else:
                self._backend.clear()
            log.info("cache_flushed", backend=self._backend.name)
            return None

        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        if self._is_async:
            keys = await self._backend.keys()
            matched = [key for key in keys if regex.search(key)]
            await asyncio.gather(*(self._backend.delete(key) for key in matched))
        else:
            matched = [key for key in self._backend.keys() if regex.search(key)]
            for key in matched:
                self._backend.delete(key)

        log.info("cache_invalidated", backend=self._backend.name, pattern=regex.pattern, deleted=len(matched))
        return len(matched)

    # ------------------------------------------------------------------ #
    # Lifecycle and observability
    # ------------------------------------------------------------------ #

    async def start(self) -> None:
        if isinstance(self._backend, RedisCache):
            await self._backend.start()

    async def wait_for_writes(self, timeout: float | None = 5.0) -> None:
        """Wait for detached writes still in flight."""
        await drain(self._pending, timeout=timeout)

    async def aclose(self) -> None:
        """Drain detached writes, then release the backend."""
        await self.wait_for_writes()
        if isinstance(self._backend, RedisCache):
            await self._backend.close()
        elif isinstance(self._backend, BoundedMemoryCache):
            self._backend.close()

    async def status(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "backend": self._backend.name,
            "is_async": self._is_async,
            "degraded": self.degraded,
            "connection_state": None,
            "keys": 0,
            "stats": None,
        }
        if isinstance(self._backend, RedisCache):
            result["connection_state"] = self._backend.state.value
            result["keys"] = await self._backend.size()
        elif isinstance(self._backend, BoundedMemoryCache):
            stats = self._backend.stats()
            result["keys"] = stats.keys
            result["stats"] = stats.to_dict()
        return result


def build_cache_manager(settings: CacheSettings | None = None) -> CacheManager:
    """Select the backend once from ``settings`` and build the manager.

    ``redis_enabled`` without ``redis_url`` is a configuration error: it is
    logged at error level and the manager falls back to the in-process
    backend in a degraded state, so serving continues.
    """
    settings = settings or CacheSettings()
    options = settings.to_options()

    def _memory() -> BoundedMemoryCache:
        return BoundedMemoryCache(
            default_ttl=options.default_ttl,
            check_period=options.check_period,
            max_keys=options.max_keys,
        )

    if not settings.redis_enabled:
        log.info("cache_backend_selected", backend="memory", max_keys=options.max_keys)
        return CacheManager(_memory(), options)

    if not settings.redis_url:
        error = MissingConfigError(
            "CACHE_REDIS_URL",
            "Redis backend enabled but CACHE_REDIS_URL is not set; "
            "falling back to the in-process cache",
        )
        log.error("cache_config_error", **error.to_dict())
        return CacheManager(_memory(), options, degraded=True)

    backend = RedisCache(
        settings.redis_url,
        max_reconnect_attempts=settings.redis_max_reconnect_attempts,
        pool_size=settings.redis_pool_size,
        default_ttl=options.default_ttl,
    )
    log.info("cache_backend_selected", backend="redis")
    return CacheManager(backend, options)


__all__ = ["CacheManager", "build_cache_manager"]
