"""
Store adapter contract shared by the cache backends.

Manifesto:
    The manager must not care which backend it owns. Both backends expose
    the same five capabilities; they differ only in whether a call may
    suspend.

Architecture:
    ::

        CacheBackend (Protocol, synchronous)
        └── BoundedMemoryCache   - in-process, bounded, TTL sweep

        AsyncCacheBackend (Protocol, awaitable)
        └── RedisCache           - networked, native TTL, reconnect

        API: get(key) → value | None
             set(key, value, ttl) → bool
             delete(key)
             keys() → list[str]
             clear()

Tags:
    cache, protocol, backend, adapter, edgecache

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from typing import Any, ClassVar, Protocol, runtime_checkable


@dataclass(slots=True)
class CacheEntry:
    """One stored value with its expiry.

    ``expires_at`` is on the ``time.monotonic()`` clock; ``None`` means the
    entry never expires.
    """

    key: str
    value: Any
    ttl_seconds: int
    expires_at: float | None = field(default=None)

    @classmethod
    def create(cls, key: str, value: Any, ttl_seconds: int, *, now: float | None = None) -> CacheEntry:
        now = time.monotonic() if now is None else now
        expires_at = now + ttl_seconds if ttl_seconds > 0 else None
        return cls(key=key, value=value, ttl_seconds=ttl_seconds, expires_at=expires_at)

    def is_expired(self, now: float | None = None) -> bool:
        if self.expires_at is None:
            return False
        now = time.monotonic() if now is None else now
        return now >= self.expires_at


@dataclass
class CacheStats:
    """Counters kept by a backend. ``keys`` is filled in when reported."""

    hits: int = 0
    misses: int = 0
    sets: int = 0
    evictions: int = 0
    expired: int = 0
    failed_writes: int = 0
    keys: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@runtime_checkable
class CacheBackend(Protocol):
    """Synchronous store adapter. Calls never suspend."""

    name: ClassVar[str]
    is_async: ClassVar[bool]

    def get(self, key: str) -> Any | None:
        """Return the stored value, or ``None`` when absent or expired."""
        ...

    def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """Store ``value`` for ``ttl`` seconds. ``False`` means the write was dropped."""
        ...

    def delete(self, key: str) -> None:
        """Remove a key. No-op if the key does not exist."""
        ...

    def keys(self) -> list[str]:
        """List live keys."""
        ...

    def clear(self) -> None:
        """Remove every key."""
        ...


@runtime_checkable
class AsyncCacheBackend(Protocol):
    """Awaitable store adapter. Errors are downgraded, never raised."""

    name: ClassVar[str]
    is_async: ClassVar[bool]

    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool: ...

    async def delete(self, key: str) -> None: ...

    async def keys(self) -> list[str]: ...

    async def clear(self) -> None: ...


__all__ = ["CacheEntry", "CacheStats", "CacheBackend", "AsyncCacheBackend"]
