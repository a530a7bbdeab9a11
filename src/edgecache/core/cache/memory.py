"""
Bounded in-process cache with TTL expiry and proportional eviction.

Manifesto:
    The default backend must work with zero infrastructure and must never
    turn memory pressure into a request failure. When the table is full the
    store frees roughly a tenth of its keys and tries again once; if that
    still fails the write is dropped and counted, never raised.

Architecture:
    ::

        set(key) ──► _insert ──► ok
                       │
                 CacheFullError
                       │
                 _evict_fraction (ceil(10%), oldest inserted first)
                       │
                  _insert (once) ──► ok
                       │
                 CacheFullError ──► log + stats.failed_writes, return False

        Sweeper thread: every check_period → prune_expired()
        get()/keys(): lazy expiry as a backstop to the sweeper

Guardrails:
    ❌ DON'T: Share one instance across processes (no cross-process state)
    ✅ DO: Use RedisCache when several workers must see the same entries

    ❌ DON'T: Assume LRU ordering on eviction
    ✅ DO: Treat eviction as "oldest inserted first", nothing more

Tags:
    cache, in-memory, ttl, eviction, sweeper, thread-safe, edgecache

Doc-Types:
    - API Reference
    - Technical Design
"""

from __future__ import annotations

import copy
import math
import threading
import time
from collections.abc import Callable
from itertools import islice
from typing import Any, ClassVar

from edgecache.core.cache.base import CacheEntry, CacheStats
from edgecache.core.errors import CacheFullError
from edgecache.core.logging import get_logger

log = get_logger(__name__)

EVICTION_FRACTION = 0.1


class BoundedMemoryCache:
    """Thread-safe bounded cache with per-entry TTL.

    Attributes:
        max_keys: Capacity ceiling (``<= 0`` → unbounded).
        default_ttl: TTL used when ``set`` receives ``ttl=None``.
        check_period: Seconds between sweeps (``<= 0`` → no sweeper thread).

    Example:
        cache = BoundedMemoryCache(max_keys=2, default_ttl=60, check_period=0)
        cache.set("k1", {"a": 1})
        cache.get("k1")
    """

    name: ClassVar[str] = "memory"
    is_async: ClassVar[bool] = False

    def __init__(
        self,
        *,
        default_ttl: int = 86_400,
        check_period: float = 600,
        max_keys: int = 1000,
        clone_values: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.RLock()
        self._stats = CacheStats()
        self._default_ttl = default_ttl
        self._check_period = check_period
        self._max_keys = max_keys
        self._clone = clone_values
        self._clock = clock

        self._stop = threading.Event()
        self._sweeper: threading.Thread | None = None
        if check_period > 0:
            self._sweeper = threading.Thread(
                target=self._run_sweeper,
                name="edgecache-sweeper",
                daemon=True,
            )
            self._sweeper.start()

    @property
    def max_keys(self) -> int:
        return self._max_keys

    # ------------------------------------------------------------------ #
    # Capability set
    # ------------------------------------------------------------------ #

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._stats.misses += 1
                return None
            if entry.is_expired(self._clock()):
                del self._entries[key]
                self._stats.expired += 1
                self._stats.misses += 1
                return None
            self._stats.hits += 1
            value = entry.value
        return copy.deepcopy(value) if self._clone else value

    def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """Store a value. Returns ``False`` when the write had to be dropped."""
        ttl = self._default_ttl if ttl is None else ttl
        try:
            stored = copy.deepcopy(value) if self._clone else value
        except Exception as exc:
            self._record_failed_write(key, exc)
            return False

        with self._lock:
            try:
                self._insert(key, stored, ttl)
                return True
            except CacheFullError:
                evicted = self._evict_fraction()
                log.info("cache_full_evicted", key=key, evicted=evicted, max_keys=self._max_keys)

            try:
                self._insert(key, stored, ttl)
                return True
            except CacheFullError as exc:
                self._record_failed_write(key, exc)
                return False

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            self._prune_locked()
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    # ------------------------------------------------------------------ #
    # Maintenance
    # ------------------------------------------------------------------ #

    def prune_expired(self) -> int:
        """Remove every expired entry now. Returns how many were removed."""
        with self._lock:
            return self._prune_locked()

    def size(self) -> int:
        """Number of entries currently held, expired-but-unswept included."""
        with self._lock:
            return len(self._entries)

    def stats(self) -> CacheStats:
        with self._lock:
            snapshot = copy.copy(self._stats)
            snapshot.keys = len(self._entries)
        return snapshot

    def close(self) -> None:
        """Stop the sweeper thread."""
        self._stop.set()
        if self._sweeper is not None and self._sweeper is not threading.current_thread():
            self._sweeper.join(timeout=1.0)

    # ------------------------------------------------------------------ #
    # Internals (callers hold the lock)
    # ------------------------------------------------------------------ #

    def _insert(self, key: str, value: Any, ttl: int) -> None:
        if key in self._entries:
            # Overwrite moves the key to the newest insertion position.
            del self._entries[key]
        elif 0 < self._max_keys <= len(self._entries):
            raise CacheFullError(self._max_keys).with_context(
                backend=self.name, key=key, operation="set"
            )
        self._entries[key] = CacheEntry.create(key, value, ttl, now=self._clock())
        self._stats.sets += 1

    def _evict_fraction(self) -> int:
        count = max(1, math.ceil(len(self._entries) * EVICTION_FRACTION))
        victims = list(islice(self._entries, count))
        for victim in victims:
            del self._entries[victim]
        self._stats.evictions += len(victims)
        return len(victims)

    def _prune_locked(self) -> int:
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        self._stats.expired += len(expired)
        return len(expired)

    def _record_failed_write(self, key: str, exc: Exception) -> None:
        with self._lock:
            self._stats.failed_writes += 1
        details = exc.to_dict() if isinstance(exc, CacheFullError) else {"error": str(exc)}
        log.error("cache_write_dropped", backend=self.name, key=key, **details)

    def _run_sweeper(self) -> None:
        while not self._stop.wait(self._check_period):
            removed = self.prune_expired()
            if removed:
                log.debug("cache_sweep", removed=removed)


__all__ = ["BoundedMemoryCache", "EVICTION_FRACTION"]
