"""
Test support utilities for edgecache tests.

Helpers that are not fixtures: a controllable clock and an in-memory
stand-in for the asyncio Redis client used by ``RedisCache``.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

from redis.exceptions import ConnectionError as RedisConnectionError


class FakeClock:
    """Monotonic clock the test advances by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeAsyncRedis:
    """Dictionary-backed double of the ``redis.asyncio`` client surface we use.

    Set ``down = True`` to make every command raise a connection error, or
    ``ping_failures = n`` to fail the next ``n`` pings only.
    """

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.down = False
        self.ping_failures = 0
        self.pings = 0
        self.closed = False

    def _check(self) -> None:
        if self.down:
            raise RedisConnectionError("Connection refused")

    async def ping(self) -> bool:
        self.pings += 1
        if self.ping_failures > 0:
            self.ping_failures -= 1
            raise RedisConnectionError("Connection refused")
        self._check()
        return True

    async def get(self, key: str) -> str | None:
        self._check()
        return self.data.get(key)

    async def setex(self, key: str, ttl: int, value: str) -> bool:
        self._check()
        self.data[key] = value
        self.ttls[key] = ttl
        return True

    async def delete(self, *keys: str) -> int:
        self._check()
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    async def scan_iter(self, match: str | None = None) -> AsyncIterator[str]:
        self._check()
        for key in list(self.data):
            yield key

    async def flushdb(self) -> bool:
        self._check()
        self.data.clear()
        self.ttls.clear()
        return True

    async def dbsize(self) -> int:
        self._check()
        return len(self.data)

    async def aclose(self) -> None:
        self.closed = True


class RecordingSleep:
    """Async ``sleep`` replacement that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> Any:
        self.delays.append(delay)
