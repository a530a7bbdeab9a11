"""
Shared pytest fixtures for edgecache tests.

Usage:
    Fixtures are auto-discovered by pytest; request them by name.

    def test_something(memory_cache, clock):
        ...
"""

from __future__ import annotations

import sys
from collections.abc import Generator
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent))

from _support import FakeAsyncRedis, FakeClock, RecordingSleep  # noqa: E402

from edgecache.core.cache.manager import CacheManager  # noqa: E402
from edgecache.core.cache.memory import BoundedMemoryCache  # noqa: E402
from edgecache.core.cache.redis import RedisCache  # noqa: E402
from edgecache.core.settings import CacheOptions  # noqa: E402


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark tests without explicit markers as unit tests."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration", "slow"}):
            item.add_marker(pytest.mark.unit)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_cache(clock: FakeClock) -> Generator[BoundedMemoryCache, None, None]:
    """In-process cache on a fake clock, no sweeper thread."""
    cache = BoundedMemoryCache(default_ttl=60, check_period=0, max_keys=100, clock=clock)
    yield cache
    cache.close()


@pytest.fixture
def fake_redis() -> FakeAsyncRedis:
    return FakeAsyncRedis()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def redis_cache(fake_redis: FakeAsyncRedis, recording_sleep: RecordingSleep) -> RedisCache:
    return RedisCache(
        "redis://:secret@cache.local:6379/0",
        max_reconnect_attempts=3,
        default_ttl=60,
        client=fake_redis,
        sleep=recording_sleep,
    )


@pytest.fixture
def memory_manager(memory_cache: BoundedMemoryCache) -> CacheManager:
    return CacheManager(memory_cache, CacheOptions(default_ttl=60, check_period=0, max_keys=100))


@pytest.fixture
def redis_manager(redis_cache: RedisCache) -> CacheManager:
    return CacheManager(redis_cache, CacheOptions(default_ttl=60, check_period=0, max_keys=100))
