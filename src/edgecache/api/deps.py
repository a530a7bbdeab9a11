"""
FastAPI dependency injection: settings singleton and the app's cache manager.

Usage in routers::

    from edgecache.api.deps import Manager

    @router.post("/orders")
    async def create_order(manager: Manager):
        ...
        await manager.clear_cache(r"^GET\\|/orders")
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request

from edgecache.core.cache.manager import CacheManager
from edgecache.core.settings import CacheSettings


@lru_cache(maxsize=1)
def get_settings() -> CacheSettings:
    """Cached settings: loaded once per process."""
    return CacheSettings()


def get_cache_manager(request: Request) -> CacheManager:
    """Return the manager built by :func:`edgecache.api.app.create_app`."""
    return request.app.state.cache_manager


Manager = Annotated[CacheManager, Depends(get_cache_manager)]
