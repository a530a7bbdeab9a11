"""
Cache admin router: status and invalidation endpoints.

Endpoints created
-----------------
``GET {prefix}/status``       Backend, connection state, key count, counters.
``DELETE {prefix}``           Flush everything.
``DELETE {prefix}?pattern=``  Delete keys matching a regular expression.

The router is built around an explicit :class:`CacheManager` so it can be
mounted behind whatever authentication the host application uses.
"""

from __future__ import annotations

import re

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from edgecache.api.middleware.errors import problem_response
from edgecache.api.schemas import CacheStatusResponse, ClearCacheResponse, ProblemDetail
from edgecache.core.cache.manager import CacheManager


def create_cache_router(manager: CacheManager, prefix: str = "/cache") -> APIRouter:
    """Create a FastAPI ``APIRouter`` exposing cache administration.

    Parameters
    ----------
    manager : CacheManager
        The process-wide cache manager.
    prefix : str
        URL prefix (default ``"/cache"``).
    """
    router = APIRouter(tags=["cache"])

    @router.get(f"{prefix}/status", response_model=CacheStatusResponse)
    async def cache_status() -> CacheStatusResponse:
        """Report the active backend and its health."""
        return CacheStatusResponse(**await manager.status())

    @router.delete(
        prefix,
        response_model=ClearCacheResponse,
        responses={400: {"model": ProblemDetail}},
    )
    async def clear_cache(
        request: Request,
        pattern: str | None = Query(default=None, description="Regex searched in each cache key"),
    ) -> ClearCacheResponse | JSONResponse:
        """Flush the cache, or only the keys matching ``pattern``."""
        if pattern is None:
            await manager.clear_cache()
            return ClearCacheResponse()

        try:
            regex = re.compile(pattern)
        except re.error as exc:
            return problem_response(
                status=400,
                title="Invalid pattern",
                detail=f"{pattern!r} is not a valid regular expression: {exc}",
                instance=str(request.url),
            )
        deleted = await manager.clear_cache(regex)
        return ClearCacheResponse(pattern=pattern, deleted=deleted)

    return router
