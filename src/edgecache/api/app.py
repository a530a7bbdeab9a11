"""
FastAPI application factory.

``create_app()`` is the composition root: it builds the cache manager once
from settings, stores it on ``app.state`` and wires the admin router, the
error handler and the lifespan hooks. Business routes are added by the
caller, together with whichever cache policies they need::

    app = create_app()
    manager = app.state.cache_manager

    reports = FastAPI()
    reports.add_middleware(ResponseCacheMiddleware, manager=manager,
                           config=CacheConfig(duration=300, ignore_params=("ts",)))
    app.mount("/reports", reports)

Tags:
    api, app-factory, composition-root, FastAPI, edgecache

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from edgecache.api.deps import get_settings
from edgecache.api.middleware.errors import unhandled_exception_handler
from edgecache.api.routers.cache import create_cache_router
from edgecache.core.cache.manager import CacheManager, build_cache_manager
from edgecache.core.logging import configure_logging, get_logger
from edgecache.core.settings import CacheSettings


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: connect the backend, then drain and close it."""
    log = get_logger("edgecache.api")
    manager: CacheManager = app.state.cache_manager

    await manager.start()
    log.info("edgecache_api_starting", backend=manager.backend.name, degraded=manager.degraded)

    yield

    await manager.aclose()
    log.info("edgecache_api_stopped")


def create_app(
    settings: CacheSettings | None = None,
    *,
    manager: CacheManager | None = None,
    admin_prefix: str = "/cache",
    title: str = "edgecache",
    debug: bool = False,
) -> FastAPI:
    """Build a FastAPI application carrying one cache manager.

    Parameters
    ----------
    settings : CacheSettings | None
        Override settings (useful for testing). When ``None`` the cached
        singleton from :func:`get_settings` is used.
    manager : CacheManager | None
        Pre-built manager. When ``None`` one is built from ``settings``.
    admin_prefix : str
        Prefix of the cache admin router.
    debug : bool
        Put exception messages in 500 problem bodies. Kept on ``app.state``
        so the problem handler, not Starlette's traceback page, renders them.
    """
    settings = settings or get_settings()
    configure_logging(level=settings.log_level, json_format=settings.log_json)

    app = FastAPI(title=title, lifespan=lifespan)
    app.state.settings = settings
    app.state.debug = debug
    app.state.cache_manager = manager or build_cache_manager(settings)

    app.dependency_overrides[get_settings] = lambda: settings

    app.add_exception_handler(Exception, unhandled_exception_handler)
    app.include_router(create_cache_router(app.state.cache_manager, prefix=admin_prefix))

    return app
