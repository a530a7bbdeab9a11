"""
Tests for the FastAPI application factory.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient

from edgecache.api.app import create_app
from edgecache.api.deps import Manager, get_settings
from edgecache.api.middleware.cache import CACHE_STATUS_HEADER, ResponseCacheMiddleware
from edgecache.core.cache.keys import CacheConfig
from edgecache.core.cache.manager import CacheManager
from edgecache.core.cache.memory import BoundedMemoryCache
from edgecache.core.cache.redis import ConnectionState
from edgecache.core.settings import CacheSettings


def _settings(**overrides) -> CacheSettings:
    return CacheSettings(_env_file=None, check_period=0, log_json=True, **overrides)


class TestCreateApp:
    def test_returns_fastapi_instance(self):
        assert isinstance(create_app(_settings()), FastAPI)

    def test_builds_manager_from_settings(self):
        app = create_app(_settings(max_keys=7))
        manager = app.state.cache_manager
        assert isinstance(manager, CacheManager)
        assert manager.backend.max_keys == 7

    def test_uses_given_manager(self, memory_manager):
        app = create_app(_settings(), manager=memory_manager)
        assert app.state.cache_manager is memory_manager

    def test_settings_on_state_and_overridden(self):
        s = _settings(default_ttl=42)
        app = create_app(s)
        assert app.state.settings is s
        assert app.dependency_overrides[get_settings]() is s

    def test_admin_routes_registered(self):
        client = TestClient(create_app(_settings(), admin_prefix="/_cache"))

        assert client.get("/_cache/status").status_code == 200
        assert client.delete("/_cache").json() == {"pattern": None, "deleted": None}
        assert client.get("/cache/status").status_code == 404

    def test_degraded_when_redis_url_missing(self):
        app = create_app(_settings(redis_enabled=True))
        assert app.state.cache_manager.degraded is True
        assert app.state.cache_manager.backend.name == "memory"


class TestLifespan:
    def test_memory_backend_closed_on_shutdown(self):
        backend = BoundedMemoryCache(check_period=3600)
        app = create_app(_settings(), manager=CacheManager(backend))

        with TestClient(app) as client:
            assert client.get("/cache/status").status_code == 200
            assert backend._sweeper.is_alive()

        assert not backend._sweeper.is_alive()

    def test_redis_backend_started_and_closed(self, redis_manager, fake_redis):
        app = create_app(_settings(), manager=redis_manager)

        with TestClient(app) as client:
            client.get("/cache/status")

        assert fake_redis.pings >= 1
        assert fake_redis.closed
        assert redis_manager.backend.state is ConnectionState.CLOSED


class TestErrorHandler:
    def test_unhandled_exception_is_problem_json(self):
        app = create_app(_settings())

        @app.get("/boom")
        async def boom():
            raise RuntimeError("secret detail")

        response = TestClient(app, raise_server_exceptions=False).get("/boom")

        assert response.status_code == 500
        assert response.headers["content-type"].startswith("application/problem+json")
        body = response.json()
        assert body["title"] == "Internal Server Error"
        assert "secret detail" not in body["detail"]

    def test_debug_exposes_detail(self):
        app = create_app(_settings(), debug=True)

        @app.get("/boom")
        async def boom():
            raise RuntimeError("secret detail")

        response = TestClient(app, raise_server_exceptions=False).get("/boom")

        assert response.status_code == 500
        assert response.headers["content-type"].startswith("application/problem+json")
        assert response.json()["detail"] == "secret detail"
        assert app.debug is False


class TestManagerDependency:
    """Routes invalidate through the injected manager."""

    def test_write_route_invalidates_cached_reads(self):
        app = create_app(_settings())
        manager = app.state.cache_manager
        orders: list[int] = []

        reads = FastAPI()
        reads.add_middleware(ResponseCacheMiddleware, manager=manager, config=CacheConfig(duration=60))

        @reads.get("/orders")
        async def list_orders():
            return {"orders": list(orders)}

        @app.post("/orders")
        async def create_order(manager: Manager):
            orders.append(len(orders) + 1)
            deleted = await manager.clear_cache(r"^GET\|/reads/orders")
            return {"deleted": deleted}

        app.mount("/reads", reads)
        client = TestClient(app)

        assert client.get("/reads/orders").json() == {"orders": []}
        assert client.get("/reads/orders").headers[CACHE_STATUS_HEADER] == "HIT"

        assert client.post("/orders").json() == {"deleted": 1}

        response = client.get("/reads/orders")
        assert response.headers[CACHE_STATUS_HEADER] == "MISS"
        assert response.json() == {"orders": [1]}
