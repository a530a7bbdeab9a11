"""
Response-cache middleware: read-through on the way in, write-after on the way out.

Request lifecycle::

    START ──not GET (and no custom key generator)──► PASSTHROUGH
      │
    KEY_DERIVED ──lookup──► hit ──► RESPOND_CACHED (downstream never runs)
      │
     miss ──► call_next ──► 2xx + JSON? ──no──► PASSTHROUGH (nothing stored)
                               │ yes
                          INTERCEPTING: body stream wrapped
                               │ stream ends
                          CAPTURED: manager.store(key, payload, duration)
                               │
                          RESPONDED (payload sent exactly once)

Manifesto:
    The cache sits in front of arbitrary handlers, so it must observe the
    response without altering it. The interceptor forwards every chunk
    untouched and only decodes its own copy once the stream has ended.

Tags:
    api, middleware, cache, read-through, interceptor, edgecache

Doc-Types:
    api-reference
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterable, AsyncIterator, Callable, Mapping
from typing import TYPE_CHECKING, Any

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from edgecache.core.cache.keys import CacheConfig, CacheRequest
from edgecache.core.logging import get_logger

if TYPE_CHECKING:
    from edgecache.core.cache.manager import CacheManager

log = get_logger(__name__)

CACHE_STATUS_HEADER = "X-Cache"
CACHEABLE_METHODS = frozenset({"GET"})


def is_json_response(response: Response) -> bool:
    """True for a 2xx response whose media type is JSON."""
    if not 200 <= response.status_code < 300:
        return False
    content_type = response.headers.get("content-type", "")
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


class JSONBodyInterceptor:
    """Wraps a response body stream, forwarding chunks and capturing a copy.

    When the wrapped stream is exhausted the captured bytes are decoded as
    JSON and handed to ``on_payload`` exactly once. A stream closed early
    (client went away) never reaches ``on_payload``.
    """

    def __init__(self, on_payload: Callable[[Any], None]) -> None:
        self._on_payload = on_payload
        self._chunks: list[bytes] = []

    async def wrap(self, body: AsyncIterable[bytes | str]) -> AsyncIterator[bytes | str]:
        async for chunk in body:
            self._chunks.append(chunk if isinstance(chunk, bytes) else chunk.encode("utf-8"))
            yield chunk
        self._emit()

    def _emit(self) -> None:
        try:
            payload = json.loads(b"".join(self._chunks))
        except ValueError:
            log.debug("cache_capture_not_json")
            return
        try:
            self._on_payload(payload)
        except Exception as exc:
            log.warning("cache_capture_failed", error=str(exc))


class ResponseCacheHandler:
    """``(request, call_next) -> Response`` handler bound to one route policy.

    Built by :meth:`CacheManager.middleware`; usable anywhere Starlette
    accepts a ``dispatch`` function.
    """

    def __init__(
        self,
        manager: CacheManager,
        config: CacheConfig,
        *,
        eligible_methods_override: bool = False,
    ) -> None:
        self.manager = manager
        self.config = config
        self._any_method = eligible_methods_override

    def is_eligible(self, method: str) -> bool:
        return self._any_method or method.upper() in CACHEABLE_METHODS

    async def __call__(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not self.is_eligible(request.method):
            return await call_next(request)

        try:
            view = await CacheRequest.from_starlette(request)
            key = self.manager.derive_key(view, self.config)
        except Exception as exc:
            log.warning("cache_key_failed", path=request.url.path, error=str(exc))
            return await call_next(request)

        cached = await self.manager.lookup(key)
        if cached:
            log.debug("cache_hit", key=key)
            return JSONResponse(cached, headers={CACHE_STATUS_HEADER: "HIT"})

        log.debug("cache_miss", key=key)
        response = await call_next(request)
        if not is_json_response(response) or not hasattr(response, "body_iterator"):
            return response

        duration = self.config.duration

        def _persist(payload: Any) -> None:
            self.manager.store(key, payload, duration)

        response.body_iterator = JSONBodyInterceptor(_persist).wrap(response.body_iterator)
        response.headers[CACHE_STATUS_HEADER] = "MISS"
        return response


class ResponseCacheMiddleware(BaseHTTPMiddleware):
    """Install a cache policy on an app, a mounted sub-app or a single route.

    Parameters
    ----------
    app:
        The ASGI application to wrap.
    manager:
        The process-wide :class:`CacheManager`.
    config:
        Route policy merged over the manager default (``None`` → defaults).
    """

    def __init__(
        self,
        app: object,
        manager: CacheManager,
        config: CacheConfig | Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(app, dispatch=manager.middleware(config))  # type: ignore[arg-type]


__all__ = [
    "CACHE_STATUS_HEADER",
    "JSONBodyInterceptor",
    "ResponseCacheHandler",
    "ResponseCacheMiddleware",
    "is_json_response",
]
