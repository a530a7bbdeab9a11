"""API middleware package.

Manifesto:
    Caching is a cross-cutting concern, so it lives in middleware and the
    routes it accelerates stay unaware of it.

Tags:
    api, middleware, cache

Doc-Types:
    api-reference
"""

from edgecache.api.middleware.cache import ResponseCacheHandler, ResponseCacheMiddleware

__all__ = ["ResponseCacheHandler", "ResponseCacheMiddleware"]
