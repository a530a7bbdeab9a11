"""
API schemas for the cache admin surface and RFC 7807 errors.

Doc-Types: API_REFERENCE
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class ProblemDetail(BaseModel):
    """RFC 7807 «Problem Details for HTTP APIs».

    Used as the error envelope for every non-2xx response of the admin
    router and the catch-all exception handler.
    """

    type: str = Field(default="about:blank", description="URI reference identifying the problem type")
    title: str = Field(description="Short summary of the problem")
    status: int = Field(description="HTTP status code")
    detail: str = Field(default="", description="Explanation specific to this occurrence")
    instance: str = Field(default="", description="URI of the request that failed")


class CacheStatsModel(BaseModel):
    """Counters kept by the in-process backend."""

    hits: int = 0
    misses: int = 0
    sets: int = 0
    evictions: int = 0
    expired: int = 0
    failed_writes: int = 0
    keys: int = 0


class CacheStatusResponse(BaseModel):
    """Snapshot of the active backend."""

    backend: str = Field(description="'memory' or 'redis'")
    is_async: bool = Field(description="Whether backend calls may suspend")
    degraded: bool = Field(description="True when startup configuration forced a fallback")
    connection_state: str | None = Field(
        default=None, description="Redis connection state; null for the in-process backend"
    )
    keys: int = Field(default=0, description="Number of stored keys")
    stats: CacheStatsModel | None = None


class ClearCacheResponse(BaseModel):
    """Outcome of an invalidation request."""

    pattern: str | None = Field(default=None, description="Regex used, null for a full flush")
    deleted: int | None = Field(default=None, description="Keys deleted, null for a full flush")
