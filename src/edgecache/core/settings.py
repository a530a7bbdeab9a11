"""Process-wide cache settings.

``CacheSettings`` is read once at startup from environment variables
(prefix ``CACHE_``) and an optional ``.env`` file. It is the only place
configuration is parsed; everything below it receives typed values.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.
    The backend choice, the Redis connection string and the in-process
    limits are decided once per process and never hot-reloaded.

    - **Pydantic validation:** Type-checked at startup, not per request
    - **Environment-driven:** ``CACHE_REDIS_ENABLED=true`` etc.
    - **Sensible defaults:** In-process backend, one-day TTL, 1000 keys

Examples:
    >>> from edgecache.core.settings import CacheSettings
    >>> settings = CacheSettings(max_keys=2, default_ttl=60)
    >>> settings.to_options().max_keys
    2

Tags:
    settings, configuration, pydantic, environment, edgecache

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class CacheOptions:
    """Typed options for the in-process backend and the default route TTL.

    Attributes:
        default_ttl: TTL (seconds) used when a route does not set ``duration``
        check_period: Seconds between expiry sweeps (``<= 0`` disables the sweeper)
        max_keys: Capacity ceiling (``<= 0`` means unbounded)
    """

    default_ttl: int = 86_400
    check_period: float = 600
    max_keys: int = 1000


class CacheSettings(BaseSettings):
    """Settings for the response cache.

    Order of precedence (highest → lowest):
        1. Environment variables (``CACHE_REDIS_URL``, etc.)
        2. ``.env`` file
        3. Defaults below
    """

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Backend selection ────────────────────────────────────────────────
    redis_enabled: bool = Field(default=False, description="Use the Redis backend")
    redis_url: str | None = Field(
        default=None,
        description="Redis connection URL (redis:// or rediss://, credentials allowed)",
    )
    redis_max_reconnect_attempts: int = Field(
        default=50, ge=0, description="Reconnect attempts before giving up"
    )
    redis_pool_size: int = Field(
        default=50, ge=1, description="Max connections in the client pool"
    )

    # ── In-process backend ───────────────────────────────────────────────
    default_ttl: int = Field(default=86_400, description="Default TTL in seconds")
    check_period: float = Field(default=600, description="Expiry sweep interval in seconds")
    max_keys: int = Field(default=1000, description="Max live keys (<= 0 → unbounded)")

    # ── Observability ────────────────────────────────────────────────────
    log_level: str = Field(default="INFO", description="Log level")
    log_json: bool | None = Field(default=None, description="JSON logs (None → auto)")

    @field_validator("default_ttl")
    @classmethod
    def _positive_ttl(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("default_ttl must be a positive number of seconds")
        return value

    def to_options(self) -> CacheOptions:
        """Project the settings onto the typed in-process options."""
        return CacheOptions(
            default_ttl=self.default_ttl,
            check_period=self.check_period,
            max_keys=self.max_keys,
        )


__all__ = ["CacheOptions", "CacheSettings"]
