"""
Cache key derivation and per-route cache policy.

Manifesto:
    The whole cache is only as correct as its keys. Two requests that are
    the same under a route's policy must map to byte-identical keys, and a
    difference in any field the policy selects must change the key.

Key layout::

    METHOD | path | {query} | {body} | {headers}

Each ``{...}`` is a canonical JSON object: keys sorted, compact
separators, non-JSON values rendered with ``str``. Body parameters are
only folded in for POST and PUT.

Examples:
    >>> request = CacheRequest(method="GET", path="/orders", query={"page": "2", "ts": "1"})
    >>> derive_cache_key(request, CacheConfig(duration=60, ignore_params=("ts",)))
    'GET|/orders|{"page":"2"}|{}|{}'

Tags:
    cache, cache-key, determinism, policy, edgecache

Doc-Types:
    - API Reference
    - Technical Design
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field, fields, replace
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from starlette.requests import Request

KEY_DELIMITER = "|"
BODY_METHODS = frozenset({"POST", "PUT"})


@dataclass(frozen=True)
class CacheRequest:
    """Framework-neutral view of an inbound request.

    ``headers`` is matched case-insensitively through :meth:`header`.
    ``raw`` holds the framework request so custom key generators can reach
    anything the view does not carry.
    """

    method: str
    path: str
    query: Mapping[str, str | list[str]] = field(default_factory=dict)
    body: Any = None
    headers: Mapping[str, str] = field(default_factory=dict)
    raw: Any = field(default=None, compare=False, repr=False)

    def header(self, name: str) -> str | None:
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None

    @classmethod
    async def from_starlette(cls, request: Request) -> CacheRequest:
        """Build a view from a Starlette request, parsing JSON bodies for POST/PUT."""
        query: dict[str, str | list[str]] = {}
        for name, value in request.query_params.multi_items():
            if name not in query:
                query[name] = value
            elif isinstance(query[name], list):
                query[name].append(value)  # type: ignore[union-attr]
            else:
                query[name] = [query[name], value]  # type: ignore[list-item]

        method = request.method.upper()
        body = None
        if method in BODY_METHODS:
            raw_body = await request.body()
            if raw_body:
                try:
                    body = json.loads(raw_body)
                except ValueError:
                    body = None

        return cls(
            method=method,
            path=request.url.path,
            query=query,
            body=body,
            headers=dict(request.headers.items()),
            raw=request,
        )


KeyGenerator = Callable[[CacheRequest], str]


@dataclass(frozen=True)
class CacheConfig:
    """Per-route cache policy.

    Attributes:
        duration: TTL in seconds for entries written by this route
            (``None`` → the manager default).
        key_params: Allow-list of query/body parameters (empty → all).
        ignore_params: Deny-list applied after the allow-list.
        vary_by_headers: Header names folded into the key.
        custom_key_generator: Replaces the built-in derivation entirely.
    """

    duration: int | None = None
    key_params: tuple[str, ...] = ()
    ignore_params: tuple[str, ...] = ()
    vary_by_headers: tuple[str, ...] = ()
    custom_key_generator: KeyGenerator | None = None

    def __post_init__(self) -> None:
        for name in ("key_params", "ignore_params", "vary_by_headers"):
            value = getattr(self, name)
            if not isinstance(value, tuple):
                object.__setattr__(self, name, tuple(value))

    def merge(self, override: CacheConfig | Mapping[str, Any] | None) -> CacheConfig:
        """Layer ``override`` on top of this config.

        A mapping overrides only the keys it names. A ``CacheConfig``
        overrides every field that differs from the class default.
        """
        if override is None:
            return self
        if isinstance(override, Mapping):
            return replace(self, **dict(override))
        changes = {
            f.name: getattr(override, f.name)
            for f in fields(self)
            if getattr(override, f.name) != f.default
        }
        return replace(self, **changes)

    def allows(self, param: str) -> bool:
        if self.key_params and param not in self.key_params:
            return False
        return param not in self.ignore_params


def _canonical(obj: Mapping[str, Any]) -> str:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)


def _select(params: Mapping[str, Any] | None, config: CacheConfig) -> dict[str, Any]:
    if not params:
        return {}
    return {name: value for name, value in params.items() if config.allows(name)}


def _headers(request: CacheRequest, names: Iterable[str]) -> dict[str, str]:
    selected = {}
    for name in names:
        value = request.header(name)
        if value:
            selected[name] = value
    return selected


def derive_cache_key(request: CacheRequest, config: CacheConfig) -> str:
    """Compute the cache key for ``request`` under ``config``.

    Pure and deterministic. A ``custom_key_generator`` short-circuits the
    built-in composition.
    """
    if config.custom_key_generator is not None:
        return config.custom_key_generator(request)

    method = request.method.upper()
    body = request.body if method in BODY_METHODS and isinstance(request.body, Mapping) else None

    return KEY_DELIMITER.join(
        [
            method,
            request.path,
            _canonical(_select(request.query, config)),
            _canonical(_select(body, config)),
            _canonical(_headers(request, config.vary_by_headers)),
        ]
    )


__all__ = [
    "KEY_DELIMITER",
    "BODY_METHODS",
    "CacheRequest",
    "CacheConfig",
    "KeyGenerator",
    "derive_cache_key",
]
