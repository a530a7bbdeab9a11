"""
Structured error types for the response cache.

Every failure the cache layer can observe is classified into one of a small
set of categories. The cache is best-effort, so almost none of these errors
ever leave the layer: they are raised internally, caught at the backend or
manager boundary, logged with ``to_dict()`` and downgraded to a miss or a
no-op.

Manifesto:
    - **Typed Error Hierarchy:** One class per failure domain
    - **Explicit Retry Semantics:** Transport failures know they are transient
    - **Rich Context:** Errors carry the cache key and backend for logging
    - **Error Chaining:** The underlying client exception is kept as ``cause``

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────┐
        │                        CacheError                         │
        │        (category, retryable, context, cause)              │
        ├──────────────────────────────────────────────────────────┤
        │  BackendUnavailableError   CacheFullError                 │
        │  (TRANSPORT, retryable)    (CAPACITY)                     │
        │                                                           │
        │  SerializationError        ConfigError                    │
        │  (SERIALIZATION)           (CONFIG)                       │
        │                                 │                         │
        │                            MissingConfigError             │
        └──────────────────────────────────────────────────────────┘

Examples:
    >>> error = BackendUnavailableError("connection refused")
    >>> error.retryable
    True
    >>> error.with_context(backend="redis", key="GET /a|{}|{}|{}").to_dict()["context"]
    {'backend': 'redis', 'key': 'GET /a|{}|{}|{}'}

Tags:
    error-handling, exception-hierarchy, cache, fail-open, edgecache

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for the cache layer.

    - **TRANSPORT:** the networked backend could not be reached or timed out
    - **CAPACITY:** the in-process store is full
    - **SERIALIZATION:** a stored value could not be encoded or decoded
    - **CONFIG:** startup configuration is missing or invalid
    - **INTERNAL / UNKNOWN:** everything else
    """

    TRANSPORT = "TRANSPORT"
    CAPACITY = "CAPACITY"
    SERIALIZATION = "SERIALIZATION"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """Structured metadata attached to a :class:`CacheError`.

    Attributes:
        backend: Backend name (``"memory"`` or ``"redis"``)
        key: Cache key involved in the failing operation
        operation: Backend operation (``get``, ``set``, ``delete``, ...)
        metadata: Additional key-value pairs
    """

    backend: str | None = None
    key: str | None = None
    operation: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for name in ["backend", "key", "operation"]:
            value = getattr(self, name)
            if value is not None:
                result[name] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class CacheError(Exception):
    """
    Base exception for all cache-layer errors.

    Subclasses set ``default_category`` and ``default_retryable`` so callers
    rarely pass them explicitly.

    Examples:
        >>> error = CacheError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.retryable
        False
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> CacheError:
        """Add context to the error (fluent API)."""
        for key, value in kwargs.items():
            if hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# BACKEND ERRORS
# =============================================================================


class BackendUnavailableError(CacheError):
    """
    The networked backend could not serve the operation.

    Connection refused, timeout, auth failure, connection dropped mid-call.
    Retryable in the sense that the reconnect supervisor may recover; the
    operation itself is never retried inline.
    """

    default_category = ErrorCategory.TRANSPORT
    default_retryable = True


class CacheFullError(CacheError):
    """The in-process store reached ``max_keys`` and refused a new key."""

    default_category = ErrorCategory.CAPACITY

    def __init__(self, max_keys: int, message: str | None = None):
        self.max_keys = max_keys
        super().__init__(message or f"Cache is full ({max_keys} keys)")


class SerializationError(CacheError):
    """A value could not be JSON-encoded on write or decoded on read."""

    default_category = ErrorCategory.SERIALIZATION


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(CacheError):
    """
    Configuration error.

    Never retryable - configuration must be fixed. This is the only class
    the cache logs at error level on startup.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class MissingConfigError(ConfigError):
    """Required configuration is missing."""

    def __init__(self, key: str, message: str | None = None):
        self.key = key
        super().__init__(message or f"Missing required configuration: {key}")


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, CacheError):
        return error.retryable
    return isinstance(error, (ConnectionError, TimeoutError, OSError))


def categorize_error(error: Exception) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, CacheError):
        return error.category
    if isinstance(error, (ConnectionError, TimeoutError, OSError)):
        return ErrorCategory.TRANSPORT
    if isinstance(error, (TypeError, ValueError)):
        return ErrorCategory.SERIALIZATION
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "CacheError",
    "BackendUnavailableError",
    "CacheFullError",
    "SerializationError",
    "ConfigError",
    "MissingConfigError",
    "is_retryable",
    "categorize_error",
]
