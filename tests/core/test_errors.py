"""Tests for edgecache.core.errors module."""

import pytest

from edgecache.core.errors import (
    BackendUnavailableError,
    CacheError,
    CacheFullError,
    ConfigError,
    ErrorCategory,
    ErrorContext,
    MissingConfigError,
    SerializationError,
    categorize_error,
    is_retryable,
)


class TestErrorContext:
    """Test ErrorContext dataclass."""

    def test_empty_context_to_dict(self):
        assert ErrorContext().to_dict() == {}

    def test_to_dict_skips_none_and_merges_metadata(self):
        ctx = ErrorContext(backend="redis", key="GET|/a|{}|{}|{}", metadata={"attempt": 2})
        assert ctx.to_dict() == {"backend": "redis", "key": "GET|/a|{}|{}|{}", "attempt": 2}


class TestCacheError:
    """Test the base error."""

    def test_defaults(self):
        error = CacheError("Something went wrong")
        assert error.category is ErrorCategory.INTERNAL
        assert error.retryable is False
        assert str(error) == "Something went wrong"

    def test_explicit_overrides(self):
        error = CacheError("x", category=ErrorCategory.TRANSPORT, retryable=True)
        assert error.category is ErrorCategory.TRANSPORT
        assert error.retryable is True

    def test_cause_chained(self):
        cause = OSError("refused")
        error = CacheError("wrapped", cause=cause)
        assert error.__cause__ is cause
        assert error.to_dict()["cause"] == "refused"

    def test_with_context_fluent(self):
        error = CacheError("x").with_context(backend="memory", operation="set", shard=3)
        assert error.context.backend == "memory"
        assert error.context.operation == "set"
        assert error.context.metadata == {"shard": 3}

    def test_to_dict(self):
        data = CacheError("x").with_context(key="k").to_dict()
        assert data == {
            "error_type": "CacheError",
            "message": "x",
            "category": "INTERNAL",
            "retryable": False,
            "context": {"key": "k"},
        }

    def test_repr(self):
        assert repr(SerializationError("bad")) == "SerializationError('bad', category=SERIALIZATION)"


class TestSubclasses:
    """Each subclass carries its own category and retry default."""

    @pytest.mark.parametrize(
        "error, category, retryable",
        [
            (BackendUnavailableError("down"), ErrorCategory.TRANSPORT, True),
            (CacheFullError(10), ErrorCategory.CAPACITY, False),
            (SerializationError("bad"), ErrorCategory.SERIALIZATION, False),
            (ConfigError("bad"), ErrorCategory.CONFIG, False),
        ],
    )
    def test_category_and_retryable(self, error, category, retryable):
        assert error.category is category
        assert error.retryable is retryable
        assert isinstance(error, CacheError)

    def test_cache_full_message(self):
        error = CacheFullError(1000)
        assert error.max_keys == 1000
        assert "1000" in error.message

    def test_missing_config(self):
        error = MissingConfigError("CACHE_REDIS_URL")
        assert isinstance(error, ConfigError)
        assert error.key == "CACHE_REDIS_URL"
        assert "CACHE_REDIS_URL" in str(error)


class TestHelpers:
    def test_is_retryable(self):
        assert is_retryable(BackendUnavailableError("x"))
        assert not is_retryable(ConfigError("x"))
        assert is_retryable(ConnectionRefusedError())
        assert is_retryable(TimeoutError())
        assert not is_retryable(ValueError())

    def test_categorize_error(self):
        assert categorize_error(CacheFullError(1)) is ErrorCategory.CAPACITY
        assert categorize_error(ConnectionResetError()) is ErrorCategory.TRANSPORT
        assert categorize_error(TypeError()) is ErrorCategory.SERIALIZATION
        assert categorize_error(KeyError("x")) is ErrorCategory.UNKNOWN
