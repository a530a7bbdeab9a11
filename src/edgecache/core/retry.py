"""Backoff strategies for the Redis reconnect supervisor.

Example:
    >>> from edgecache.core.retry import LinearBackoff
    >>>
    >>> strategy = LinearBackoff(max_retries=50, base_delay=0.1, increment=0.1, max_delay=3.0)
    >>> [round(strategy.next_delay(a), 1) for a in range(3)]
    [0.1, 0.2, 0.3]
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


class RetryStrategy(ABC):
    """Abstract base for retry strategies."""

    @abstractmethod
    def next_delay(self, attempt: int) -> float:
        """Calculate delay before next retry attempt.

        Args:
            attempt: Zero-based attempt number (0 = first retry)

        Returns:
            Delay in seconds before next attempt
        """
        ...

    @abstractmethod
    def should_retry(self, attempt: int) -> bool:
        """Determine if another retry should be attempted.

        Args:
            attempt: Number of attempts already made

        Returns:
            True if should retry, False otherwise
        """
        ...


@dataclass
class LinearBackoff(RetryStrategy):
    """Linear backoff strategy.

    Delay = min(base_delay + (increment * attempt), max_delay)

    The reconnect defaults give ``attempt * 100ms`` for one-based attempts,
    capped at three seconds.
    """

    max_retries: int = 50
    base_delay: float = 0.1
    increment: float = 0.1
    max_delay: float = 3.0

    def next_delay(self, attempt: int) -> float:
        """Calculate linear backoff delay."""
        return min(
            self.base_delay + (self.increment * attempt),
            self.max_delay,
        )

    def should_retry(self, attempt: int) -> bool:
        """Check if retry should be attempted."""
        return attempt < self.max_retries


__all__ = ["RetryStrategy", "LinearBackoff"]
