from __future__ import annotations

import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Protocol, Set

from .errors import AgentError, AgentErrorType


class BackoffStrategy(str, Enum):
    LINEAR = "linear"
    EXPONENTIAL = "exponential"
    FIBONACCI = "fibonacci"


class RetryCondition(Protocol):
    """Custom retry predicate; overrides the built-in rules when set."""

    def __call__(self, error: AgentError, attempt: int) -> bool:
        ...


DEFAULT_RETRYABLE_ERRORS = frozenset({
    AgentErrorType.NETWORK_ERROR,
    AgentErrorType.QUOTA_ERROR,
    AgentErrorType.UNKNOWN_ERROR,
})

# Never retried, whatever the retryable set says
NON_RETRYABLE_ERRORS = frozenset({
    AgentErrorType.CONTENT_FILTER,
    AgentErrorType.PARSING_ERROR,
    AgentErrorType.CONTEXT_TOO_LONG,
})

# Quota errors are only retried for the first attempts
QUOTA_RETRY_LIMIT = 2


@dataclass
class RetryConfig:
    max_retries: int = 3
    base_delay: float = 1.0             # Seconds
    max_delay: float = 30.0             # Seconds
    backoff_strategy: BackoffStrategy = BackoffStrategy.EXPONENTIAL
    backoff_multiplier: float = 2.0
    jitter_factor: float = 0.1
    retryable_errors: Set[AgentErrorType] = field(
        default_factory=lambda: set(DEFAULT_RETRYABLE_ERRORS)
    )
    custom_retry_condition: Optional[RetryCondition] = None


def fibonacci(n: int) -> int:
    """fib(1) = fib(2) = 1."""
    if n <= 1:
        return 1
    previous, current = 1, 1
    for _ in range(n - 2):
        previous, current = current, previous + current
    return current


class RetryController:
    """
    Decides whether a failed attempt is retried and how long to wait.

    Attempts are 1-based: ``attempt`` is the number of the attempt that
    just failed.
    """

    def __init__(self, config: Optional[RetryConfig] = None):
        self.config = config or RetryConfig()

    def should_retry(self, error: AgentError, attempt: int) -> bool:
        """Determine if an error should be retried."""
        if self.config.custom_retry_condition is not None:
            return bool(self.config.custom_retry_condition(error, attempt))

        if error.kind not in self.config.retryable_errors:
            return False

        if error.kind == AgentErrorType.QUOTA_ERROR:
            return attempt <= QUOTA_RETRY_LIMIT

        return error.kind not in NON_RETRYABLE_ERRORS

    def base_delay_for(self, attempt: int) -> float:
        """Delay before jitter and clamping."""
        config = self.config
        if config.backoff_strategy == BackoffStrategy.LINEAR:
            return config.base_delay * attempt
        if config.backoff_strategy == BackoffStrategy.FIBONACCI:
            return config.base_delay * fibonacci(attempt)
        return config.base_delay * config.backoff_multiplier ** (attempt - 1)

    def calculate_delay(self, attempt: int) -> float:
        """Calculate delay after the given failed attempt, with jitter."""
        delay = self.base_delay_for(attempt)

        # Add jitter to prevent thundering herd
        delay += delay * self.config.jitter_factor * random.random()

        return min(delay, self.config.max_delay)
