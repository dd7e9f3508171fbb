"""Reliability layer for agent invocations.

This layer handles:
- Typed agent errors and their classification
- Retry decisions with linear, exponential and fibonacci backoff
- Per-operation retry state tracking
- Circuit breaker pattern
- Fallback (graceful degradation) responses
- The execution pipeline combining all of the above
"""

from .errors import AgentError, AgentErrorType, CircuitOpenError, ConfigurationError
from .error_classifier import ErrorClassifier
from .retry import BackoffStrategy, RetryCondition, RetryConfig, RetryController
from .state import RetryState, RetryStateManager
from .circuit_breaker import (
    CircuitBreaker, CircuitBreakerConfig, CircuitBreakerState, CircuitState
)
from .fallback import (
    DefaultFallbackGenerator, FallbackConfig, FallbackHandler,
    QualityChecker, QualityMetrics, ResponseGenerator, TriggerConditions
)
from .pipeline import ExecutionOutcome, ResilientExecutor

__all__ = [
    "AgentError",
    "AgentErrorType",
    "CircuitOpenError",
    "ConfigurationError",
    "ErrorClassifier",
    "BackoffStrategy",
    "RetryCondition",
    "RetryConfig",
    "RetryController",
    "RetryState",
    "RetryStateManager",
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitBreakerState",
    "CircuitState",
    "DefaultFallbackGenerator",
    "FallbackConfig",
    "FallbackHandler",
    "QualityChecker",
    "QualityMetrics",
    "ResponseGenerator",
    "TriggerConditions",
    "ExecutionOutcome",
    "ResilientExecutor",
]
