"""
Socratic Resilience - resilient invocation core for a Socratic tutoring agent.

This package wraps calls to a text-generation provider with:
- Error classification
- Retries with linear, exponential or fibonacci backoff
- A circuit breaker
- Fallback (degraded) responses
- Error metrics and alerting
- A similarity cache with exact and fuzzy lookup and pluggable eviction
"""

__version__ = "0.1.0"

from .api.client import InvocationResult, ResilientTutorClient, ResponseSource
from .cache import CacheConfig, EvictionPolicy, SimilarityCache, SimilarityCalculator
from .config import ResilienceSettings
from .models import (
    AgentContext,
    AgentResponse,
    CaseInfo,
    DialogueLevel,
    DialogueState,
    Evaluation,
)
from .observability import AlertingConfig, ErrorAlert, ErrorMetrics, MonitoringConfig
from .reliability import (
    AgentError,
    AgentErrorType,
    BackoffStrategy,
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitOpenError,
    CircuitState,
    ErrorClassifier,
    FallbackConfig,
    ResilientExecutor,
    RetryConfig,
    RetryController,
)

__all__ = [
    "InvocationResult",
    "ResilientTutorClient",
    "ResponseSource",
    "CacheConfig",
    "EvictionPolicy",
    "SimilarityCache",
    "SimilarityCalculator",
    "ResilienceSettings",
    "AgentContext",
    "AgentResponse",
    "CaseInfo",
    "DialogueLevel",
    "DialogueState",
    "Evaluation",
    "AlertingConfig",
    "ErrorAlert",
    "ErrorMetrics",
    "MonitoringConfig",
    "AgentError",
    "AgentErrorType",
    "BackoffStrategy",
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitOpenError",
    "CircuitState",
    "ErrorClassifier",
    "FallbackConfig",
    "ResilientExecutor",
    "RetryConfig",
    "RetryController",
]
