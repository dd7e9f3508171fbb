"""
Metrics and alert models for the resilience layer.

These are plain dataclasses so hooks receive cheap, serialisable copies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, TYPE_CHECKING
from enum import Enum
import time

if TYPE_CHECKING:
    from ..reliability.errors import AgentErrorType


class AlertType(str, Enum):
    """Kinds of alert raised by the monitor."""
    HIGH_ERROR_RATE = "high_error_rate"
    CIRCUIT_BREAKER_OPEN = "circuit_breaker_open"
    FALLBACK_ACTIVATED = "fallback_activated"


class AlertSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass
class ErrorMetrics:
    """Aggregate error counters for one pipeline."""
    total_requests: int = 0
    total_errors: int = 0
    errors_by_type: Dict[AgentErrorType, int] = field(default_factory=dict)
    avg_retry_count: float = 0.0
    successful_recoveries: int = 0
    fallback_triggers: int = 0

    @property
    def error_rate(self) -> float:
        """Errors per attempt; 0 before the first attempt."""
        if self.total_requests == 0:
            return 0.0
        return self.total_errors / self.total_requests

    def copy(self) -> ErrorMetrics:
        return ErrorMetrics(
            total_requests=self.total_requests,
            total_errors=self.total_errors,
            errors_by_type=dict(self.errors_by_type),
            avg_retry_count=self.avg_retry_count,
            successful_recoveries=self.successful_recoveries,
            fallback_triggers=self.fallback_triggers,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert metrics to dictionary format."""
        return {
            "total_requests": self.total_requests,
            "total_errors": self.total_errors,
            "error_rate": self.error_rate,
            "errors_by_type": {kind.value: count for kind, count in self.errors_by_type.items()},
            "avg_retry_count": self.avg_retry_count,
            "successful_recoveries": self.successful_recoveries,
            "fallback_triggers": self.fallback_triggers,
        }


@dataclass
class ErrorAlert:
    """Alert delivered to the configured alert receiver."""
    type: AlertType
    message: str
    severity: AlertSeverity
    metrics: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "message": self.message,
            "severity": self.severity.value,
            "metrics": self.metrics,
            "timestamp": self.timestamp,
        }


@dataclass
class ErrorContext:
    """Where a reported error happened."""
    agent_id: str
    operation_id: str
    attempt: int
    start_time: float = field(default_factory=time.time)
    metadata: Dict[str, Any] = field(default_factory=dict)
    retry_state: Optional[Dict[str, Any]] = None
