"""
Error monitor owning the pipeline's ErrorMetrics and alert dispatch.

Hooks (error reporter, metrics collector, alert receiver) are invoked
synchronously; a hook that raises is logged and otherwise ignored so
monitoring can never change the outcome of an agent call.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Protocol, TYPE_CHECKING

from .models import AlertSeverity, AlertType, ErrorAlert, ErrorContext, ErrorMetrics

if TYPE_CHECKING:
    from ..reliability.errors import AgentError


logger = logging.getLogger(__name__)


class ErrorReporter(Protocol):
    """Receives every classified error."""

    def __call__(self, error: AgentError, context: ErrorContext) -> None:
        ...


class MetricsCollectorHook(Protocol):
    """Receives a metrics snapshot after every successful call."""

    def __call__(self, metrics: ErrorMetrics) -> None:
        ...


class AlertReceiver(Protocol):
    def __call__(self, alert: ErrorAlert) -> None:
        ...


@dataclass
class AlertingConfig:
    """Alerting configuration."""
    error_rate_threshold: float = 0.5
    alert_interval: float = 300.0       # Seconds between high_error_rate alerts
    alert_receiver: Optional[AlertReceiver] = None


@dataclass
class MonitoringConfig:
    """Monitoring configuration."""
    enabled: bool = True
    error_reporter: Optional[ErrorReporter] = None
    metrics_collector: Optional[MetricsCollectorHook] = None
    alerting: Optional[AlertingConfig] = field(default_factory=AlertingConfig)


class ErrorMonitor:
    """
    Tracks error metrics and raises alerts.

    Attempts are counted through ``record_attempt``; outcomes through
    ``record_error`` / ``record_success`` / ``record_fallback``.
    """

    def __init__(self, config: Optional[MonitoringConfig] = None):
        self.config = config or MonitoringConfig()
        self.metrics = ErrorMetrics()
        self._last_alert_time: Dict[AlertType, float] = {}

    def record_attempt(self):
        self.metrics.total_requests += 1

    def record_error(self, error: AgentError, context: ErrorContext):
        """Record a failed attempt and check the error-rate alert."""
        self.metrics.total_errors += 1
        self.metrics.errors_by_type[error.kind] = self.metrics.errors_by_type.get(error.kind, 0) + 1

        if self.config.enabled and self.config.error_reporter:
            self._call_hook("error_reporter", self.config.error_reporter, error, context)

        self._check_error_rate_alert()

    def record_success(self, retries: int = 0):
        """
        Record a successful call.

        Args:
            retries: Failed attempts that preceded the success
        """
        if retries > 0:
            self.metrics.successful_recoveries += 1
            n = self.metrics.successful_recoveries
            self.metrics.avg_retry_count += (retries - self.metrics.avg_retry_count) / n

        if self.config.enabled and self.config.metrics_collector:
            self._call_hook("metrics_collector", self.config.metrics_collector, self.metrics.copy())

    def record_fallback(self, error: AgentError):
        """Record a fallback response that was actually served."""
        self.metrics.fallback_triggers += 1
        self.trigger_alert(
            AlertType.FALLBACK_ACTIVATED,
            f"Fallback activated after {error.kind.value}: {error.message}",
            AlertSeverity.MEDIUM
        )

    def trigger_alert(self, alert_type: AlertType, message: str, severity: AlertSeverity):
        """Send an alert to the configured receiver."""
        alerting = self.config.alerting
        if not self.config.enabled or alerting is None or alerting.alert_receiver is None:
            return

        alert = ErrorAlert(
            type=alert_type,
            message=message,
            severity=severity,
            metrics=self.metrics.to_dict()
        )
        self._last_alert_time[alert_type] = alert.timestamp
        self._call_hook("alert_receiver", alerting.alert_receiver, alert)

    def get_metrics(self) -> ErrorMetrics:
        return self.metrics.copy()

    def reset(self):
        self.metrics = ErrorMetrics()
        self._last_alert_time.clear()

    def _check_error_rate_alert(self):
        alerting = self.config.alerting
        if alerting is None:
            return

        if self.metrics.error_rate > alerting.error_rate_threshold:
            last_alert = self._last_alert_time.get(AlertType.HIGH_ERROR_RATE)
            if last_alert is None or time.time() - last_alert > alerting.alert_interval:
                self.trigger_alert(
                    AlertType.HIGH_ERROR_RATE,
                    f"Error rate exceeded threshold: {self.metrics.error_rate * 100:.2f}%",
                    AlertSeverity.HIGH
                )

    def _call_hook(self, name: str, hook: Callable[..., Any], *args):
        try:
            hook(*args)
        except Exception as e:
            logger.error(
                f"Error in {name} hook: {e}",
                extra={"hook": name, "error_type": type(e).__name__}
            )
