"""Observability layer: error metrics, alerting and structured logging."""

from .logging import ResilienceLogger, configure_logging
from .models import AlertSeverity, AlertType, ErrorAlert, ErrorContext, ErrorMetrics
from .monitor import (
    AlertingConfig,
    AlertReceiver,
    ErrorMonitor,
    ErrorReporter,
    MetricsCollectorHook,
    MonitoringConfig,
)

__all__ = [
    "ResilienceLogger",
    "configure_logging",
    "AlertSeverity",
    "AlertType",
    "ErrorAlert",
    "ErrorContext",
    "ErrorMetrics",
    "AlertingConfig",
    "AlertReceiver",
    "ErrorMonitor",
    "ErrorReporter",
    "MetricsCollectorHook",
    "MonitoringConfig",
]
