"""
Structured logging for the resilience layer.

Log lines carry ``[key=value ...]`` prefixes with the component name and,
where known, the agent and operation identifiers.
"""

import logging
import time
import uuid
from contextlib import contextmanager
from typing import Optional

DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str = "INFO", fmt: str = DEFAULT_FORMAT):
    """Configure the ``socratic_resilience`` logger hierarchy."""
    root = logging.getLogger("socratic_resilience")
    root.setLevel(level.upper())
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt))
        root.addHandler(handler)


class ResilienceLogger:
    """Structured logger for one resilience component."""

    def __init__(self, component: str):
        """
        Initialize logger for a component.

        Args:
            component: Component name (e.g., "pipeline", "cache")
        """
        self.component = component
        self.logger = logging.getLogger(f"socratic_resilience.{component}")

    def _format_message(self, message: str, **kwargs) -> str:
        """Format message with structured fields."""
        fields = [f"component={self.component}"]

        for key, value in kwargs.items():
            if value is not None:
                fields.append(f"{key}={value}")

        return f"[{' '.join(fields)}] {message}"

    def debug(self, message: str, **kwargs):
        self.logger.debug(self._format_message(message, **kwargs))

    def info(self, message: str, **kwargs):
        self.logger.info(self._format_message(message, **kwargs))

    def warning(self, message: str, **kwargs):
        self.logger.warning(self._format_message(message, **kwargs))

    def error(self, message: str, error: Optional[BaseException] = None, **kwargs):
        """Log error message with structured fields."""
        if error is not None:
            kwargs['error_type'] = type(error).__name__
            kwargs['error_msg'] = str(error)
        self.logger.error(self._format_message(message, **kwargs))

    @contextmanager
    def track_operation(self, operation_id: str, agent_id: str, request_id: Optional[str] = None):
        """
        Context manager to track an invocation's timing and log key events.

        Yields:
            Dict with request metadata including request_id
        """
        if request_id is None:
            request_id = str(uuid.uuid4())[:8]

        start_time = time.time()
        self.debug(
            "Starting operation",
            agent_id=agent_id,
            operation_id=operation_id,
            request_id=request_id
        )

        metadata = {
            'request_id': request_id,
            'agent_id': agent_id,
            'operation_id': operation_id,
            'start_time': start_time
        }

        try:
            yield metadata

            duration = time.time() - start_time
            self.info(
                "Completed operation",
                agent_id=agent_id,
                operation_id=operation_id,
                request_id=request_id,
                attempts=metadata.get('attempts'),
                fallback=metadata.get('used_fallback') or None,
                duration_ms=int(duration * 1000)
            )

        except Exception as e:
            duration = time.time() - start_time
            self.error(
                "Failed operation",
                agent_id=agent_id,
                operation_id=operation_id,
                request_id=request_id,
                attempts=metadata.get('attempts'),
                duration_ms=int(duration * 1000),
                error=e
            )
            raise
