"""
Graceful degradation for agent operations.

When retries are exhausted (or the breaker is open) the fallback handler
produces a labelled degraded response instead of surfacing the failure.
If the fallback itself fails, the original classified error is raised.
"""

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, Set

from ..models.context import AgentContext
from ..models.response import AgentResponse, Evaluation
from ..observability.monitor import ErrorMonitor
from .errors import AgentError, AgentErrorType

logger = logging.getLogger(__name__)


class ResponseGenerator(Protocol):
    """Builds a degraded response; may be sync or async."""

    def __call__(self, context: AgentContext, error: AgentError) -> Any:
        ...


class QualityChecker(Protocol):
    """Scores a fallback response; higher is better."""

    def __call__(self, response: Any) -> float:
        ...


FALLBACK_MESSAGE = (
    "Sorry, the tutor is having some trouble right now. I can still help, "
    "but this answer may not include a full analysis. Please try again in a "
    "moment or rephrase your question."
)


class DefaultFallbackGenerator:
    """Generic apology that keeps the student at their current level."""

    def __init__(self, message: str = FALLBACK_MESSAGE):
        self.message = message

    def __call__(self, context: AgentContext, error: AgentError) -> AgentResponse:
        return AgentResponse(
            content=self.message,
            suggested_level=context.dialogue.level,
            concepts=[],
            evaluation=Evaluation(
                understanding=50,
                can_progress=False,
                weak_points=["Tutor temporarily unavailable"]
            ),
            cached=False,
            fallback=True,
            metadata={"fallback_reason": error.kind.value}
        )


@dataclass
class TriggerConditions:
    error_types: Set[AgentErrorType] = field(
        default_factory=lambda: {AgentErrorType.NETWORK_ERROR, AgentErrorType.QUOTA_ERROR}
    )
    timeout_threshold: float = 10.0     # Seconds an attempt may run before degrading
    consecutive_failures: int = 3


@dataclass
class QualityMetrics:
    min_quality_score: float
    quality_checker: QualityChecker


@dataclass
class FallbackConfig:
    """Fallback configuration."""
    enabled: bool = True
    response_generator: ResponseGenerator = field(default_factory=DefaultFallbackGenerator)
    trigger_conditions: TriggerConditions = field(default_factory=TriggerConditions)
    quality_metrics: Optional[QualityMetrics] = None


class FallbackHandler:
    """Decides when to degrade and produces the degraded response."""

    def __init__(self, config: Optional[FallbackConfig] = None, monitor: Optional[ErrorMonitor] = None):
        self.config = config or FallbackConfig()
        self.monitor = monitor or ErrorMonitor()

    def should_trigger(self, error: AgentError, attempt: int, elapsed: Optional[float] = None) -> bool:
        """
        Check whether a terminal failure should be answered with a fallback.

        ``elapsed`` is how long the failing attempt ran, in seconds.
        """
        if not self.config.enabled:
            return False

        conditions = self.config.trigger_conditions
        if error.kind in conditions.error_types:
            return True

        if elapsed is not None and elapsed >= conditions.timeout_threshold:
            return True

        return attempt > conditions.consecutive_failures

    async def handle(self, context: AgentContext, error: AgentError) -> Any:
        """
        Produce a fallback response for ``error``.

        Raises:
            AgentError: the original ``error`` if the generator fails or its
                response scores below the configured minimum quality
        """
        quality = self.config.quality_metrics
        try:
            response = self.config.response_generator(context, error)
            if inspect.isawaitable(response):
                response = await response
            score = quality.quality_checker(response) if quality is not None else None
        except Exception as fallback_error:
            logger.error(
                f"Fallback generator failed: {fallback_error}",
                extra={"error_kind": error.kind.value, "fallback_error": type(fallback_error).__name__}
            )
            raise error

        if quality is not None:
            if score < quality.min_quality_score:
                logger.warning(
                    "Fallback response quality too low",
                    extra={"quality_score": score, "min_quality_score": quality.min_quality_score}
                )
                raise error

        logger.warning(
            "Serving fallback response",
            extra={"error_kind": error.kind.value, "error_msg": error.message}
        )
        self.monitor.record_fallback(error)
        return response
