"""
Resilient execution pipeline for agent operations.

Combines the circuit breaker, retry controller, fallback handler and error
monitor around a single unit of work: an async callable that talks to the
generation provider.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Generic, List, Optional, TypeVar

from ..models.context import AgentContext
from ..observability.logging import ResilienceLogger
from ..observability.models import AlertSeverity, AlertType, ErrorContext, ErrorMetrics
from ..observability.monitor import ErrorMonitor, MonitoringConfig
from .circuit_breaker import CircuitBreaker, CircuitBreakerConfig, CircuitState
from .error_classifier import ErrorClassifier
from .errors import AgentError, AgentErrorType, CircuitOpenError
from .fallback import FallbackConfig, FallbackHandler
from .retry import RetryConfig, RetryController
from .state import RetryStateManager, retry_key

logger = logging.getLogger(__name__)

T = TypeVar('T')

Operation = Callable[[], Awaitable[T]]


@dataclass
class ExecutionOutcome(Generic[T]):
    """Result of a pipeline run."""
    result: T
    attempts: int
    used_fallback: bool = False


class ResilientExecutor:
    """
    Executes agent operations with retries, circuit breaking and fallback.

    One executor owns one circuit breaker, one error monitor and one retry
    state table; all calls made through it share them.
    """

    RETRY_SWEEP_INTERVAL = 60.0
    RETRY_STATE_MAX_IDLE = 300.0
    BREAKER_REFRESH_INTERVAL = 10.0

    def __init__(
        self,
        retry_config: Optional[RetryConfig] = None,
        circuit_breaker_config: Optional[CircuitBreakerConfig] = None,
        fallback_config: Optional[FallbackConfig] = None,
        monitoring_config: Optional[MonitoringConfig] = None,
        operation_timeout: Optional[float] = None
    ):
        """
        Initialize the pipeline.

        Args:
            retry_config: Retry budget and backoff
            circuit_breaker_config: Breaker thresholds
            fallback_config: Degradation settings
            monitoring_config: Metrics hooks and alerting
            operation_timeout: Per-attempt timeout in seconds; defaults to the
                breaker timeout
        """
        self.monitor = ErrorMonitor(monitoring_config)
        self.retry_controller = RetryController(retry_config)
        self.circuit_breaker = CircuitBreaker(circuit_breaker_config, on_open=self._on_circuit_open)
        self.fallback_handler = FallbackHandler(fallback_config, self.monitor)
        self.retry_states = RetryStateManager()
        self.operation_timeout = operation_timeout
        self._log = ResilienceLogger("pipeline")
        self._maintenance_tasks: List[asyncio.Task] = []

    async def execute(
        self,
        operation: Operation,
        context: AgentContext,
        operation_id: str = "default",
        agent_id: str = "agent"
    ) -> Any:
        """
        Execute an operation and return its result (or a fallback response).

        Raises:
            CircuitOpenError: If the breaker is open and fallback is disabled
            AgentError: If all attempts fail and no fallback applies
        """
        outcome = await self.run(operation, context, operation_id, agent_id)
        return outcome.result

    async def run(
        self,
        operation: Operation,
        context: AgentContext,
        operation_id: str = "default",
        agent_id: str = "agent"
    ) -> ExecutionOutcome:
        """Same as ``execute`` but reports attempts and whether fallback was used."""
        key = retry_key(agent_id, operation_id)
        error_context = {"agent_id": agent_id, "operation_id": operation_id}

        with self._log.track_operation(operation_id, agent_id) as tracking:
            if not await self.circuit_breaker.allow_request():
                error = CircuitOpenError(context=error_context)
                if not self.fallback_handler.config.enabled:
                    raise error
                result = await self.fallback_handler.handle(context, error)
                tracking['attempts'] = 0
                tracking['used_fallback'] = True
                return ExecutionOutcome(result=result, attempts=0, used_fallback=True)

            # A half-open admission is handed back if the call never reports
            half_open_admission = self.circuit_breaker.get_state() == CircuitState.HALF_OPEN
            outcome_recorded = False
            try:
                max_retries = self.retry_controller.config.max_retries
                for attempt in range(1, max_retries + 2):
                    tracking['attempts'] = attempt
                    self.monitor.record_attempt()
                    start_time = time.time()
                    attempt_context = {**error_context, "attempt": attempt}

                    try:
                        result = await self._run_with_timeout(operation, attempt_context)
                    except Exception as e:
                        error = ErrorClassifier.classify(e, context=attempt_context)
                        await self.circuit_breaker.record_failure()
                        outcome_recorded = True

                        state = self.retry_states.get_or_create(key)
                        state.record_error(error, attempt)
                        self.monitor.record_error(error, ErrorContext(
                            agent_id=agent_id,
                            operation_id=operation_id,
                            attempt=attempt,
                            start_time=start_time,
                            metadata={"level": int(context.level), "case_id": context.case_id},
                            retry_state=state.get_summary()
                        ))

                        if attempt <= max_retries and self.retry_controller.should_retry(error, attempt):
                            delay = self.retry_controller.calculate_delay(attempt)
                            state.schedule_retry(delay)
                            self._log.warning(
                                "Retrying operation",
                                agent_id=agent_id,
                                operation_id=operation_id,
                                attempt=attempt,
                                error_kind=error.kind.value,
                                delay_ms=int(delay * 1000)
                            )
                            await self._delay(delay)
                            continue

                        elapsed = time.time() - start_time
                        if self.fallback_handler.should_trigger(error, attempt, elapsed):
                            result = await self.fallback_handler.handle(context, error)
                            tracking['used_fallback'] = True
                            return ExecutionOutcome(result=result, attempts=attempt, used_fallback=True)

                        raise error

                    await self.circuit_breaker.record_success()
                    outcome_recorded = True
                    self.retry_states.remove_state(key)
                    self.monitor.record_success(retries=attempt - 1)
                    return ExecutionOutcome(result=result, attempts=attempt)
            finally:
                if half_open_admission and not outcome_recorded:
                    await self.circuit_breaker.release_request()

    async def _run_with_timeout(self, operation: Operation, error_context: Dict[str, Any]) -> Any:
        timeout = self.operation_timeout
        if timeout is None:
            timeout = self.circuit_breaker.config.timeout
        try:
            return await asyncio.wait_for(operation(), timeout)
        except asyncio.TimeoutError as e:
            raise AgentError(
                AgentErrorType.NETWORK_ERROR, "Operation timeout", cause=e, context=error_context
            ) from e


    async def _delay(self, seconds: float):
        await asyncio.sleep(seconds)

    def _on_circuit_open(self, breaker: CircuitBreaker):
        self.monitor.trigger_alert(
            AlertType.CIRCUIT_BREAKER_OPEN,
            f"Circuit breaker {breaker.name} opened after "
            f"{breaker.snapshot()['failure_count']} failures",
            AlertSeverity.HIGH
        )

    # Maintenance

    async def start(self):
        """Start background maintenance (retry-state sweep, breaker refresh)."""
        if self._maintenance_tasks:
            return
        self._maintenance_tasks = [
            asyncio.create_task(self._periodic(self.RETRY_SWEEP_INTERVAL, self.sweep_retry_states)),
            asyncio.create_task(self._periodic(self.BREAKER_REFRESH_INTERVAL, self.circuit_breaker.refresh)),
        ]

    async def stop(self):
        """Stop background maintenance."""
        tasks, self._maintenance_tasks = self._maintenance_tasks, []
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def __aenter__(self) -> ResilientExecutor:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.stop()

    async def sweep_retry_states(self) -> int:
        removed = self.retry_states.cleanup_expired(self.RETRY_STATE_MAX_IDLE)
        if removed:
            logger.debug(f"Removed {removed} idle retry states")
        return removed

    async def _periodic(self, interval: float, job: Callable[[], Awaitable[Any]]):
        while True:
            try:
                await asyncio.sleep(interval)
                await job()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in maintenance job: {e}")

    # Introspection and control

    def get_metrics(self) -> ErrorMetrics:
        return self.monitor.get_metrics()

    def get_circuit_breaker_state(self) -> Dict[str, Any]:
        return self.circuit_breaker.snapshot()

    def get_retry_stats(self) -> Dict[str, Any]:
        return self.retry_states.get_summary()

    def is_healthy(self) -> bool:
        return self.circuit_breaker.get_state() != CircuitState.OPEN

    async def reset_circuit_breaker(self):
        await self.circuit_breaker.reset()

    def reset_metrics(self):
        self.monitor.reset()

    def update_config(
        self,
        retry_config: Optional[RetryConfig] = None,
        circuit_breaker_config: Optional[CircuitBreakerConfig] = None,
        fallback_config: Optional[FallbackConfig] = None,
        monitoring_config: Optional[MonitoringConfig] = None
    ):
        """Replace component configurations; state is kept."""
        if retry_config is not None:
            self.retry_controller.config = retry_config
        if circuit_breaker_config is not None:
            self.circuit_breaker.config = circuit_breaker_config
        if fallback_config is not None:
            self.fallback_handler.config = fallback_config
        if monitoring_config is not None:
            self.monitor.config = monitoring_config
