"""
Circuit breaker for the generation provider.

Fails fast while the provider is unhealthy and tests recovery with a
bounded number of half-open requests.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple
import asyncio
import inspect
import logging
import time

logger = logging.getLogger(__name__)


class CircuitState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"      # Normal operation
    OPEN = "open"          # Failing, reject requests
    HALF_OPEN = "half_open"  # Testing recovery


@dataclass
class CircuitBreakerConfig:
    """Circuit breaker configuration."""
    enabled: bool = True
    failure_threshold: int = 5          # Failures before opening
    success_threshold: int = 3          # Successes to close from half-open
    timeout: float = 60.0               # Seconds before attempting recovery
    monitoring_window: float = 300.0    # Seconds of request history kept
    half_open_max_requests: int = 3     # Max half-open requests in flight


@dataclass
class CircuitBreakerState:
    """Mutable breaker state."""
    state: CircuitState = CircuitState.CLOSED
    failure_count: int = 0
    success_count: int = 0
    last_state_change_time: float = field(default_factory=time.time)
    request_window: List[Tuple[float, bool]] = field(default_factory=list)
    half_open_requests: int = 0

    def prune_window(self, window_seconds: float, now: float):
        cutoff = now - window_seconds
        self.request_window = [
            event for event in self.request_window if event[0] >= cutoff
        ]


class CircuitBreaker:
    """
    Circuit breaker guarding calls to the generation provider.

    The breaker does not run operations itself: callers ask
    ``allow_request()`` before a call and report the outcome with
    ``record_success()`` / ``record_failure()``.
    """

    def __init__(
        self,
        config: Optional[CircuitBreakerConfig] = None,
        name: str = "provider",
        on_open: Optional[Callable] = None
    ):
        self.name = name
        self.config = config or CircuitBreakerConfig()
        self.on_open = on_open
        self._state = CircuitBreakerState()
        self._state_lock = asyncio.Lock()

    async def allow_request(self) -> bool:
        """Check whether a request may proceed, counting in-flight half-open requests."""
        if not self.config.enabled:
            return True

        async with self._state_lock:
            self._refresh_locked()

            if self._state.state == CircuitState.CLOSED:
                return True

            if self._state.state == CircuitState.HALF_OPEN:
                if self._state.half_open_requests < self.config.half_open_max_requests:
                    self._state.half_open_requests += 1
                    return True
                return False

            return False

    async def record_success(self):
        """Record successful call."""
        if not self.config.enabled:
            return

        async with self._state_lock:
            self._record_event(True)

            if self._state.state == CircuitState.CLOSED:
                self._state.failure_count = max(0, self._state.failure_count - 1)
            elif self._state.state == CircuitState.HALF_OPEN:
                self._free_half_open_slot()
                self._state.success_count += 1
                logger.info(
                    f"Circuit breaker {self.name} recorded success",
                    extra={
                        "circuit_breaker": self.name,
                        "state": self._state.state.value,
                        "success_count": self._state.success_count
                    }
                )
                if self._state.success_count >= self.config.success_threshold:
                    self._transition_to_closed()

    async def record_failure(self):
        """Record failed call."""
        if not self.config.enabled:
            return

        async with self._state_lock:
            self._record_event(False)
            self._state.failure_count += 1

            if self._state.state == CircuitState.CLOSED:
                if self._state.failure_count >= self.config.failure_threshold:
                    await self._transition_to_open()
            elif self._state.state == CircuitState.HALF_OPEN:
                # Single failure in half-open goes back to open
                await self._transition_to_open()

            logger.warning(
                f"Circuit breaker {self.name} recorded failure",
                extra={
                    "circuit_breaker": self.name,
                    "state": self._state.state.value,
                    "failure_count": self._state.failure_count
                }
            )

    async def release_request(self):
        """Give back a half-open admission whose call ended without an outcome."""
        if not self.config.enabled:
            return

        async with self._state_lock:
            if self._state.state == CircuitState.HALF_OPEN:
                self._free_half_open_slot()

    async def refresh(self):
        """Apply time-based transitions (OPEN -> HALF_OPEN) and prune the window."""
        async with self._state_lock:
            self._refresh_locked()

    async def reset(self):
        """Reset circuit breaker to closed state."""
        async with self._state_lock:
            self._state = CircuitBreakerState()
            logger.info(f"Circuit breaker {self.name} reset")

    def get_state(self) -> CircuitState:
        """Get current circuit state."""
        return self._state.state

    def is_open(self) -> bool:
        return self._state.state == CircuitState.OPEN

    def snapshot(self) -> Dict[str, Any]:
        """Point-in-time copy of the breaker state."""
        window = self._state.request_window
        failures = sum(1 for _, success in window if not success)
        return {
            "name": self.name,
            "enabled": self.config.enabled,
            "state": self._state.state.value,
            "failure_count": self._state.failure_count,
            "success_count": self._state.success_count,
            "half_open_requests": self._state.half_open_requests,
            "last_state_change_time": self._state.last_state_change_time,
            "window_requests": len(window),
            "window_failures": failures,
        }

    def _record_event(self, success: bool):
        now = time.time()
        self._state.request_window.append((now, success))
        self._state.prune_window(self.config.monitoring_window, now)

    def _free_half_open_slot(self):
        self._state.half_open_requests = max(0, self._state.half_open_requests - 1)

    def _refresh_locked(self):
        now = time.time()
        self._state.prune_window(self.config.monitoring_window, now)
        if (
            self._state.state == CircuitState.OPEN
            and now - self._state.last_state_change_time >= self.config.timeout
        ):
            self._transition_to_half_open()

    async def _transition_to_open(self):
        """Transition to OPEN state."""
        previous_state = self._state.state
        self._state.state = CircuitState.OPEN
        self._state.last_state_change_time = time.time()
        self._state.success_count = 0
        self._state.half_open_requests = 0

        logger.error(
            f"Circuit breaker {self.name} opened",
            extra={
                "circuit_breaker": self.name,
                "previous_state": previous_state.value,
                "failure_count": self._state.failure_count
            }
        )

        if self.on_open:
            try:
                await self._call_callback(self.on_open)
            except Exception as e:
                logger.error(f"Error in on_open callback: {e}")

    def _transition_to_closed(self):
        """Transition to CLOSED state."""
        previous_state = self._state.state
        self._state.state = CircuitState.CLOSED
        self._state.last_state_change_time = time.time()
        self._state.failure_count = 0
        self._state.success_count = 0
        self._state.half_open_requests = 0

        logger.info(
            f"Circuit breaker {self.name} closed",
            extra={
                "circuit_breaker": self.name,
                "previous_state": previous_state.value
            }
        )

    def _transition_to_half_open(self):
        """Transition to HALF_OPEN state."""
        previous_state = self._state.state
        self._state.state = CircuitState.HALF_OPEN
        self._state.last_state_change_time = time.time()
        self._state.success_count = 0
        self._state.half_open_requests = 0

        logger.info(
            f"Circuit breaker {self.name} half-open",
            extra={
                "circuit_breaker": self.name,
                "previous_state": previous_state.value,
                "permits": self.config.half_open_max_requests
            }
        )

    async def _call_callback(self, callback: Callable):
        """Call callback, handling both sync and async."""
        if inspect.iscoroutinefunction(callback):
            await callback(self)
        else:
            callback(self)
