"""
Retry state tracking.

One ``RetryState`` exists per ``(agent_id, operation_id)`` key between the
first failure of that key and either its next success or an idle sweep.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import time

from .errors import AgentError


def retry_key(agent_id: str, operation_id: str) -> str:
    return f"{agent_id}-{operation_id}"


@dataclass
class RetryState:
    """Failure history for one retry key."""
    attempt_count: int = 0
    first_error_time: float = field(default_factory=time.time)
    last_error_time: float = field(default_factory=time.time)
    error_history: List[AgentError] = field(default_factory=list)
    next_retry_time: Optional[float] = None

    def record_error(self, error: AgentError, attempt: int):
        """Record a failed attempt."""
        self.attempt_count = attempt
        self.last_error_time = time.time()
        self.error_history.append(error)

    def schedule_retry(self, delay: float):
        self.next_retry_time = time.time() + delay

    def idle_for(self, now: Optional[float] = None) -> float:
        return (now if now is not None else time.time()) - self.last_error_time

    def get_summary(self) -> Dict[str, Any]:
        return {
            "attempt_count": self.attempt_count,
            "first_error_time": self.first_error_time,
            "last_error_time": self.last_error_time,
            "errors": [error.kind.value for error in self.error_history],
            "next_retry_time": self.next_retry_time,
        }


class RetryStateManager:
    """Manages retry states keyed by agent and operation."""

    def __init__(self):
        self.states: Dict[str, RetryState] = {}

    def get_or_create(self, key: str) -> RetryState:
        if key not in self.states:
            self.states[key] = RetryState()
        return self.states[key]

    def get_state(self, key: str) -> Optional[RetryState]:
        return self.states.get(key)

    def remove_state(self, key: str) -> Optional[RetryState]:
        """Remove and return retry state."""
        return self.states.pop(key, None)

    def cleanup_expired(self, max_idle_seconds: float = 300.0) -> int:
        """Remove states whose last error is older than ``max_idle_seconds``."""
        now = time.time()
        expired = [
            key for key, state in self.states.items()
            if state.idle_for(now) > max_idle_seconds
        ]
        for key in expired:
            self.remove_state(key)
        return len(expired)

    def get_summary(self) -> Dict[str, Any]:
        """Get summary of all tracked retry states."""
        return {
            "active_retries": len(self.states),
            "states": {key: state.get_summary() for key, state in self.states.items()},
        }

    def __len__(self) -> int:
        return len(self.states)
