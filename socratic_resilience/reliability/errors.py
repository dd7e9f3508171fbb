"""
Typed error definitions for agent invocations.

Every failure that leaves the execution pipeline is an ``AgentError``
carrying its classified kind, a message, the underlying cause and the
context it was raised in.
"""

from enum import Enum
from typing import Any, Dict, Optional


class AgentErrorType(str, Enum):
    """Kinds of failure the pipeline distinguishes."""
    NETWORK_ERROR = "network_error"
    QUOTA_ERROR = "quota_error"
    PARSING_ERROR = "parsing_error"
    CONTEXT_TOO_LONG = "context_too_long"
    CONTENT_FILTER = "content_filter"
    INVALID_INPUT = "invalid_input"
    UNKNOWN_ERROR = "unknown_error"


class AgentError(Exception):
    """
    Classified failure of an agent operation.

    Attributes are read-only once constructed.

    Attributes:
        kind: Classified error type
        message: Human readable message
        cause: The original failure, if any
        context: Extra data describing where the failure happened
    """

    def __init__(
        self,
        kind: AgentErrorType,
        message: str,
        cause: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self._kind = kind
        self._message = message
        self._cause = cause
        self._context = dict(context or {})

    @property
    def kind(self) -> AgentErrorType:
        return self._kind

    @property
    def message(self) -> str:
        return self._message

    @property
    def cause(self) -> Optional[BaseException]:
        return self._cause

    @property
    def context(self) -> Dict[str, Any]:
        return dict(self._context)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for logging and HTTP responses."""
        return {
            "kind": self._kind.value,
            "message": self._message,
            "cause": type(self._cause).__name__ if self._cause else None,
            "context": self.context,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self._kind.value!r}, message={self._message!r})"


class CircuitOpenError(AgentError):
    """Raised when the circuit breaker rejects a call before any attempt."""

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            AgentErrorType.NETWORK_ERROR,
            "Circuit breaker is open",
            context=context
        )


class ConfigurationError(ValueError):
    """Raised for invalid resilience settings."""
