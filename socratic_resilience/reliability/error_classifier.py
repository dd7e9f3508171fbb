"""
Error classification for agent operations.

Maps arbitrary failures raised by the generation provider (or by the
operation wrapping it) onto ``AgentErrorType`` so the retry controller,
circuit breaker and fallback handler can make consistent decisions.
"""

import asyncio
import json
from typing import Any, Dict, List, Optional

import httpx

from .errors import AgentError, AgentErrorType


class ErrorClassifier:
    """Stateless classifier turning failures into ``AgentError``."""

    # Ordered text heuristics; first match wins
    ERROR_PATTERNS: Dict[str, Dict[str, Any]] = {
        'timeout': {
            'patterns': ['timeout', 'timed out'],
            'kind': AgentErrorType.NETWORK_ERROR,
        },
        'quota': {
            'patterns': ['quota', 'rate limit', 'rate_limit', 'too many requests'],
            'kind': AgentErrorType.QUOTA_ERROR,
        },
        'parsing': {
            'patterns': ['parse', 'json'],
            'kind': AgentErrorType.PARSING_ERROR,
        },
        'context_length': {
            'patterns': ['context', 'length'],
            'kind': AgentErrorType.CONTEXT_TOO_LONG,
        },
        'content_filter': {
            'patterns': ['filter', 'content'],
            'kind': AgentErrorType.CONTENT_FILTER,
        },
        'invalid_input': {
            'patterns': ['invalid input', 'invalid argument', 'validation error'],
            'kind': AgentErrorType.INVALID_INPUT,
        },
    }

    pattern_priority: List[str] = [
        'timeout', 'quota', 'parsing', 'context_length', 'content_filter', 'invalid_input'
    ]

    NETWORK_EXCEPTIONS = (
        asyncio.TimeoutError,
        TimeoutError,
        ConnectionError,
        httpx.TimeoutException,
        httpx.NetworkError,
    )

    INVALID_INPUT_STATUS_CODES = {400, 422}

    @classmethod
    def classify(cls, error: Any, context: Optional[Dict[str, Any]] = None) -> AgentError:
        """
        Classify a failure.

        Args:
            error: Exception (or any other failure value) to classify
            context: Extra data attached to the resulting error

        Returns:
            AgentError; an AgentError input is returned unchanged
        """
        if isinstance(error, AgentError):
            return error

        cause = error if isinstance(error, BaseException) else None
        message = cls._get_message(error)
        kind = cls._classify_by_type(error)
        if kind is None:
            kind = cls._classify_by_message(message)
        if kind is None and cls._get_status_code(error) in cls.INVALID_INPUT_STATUS_CODES:
            kind = AgentErrorType.INVALID_INPUT

        return AgentError(kind or AgentErrorType.UNKNOWN_ERROR, message, cause=cause, context=context)

    @classmethod
    def _classify_by_type(cls, error: Any) -> Optional[AgentErrorType]:
        if not isinstance(error, BaseException):
            return None

        if isinstance(error, cls.NETWORK_EXCEPTIONS):
            return AgentErrorType.NETWORK_ERROR

        if isinstance(error, json.JSONDecodeError):
            return AgentErrorType.PARSING_ERROR

        # Match by name too so provider SDK errors work without importing them
        if cls._get_status_code(error) == 429 or 'RateLimit' in type(error).__name__:
            return AgentErrorType.QUOTA_ERROR

        return None

    @classmethod
    def _classify_by_message(cls, message: str) -> Optional[AgentErrorType]:
        lowered = message.lower()
        for name in cls.pattern_priority:
            rule = cls.ERROR_PATTERNS[name]
            if any(pattern in lowered for pattern in rule['patterns']):
                return rule['kind']
        return None

    @staticmethod
    def _get_status_code(error: Any) -> Optional[int]:
        status = getattr(error, 'status_code', None)
        if status is None:
            response = getattr(error, 'response', None)
            status = getattr(response, 'status_code', None)
        return status if isinstance(status, int) else None

    @staticmethod
    def _get_message(error: Any) -> str:
        if isinstance(error, BaseException):
            text = str(error)
            return text if text else type(error).__name__
        return str(error)
