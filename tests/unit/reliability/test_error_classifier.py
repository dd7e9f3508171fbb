"""Unit tests for error classification."""

import asyncio
import json

import httpx
import pytest

from socratic_resilience.reliability import AgentError, AgentErrorType, ErrorClassifier
from helpers.failing_operations import MockBadRequestError, MockProviderError, MockRateLimitError


class TestErrorClassifier:
    """Test mapping of failures onto AgentErrorType."""

    @pytest.mark.parametrize("error", [
        asyncio.TimeoutError(),
        TimeoutError("read"),
        ConnectionError("reset by peer"),
        httpx.ConnectTimeout("connect"),
        httpx.ConnectError("refused"),
    ])
    def test_network_exception_types(self, error):
        assert ErrorClassifier.classify(error).kind == AgentErrorType.NETWORK_ERROR

    def test_json_decode_error_is_parsing(self):
        try:
            json.loads("{not json")
        except json.JSONDecodeError as e:
            error = e
        assert ErrorClassifier.classify(error).kind == AgentErrorType.PARSING_ERROR

    def test_status_429_is_quota(self):
        result = ErrorClassifier.classify(MockRateLimitError())
        assert result.kind == AgentErrorType.QUOTA_ERROR

    def test_rate_limit_class_name_is_quota(self):
        class RateLimitError(Exception):
            pass

        result = ErrorClassifier.classify(RateLimitError("try later"))
        assert result.kind == AgentErrorType.QUOTA_ERROR

    @pytest.mark.parametrize("message,expected", [
        ("Request timed out", AgentErrorType.NETWORK_ERROR),
        ("Quota exceeded for this month", AgentErrorType.QUOTA_ERROR),
        ("Too many requests", AgentErrorType.QUOTA_ERROR),
        ("Could not parse model output", AgentErrorType.PARSING_ERROR),
        ("Maximum context length exceeded", AgentErrorType.CONTEXT_TOO_LONG),
        ("Response blocked by content filter", AgentErrorType.CONTENT_FILTER),
        ("Invalid input: empty prompt", AgentErrorType.INVALID_INPUT),
        ("Something odd happened", AgentErrorType.UNKNOWN_ERROR),
    ])
    def test_message_patterns(self, message, expected):
        assert ErrorClassifier.classify(Exception(message)).kind == expected

    def test_pattern_priority_timeout_before_quota(self):
        result = ErrorClassifier.classify(Exception("quota check timed out"))
        assert result.kind == AgentErrorType.NETWORK_ERROR

    def test_bad_request_status_is_invalid_input(self):
        result = ErrorClassifier.classify(MockBadRequestError())
        assert result.kind == AgentErrorType.INVALID_INPUT

    def test_text_patterns_win_over_bad_request_status(self):
        result = ErrorClassifier.classify(MockProviderError("prompt exceeds context length", 400))
        assert result.kind == AgentErrorType.CONTEXT_TOO_LONG

    def test_status_code_attribute(self):
        error = Exception("boom")
        error.status_code = 429
        assert ErrorClassifier.classify(error).kind == AgentErrorType.QUOTA_ERROR

    def test_agent_error_passes_through(self):
        original = AgentError(AgentErrorType.CONTENT_FILTER, "blocked")
        assert ErrorClassifier.classify(original) is original

    def test_cause_and_context_preserved(self):
        cause = ValueError("weird")
        result = ErrorClassifier.classify(cause, context={"attempt": 2})

        assert result.cause is cause
        assert result.message == "weird"
        assert result.context == {"attempt": 2}

    def test_empty_message_uses_type_name(self):
        result = ErrorClassifier.classify(RuntimeError())
        assert result.message == "RuntimeError"

    def test_non_exception_value(self):
        result = ErrorClassifier.classify("json payload truncated")
        assert result.kind == AgentErrorType.PARSING_ERROR
        assert result.cause is None


class TestAgentError:
    """Test AgentError behaviour."""

    def test_attributes_are_read_only(self):
        error = AgentError(AgentErrorType.NETWORK_ERROR, "down")
        with pytest.raises(AttributeError):
            error.kind = AgentErrorType.UNKNOWN_ERROR

    def test_context_is_copied(self):
        error = AgentError(AgentErrorType.NETWORK_ERROR, "down", context={"a": 1})
        error.context["a"] = 2
        assert error.context == {"a": 1}

    def test_to_dict(self):
        error = AgentError(AgentErrorType.QUOTA_ERROR, "slow down", cause=MockRateLimitError())
        assert error.to_dict() == {
            "kind": "quota_error",
            "message": "slow down",
            "cause": "MockRateLimitError",
            "context": {},
        }
