"""Unit tests for retry decisions, backoff and retry state."""

import time
from unittest.mock import patch

import pytest

from socratic_resilience.reliability import (
    AgentError,
    AgentErrorType,
    BackoffStrategy,
    RetryConfig,
    RetryController,
    RetryStateManager,
)
from socratic_resilience.reliability.retry import fibonacci
from socratic_resilience.reliability.state import retry_key


def make_error(kind: AgentErrorType) -> AgentError:
    return AgentError(kind, kind.value)


class TestShouldRetry:
    """Test retry decisions."""

    @pytest.fixture
    def controller(self):
        return RetryController(RetryConfig())

    @pytest.mark.parametrize("kind", [AgentErrorType.NETWORK_ERROR, AgentErrorType.UNKNOWN_ERROR])
    def test_retryable_kinds(self, controller, kind):
        assert controller.should_retry(make_error(kind), 1)
        assert controller.should_retry(make_error(kind), 3)

    @pytest.mark.parametrize("kind", [
        AgentErrorType.CONTENT_FILTER,
        AgentErrorType.PARSING_ERROR,
        AgentErrorType.CONTEXT_TOO_LONG,
        AgentErrorType.INVALID_INPUT,
    ])
    def test_non_retryable_kinds(self, controller, kind):
        assert not controller.should_retry(make_error(kind), 1)

    def test_quota_only_retried_for_first_two_attempts(self, controller):
        error = make_error(AgentErrorType.QUOTA_ERROR)
        assert controller.should_retry(error, 1)
        assert controller.should_retry(error, 2)
        assert not controller.should_retry(error, 3)

    def test_non_retryable_wins_over_retryable_set(self):
        config = RetryConfig(retryable_errors={AgentErrorType.PARSING_ERROR})
        controller = RetryController(config)
        assert not controller.should_retry(make_error(AgentErrorType.PARSING_ERROR), 1)

    def test_kind_outside_retryable_set(self):
        config = RetryConfig(retryable_errors={AgentErrorType.QUOTA_ERROR})
        controller = RetryController(config)
        assert not controller.should_retry(make_error(AgentErrorType.NETWORK_ERROR), 1)

    def test_custom_condition_overrides_rules(self):
        calls = []

        def condition(error, attempt):
            calls.append((error.kind, attempt))
            return True

        controller = RetryController(RetryConfig(custom_retry_condition=condition))
        assert controller.should_retry(make_error(AgentErrorType.CONTENT_FILTER), 4)
        assert calls == [(AgentErrorType.CONTENT_FILTER, 4)]


class TestBackoff:
    """Test delay calculation."""

    def test_fibonacci(self):
        assert [fibonacci(n) for n in range(1, 8)] == [1, 1, 2, 3, 5, 8, 13]

    def test_exponential(self):
        controller = RetryController(RetryConfig(base_delay=1.0, jitter_factor=0.0))
        assert [controller.calculate_delay(n) for n in (1, 2, 3, 4)] == [1.0, 2.0, 4.0, 8.0]

    def test_linear(self):
        controller = RetryController(RetryConfig(
            base_delay=0.5, backoff_strategy=BackoffStrategy.LINEAR, jitter_factor=0.0
        ))
        assert [controller.calculate_delay(n) for n in (1, 2, 3)] == [0.5, 1.0, 1.5]

    def test_fibonacci_strategy(self):
        controller = RetryController(RetryConfig(
            base_delay=1.0, backoff_strategy=BackoffStrategy.FIBONACCI, jitter_factor=0.0
        ))
        assert [controller.calculate_delay(n) for n in (1, 2, 3, 4, 5)] == [1.0, 1.0, 2.0, 3.0, 5.0]

    def test_capped_at_max_delay(self):
        controller = RetryController(RetryConfig(base_delay=1.0, max_delay=5.0, jitter_factor=0.0))
        assert controller.calculate_delay(10) == 5.0

    def test_jitter_bounds(self):
        controller = RetryController(RetryConfig(base_delay=1.0, jitter_factor=0.1))
        with patch('socratic_resilience.reliability.retry.random.random', return_value=1.0):
            assert controller.calculate_delay(2) == pytest.approx(2.2)
        with patch('socratic_resilience.reliability.retry.random.random', return_value=0.0):
            assert controller.calculate_delay(2) == pytest.approx(2.0)

    def test_jitter_never_exceeds_max_delay(self):
        controller = RetryController(RetryConfig(base_delay=4.0, max_delay=4.0, jitter_factor=0.5))
        with patch('socratic_resilience.reliability.retry.random.random', return_value=1.0):
            assert controller.calculate_delay(1) == 4.0


class TestRetryStateManager:
    """Test retry state tracking."""

    def test_retry_key(self):
        assert retry_key("socratic", "ask") == "socratic-ask"

    def test_record_and_remove(self):
        manager = RetryStateManager()
        state = manager.get_or_create("agent-op")
        state.record_error(make_error(AgentErrorType.NETWORK_ERROR), 1)
        state.record_error(make_error(AgentErrorType.QUOTA_ERROR), 2)

        assert manager.get_or_create("agent-op") is state
        summary = manager.get_summary()
        assert summary["active_retries"] == 1
        assert summary["states"]["agent-op"]["attempt_count"] == 2
        assert summary["states"]["agent-op"]["errors"] == ["network_error", "quota_error"]

        assert manager.remove_state("agent-op") is state
        assert len(manager) == 0

    def test_schedule_retry(self):
        state = RetryStateManager().get_or_create("k")
        before = time.time()
        state.schedule_retry(2.0)
        assert state.next_retry_time >= before + 2.0

    def test_cleanup_expired(self):
        manager = RetryStateManager()
        stale = manager.get_or_create("stale")
        stale.last_error_time = time.time() - 301
        manager.get_or_create("fresh")

        assert manager.cleanup_expired(300) == 1
        assert manager.get_state("stale") is None
        assert manager.get_state("fresh") is not None
