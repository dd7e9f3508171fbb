"""Unit tests for the fallback handler."""

from unittest.mock import AsyncMock, Mock

import pytest

from socratic_resilience.models import AgentResponse, DialogueLevel
from socratic_resilience.observability import ErrorMonitor
from socratic_resilience.reliability import (
    AgentError,
    AgentErrorType,
    DefaultFallbackGenerator,
    FallbackConfig,
    FallbackHandler,
    QualityMetrics,
    TriggerConditions,
)


def network_error():
    return AgentError(AgentErrorType.NETWORK_ERROR, "connection reset")


class TestShouldTrigger:
    """Test fallback trigger conditions."""

    def test_triggering_error_types(self):
        handler = FallbackHandler(FallbackConfig())
        assert handler.should_trigger(network_error(), 1)
        assert handler.should_trigger(AgentError(AgentErrorType.QUOTA_ERROR, "quota"), 1)

    def test_other_types_need_consecutive_failures(self):
        handler = FallbackHandler(FallbackConfig(
            trigger_conditions=TriggerConditions(consecutive_failures=3)
        ))
        error = AgentError(AgentErrorType.UNKNOWN_ERROR, "odd")

        assert not handler.should_trigger(error, 3)
        assert handler.should_trigger(error, 4)

    def test_slow_attempt_triggers(self):
        handler = FallbackHandler(FallbackConfig(
            trigger_conditions=TriggerConditions(timeout_threshold=2.0, consecutive_failures=3)
        ))
        error = AgentError(AgentErrorType.UNKNOWN_ERROR, "odd")

        assert not handler.should_trigger(error, 1, elapsed=1.5)
        assert handler.should_trigger(error, 1, elapsed=2.5)
        assert not handler.should_trigger(error, 1)

    def test_disabled(self):
        handler = FallbackHandler(FallbackConfig(enabled=False))
        assert not handler.should_trigger(network_error(), 10)


class TestHandle:
    """Test fallback response generation."""

    @pytest.mark.asyncio
    async def test_default_generator(self, sample_context):
        monitor = ErrorMonitor()
        handler = FallbackHandler(FallbackConfig(), monitor)

        response = await handler.handle(sample_context, network_error())

        assert isinstance(response, AgentResponse)
        assert response.fallback is True
        assert response.cached is False
        assert response.suggested_level == DialogueLevel.ANALYSIS
        assert response.evaluation.understanding == 50
        assert response.metadata["fallback_reason"] == "network_error"
        assert monitor.get_metrics().fallback_triggers == 1

    @pytest.mark.asyncio
    async def test_async_generator(self, sample_context):
        generator = AsyncMock(return_value="degraded")
        handler = FallbackHandler(FallbackConfig(response_generator=generator))
        error = network_error()

        assert await handler.handle(sample_context, error) == "degraded"
        generator.assert_awaited_once_with(sample_context, error)

    @pytest.mark.asyncio
    async def test_generator_failure_raises_original_error(self, sample_context):
        monitor = ErrorMonitor()
        generator = Mock(side_effect=RuntimeError("template missing"))
        handler = FallbackHandler(FallbackConfig(response_generator=generator), monitor)
        error = network_error()

        with pytest.raises(AgentError) as exc_info:
            await handler.handle(sample_context, error)

        assert exc_info.value is error
        assert exc_info.value.__cause__ is None
        assert monitor.get_metrics().fallback_triggers == 0

    @pytest.mark.asyncio
    async def test_low_quality_raises_original_error(self, sample_context):
        handler = FallbackHandler(FallbackConfig(
            quality_metrics=QualityMetrics(min_quality_score=0.9, quality_checker=lambda r: 0.2)
        ))
        error = network_error()

        with pytest.raises(AgentError) as exc_info:
            await handler.handle(sample_context, error)
        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_quality_check_passes(self, sample_context):
        checker = Mock(return_value=0.95)
        handler = FallbackHandler(FallbackConfig(
            quality_metrics=QualityMetrics(min_quality_score=0.9, quality_checker=checker)
        ))

        response = await handler.handle(sample_context, network_error())

        assert response.fallback is True
        checker.assert_called_once_with(response)

    def test_custom_message(self, generic_context):
        generator = DefaultFallbackGenerator(message="Back soon.")
        response = generator(generic_context, network_error())
        assert response.content == "Back soon."
        assert response.suggested_level == DialogueLevel.FACTS
