"""Shared pytest fixtures for Socratic Resilience tests."""

import os

import pytest
from dotenv import load_dotenv

# Load environment variables from .env file for tests
load_dotenv()

from socratic_resilience.models import (
    AgentContext,
    AgentResponse,
    CaseInfo,
    DialogueLevel,
    DialogueState,
    Evaluation,
)
from socratic_resilience.reliability import (
    CircuitBreakerConfig,
    FallbackConfig,
    ResilientExecutor,
    RetryConfig,
)
from socratic_resilience.observability import AlertingConfig, MonitoringConfig


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: end-to-end tests across components")


@pytest.fixture(autouse=True)
def clean_socratic_env(monkeypatch):
    """Keep SOCRATIC_* variables from the developer's shell out of tests."""
    for key in list(os.environ):
        if key.startswith("SOCRATIC_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def sample_case():
    """Sample teaching case."""
    return CaseInfo(
        id="case-001",
        title="Late delivery",
        description="A seller delivered goods two weeks after the agreed date.",
        type="contract",
        facts=["The seller promised delivery by March 1", "Goods arrived on March 15"],
        laws=["Contract Law Art. 107"],
        disputes=["Is the seller liable for breach"]
    )


@pytest.fixture
def sample_context(sample_case):
    """Agent context at the analysis level."""
    return AgentContext(
        case=sample_case,
        dialogue=DialogueState(level=DialogueLevel.ANALYSIS)
    )


@pytest.fixture
def generic_context():
    """Agent context without a case."""
    return AgentContext(dialogue=DialogueState(level=DialogueLevel.FACTS))


@pytest.fixture
def sample_response():
    """Sample agent response."""
    return AgentResponse(
        content="What exactly did the seller promise, and when?",
        suggested_level=DialogueLevel.ANALYSIS,
        concepts=["breach", "performance"],
        evaluation=Evaluation(understanding=60, can_progress=False),
        response_time_ms=1200
    )


@pytest.fixture
def fast_retry_config():
    """Deterministic retry configuration with tiny delays."""
    return RetryConfig(max_retries=2, base_delay=0.01, max_delay=0.05, jitter_factor=0.0)


@pytest.fixture
def alerts():
    """List collecting alerts delivered to the alert receiver."""
    return []


@pytest.fixture
def executor(fast_retry_config, alerts):
    """Pipeline with fast retries, a low breaker threshold and alert capture."""
    return ResilientExecutor(
        retry_config=fast_retry_config,
        circuit_breaker_config=CircuitBreakerConfig(failure_threshold=3, timeout=0.2),
        fallback_config=FallbackConfig(enabled=False),
        monitoring_config=MonitoringConfig(
            alerting=AlertingConfig(error_rate_threshold=1.1, alert_receiver=alerts.append)
        )
    )
