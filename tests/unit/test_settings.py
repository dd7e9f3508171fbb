"""Unit tests for environment-driven settings."""

import pytest

from socratic_resilience.cache import EvictionPolicy
from socratic_resilience.config import ResilienceSettings
from socratic_resilience.reliability import BackoffStrategy, ConfigurationError


class TestResilienceSettings:
    """Test settings loading and component configs."""

    def test_defaults(self):
        settings = ResilienceSettings.from_env(load_dotenv_file=False)

        assert settings.max_retries == 3
        assert settings.base_delay == 1.0
        assert settings.backoff_strategy == BackoffStrategy.EXPONENTIAL
        assert settings.failure_threshold == 5
        assert settings.breaker_timeout == 60.0
        assert settings.cache_similarity_threshold == 0.75
        assert settings.cache_eviction_policy == EvictionPolicy.INTELLIGENT

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("SOCRATIC_MAX_RETRIES", "5")
        monkeypatch.setenv("SOCRATIC_BACKOFF_STRATEGY", "fibonacci")
        monkeypatch.setenv("SOCRATIC_BREAKER_ENABLED", "false")
        monkeypatch.setenv("SOCRATIC_CACHE_EVICTION_POLICY", "lru")
        monkeypatch.setenv("SOCRATIC_OPERATION_TIMEOUT", "")

        settings = ResilienceSettings.from_env(load_dotenv_file=False)

        assert settings.max_retries == 5
        assert settings.backoff_strategy == BackoffStrategy.FIBONACCI
        assert settings.breaker_enabled is False
        assert settings.cache_eviction_policy == EvictionPolicy.LRU
        assert settings.operation_timeout is None

    def test_keyword_overrides_win(self, monkeypatch):
        monkeypatch.setenv("SOCRATIC_MAX_RETRIES", "5")
        settings = ResilienceSettings.from_env(load_dotenv_file=False, max_retries=1)
        assert settings.max_retries == 1

    @pytest.mark.parametrize("name,value", [
        ("SOCRATIC_MAX_RETRIES", "many"),
        ("SOCRATIC_JITTER_FACTOR", "1.5"),
        ("SOCRATIC_BACKOFF_STRATEGY", "random"),
        ("SOCRATIC_BASE_DELAY", "60"),
    ])
    def test_invalid_values(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        with pytest.raises(ConfigurationError):
            ResilienceSettings.from_env(load_dotenv_file=False)

    def test_component_configs(self):
        settings = ResilienceSettings(
            max_retries=2,
            jitter_factor=0.0,
            failure_threshold=4,
            breaker_timeout=15.0,
            fallback_enabled=False,
            fallback_consecutive_failures=5,
            fallback_timeout_threshold=4.0,
            error_rate_threshold=0.25,
            cache_max_entries=50,
            cache_max_search_time=0.1,
            cache_pre_warming=True
        )
        receiver = []

        retry = settings.retry_config()
        assert retry.max_retries == 2
        assert retry.jitter_factor == 0.0

        breaker = settings.circuit_breaker_config()
        assert breaker.failure_threshold == 4
        assert breaker.timeout == 15.0

        fallback = settings.fallback_config()
        assert fallback.enabled is False
        assert fallback.trigger_conditions.consecutive_failures == 5
        assert fallback.trigger_conditions.timeout_threshold == 4.0

        monitoring = settings.monitoring_config(alert_receiver=receiver.append)
        assert monitoring.alerting.error_rate_threshold == 0.25
        assert monitoring.alerting.alert_receiver == receiver.append

        cache = settings.cache_config()
        assert cache.max_cache_entries == 50
        assert cache.performance.max_search_time == 0.1
        assert cache.pre_warming.enabled is True
