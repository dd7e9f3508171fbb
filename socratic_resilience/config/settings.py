"""
Environment-driven settings for the resilience stack.

Every field can be overridden with an environment variable named
``SOCRATIC_<FIELD_NAME>`` (e.g. ``SOCRATIC_MAX_RETRIES=5``); a ``.env``
file in the working directory is loaded first.
"""

import os
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, model_validator

from ..cache.models import CacheConfig, EvictionPolicy, PerformanceConfig, PreWarmingConfig
from ..observability.monitor import AlertingConfig, AlertReceiver, MonitoringConfig
from ..reliability.circuit_breaker import CircuitBreakerConfig
from ..reliability.errors import ConfigurationError
from ..reliability.fallback import FallbackConfig, TriggerConditions
from ..reliability.retry import BackoffStrategy, RetryConfig

ENV_PREFIX = "SOCRATIC_"


class ResilienceSettings(BaseModel):
    """Validated settings for retry, breaker, fallback, monitoring and cache."""

    # Retry
    max_retries: int = Field(default=3, ge=0, le=20, description="Retries after the first attempt")
    base_delay: float = Field(default=1.0, gt=0, description="Base backoff delay in seconds")
    max_delay: float = Field(default=30.0, gt=0, description="Backoff ceiling in seconds")
    backoff_strategy: BackoffStrategy = Field(default=BackoffStrategy.EXPONENTIAL)
    backoff_multiplier: float = Field(default=2.0, ge=1.0)
    jitter_factor: float = Field(default=0.1, ge=0.0, le=1.0)
    operation_timeout: Optional[float] = Field(None, gt=0, description="Per-attempt timeout; defaults to breaker_timeout")

    # Circuit breaker
    breaker_enabled: bool = True
    failure_threshold: int = Field(default=5, ge=1)
    success_threshold: int = Field(default=3, ge=1)
    breaker_timeout: float = Field(default=60.0, gt=0, description="Seconds before an open breaker tests recovery")
    monitoring_window: float = Field(default=300.0, gt=0)
    half_open_max_requests: int = Field(default=3, ge=1)

    # Fallback
    fallback_enabled: bool = True
    fallback_consecutive_failures: int = Field(default=3, ge=1)
    fallback_timeout_threshold: float = Field(default=10.0, gt=0)

    # Monitoring
    monitoring_enabled: bool = True
    error_rate_threshold: float = Field(default=0.5, ge=0.0, le=1.0)
    alert_interval: float = Field(default=300.0, ge=0.0)

    # Cache
    cache_enabled: bool = True
    cache_similarity_threshold: float = Field(default=0.75, ge=0.0, le=1.0)
    cache_max_entries: int = Field(default=1000, ge=1)
    cache_default_ttl: float = Field(default=3600.0, gt=0)
    cache_context_sensitive: bool = True
    cache_level_sensitive: bool = True
    cache_eviction_policy: EvictionPolicy = Field(default=EvictionPolicy.INTELLIGENT)
    cache_max_search_time: float = Field(default=0.5, gt=0)
    cache_batch_size: int = Field(default=10, ge=1)
    cache_pre_warming: bool = False

    log_level: str = Field(default="INFO", description="Logging level for the CLI and HTTP app")

    @model_validator(mode='after')
    def check_delays(self):
        if self.base_delay > self.max_delay:
            raise ValueError("base_delay must not exceed max_delay")
        return self

    @classmethod
    def from_env(cls, load_dotenv_file: bool = True, **overrides: Any) -> "ResilienceSettings":
        """
        Build settings from ``SOCRATIC_*`` environment variables.

        Raises:
            ConfigurationError: If a value fails validation
        """
        if load_dotenv_file:
            load_dotenv()

        data: Dict[str, Any] = {}
        for name in cls.model_fields:
            value = os.getenv(f"{ENV_PREFIX}{name.upper()}")
            if value is not None and value != "":
                data[name] = value
        data.update(overrides)

        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid resilience settings: {e}") from e

    def retry_config(self) -> RetryConfig:
        return RetryConfig(
            max_retries=self.max_retries,
            base_delay=self.base_delay,
            max_delay=self.max_delay,
            backoff_strategy=self.backoff_strategy,
            backoff_multiplier=self.backoff_multiplier,
            jitter_factor=self.jitter_factor
        )

    def circuit_breaker_config(self) -> CircuitBreakerConfig:
        return CircuitBreakerConfig(
            enabled=self.breaker_enabled,
            failure_threshold=self.failure_threshold,
            success_threshold=self.success_threshold,
            timeout=self.breaker_timeout,
            monitoring_window=self.monitoring_window,
            half_open_max_requests=self.half_open_max_requests
        )

    def fallback_config(self) -> FallbackConfig:
        return FallbackConfig(
            enabled=self.fallback_enabled,
            trigger_conditions=TriggerConditions(
                timeout_threshold=self.fallback_timeout_threshold,
                consecutive_failures=self.fallback_consecutive_failures
            )
        )

    def monitoring_config(self, alert_receiver: Optional[AlertReceiver] = None) -> MonitoringConfig:
        return MonitoringConfig(
            enabled=self.monitoring_enabled,
            alerting=AlertingConfig(
                error_rate_threshold=self.error_rate_threshold,
                alert_interval=self.alert_interval,
                alert_receiver=alert_receiver
            )
        )

    def cache_config(self) -> CacheConfig:
        return CacheConfig(
            similarity_threshold=self.cache_similarity_threshold,
            max_cache_entries=self.cache_max_entries,
            default_ttl=self.cache_default_ttl,
            enable_context_sensitive=self.cache_context_sensitive,
            enable_level_sensitive=self.cache_level_sensitive,
            eviction_policy=self.cache_eviction_policy,
            performance=PerformanceConfig(
                batch_size=self.cache_batch_size,
                max_search_time=self.cache_max_search_time
            ),
            pre_warming=PreWarmingConfig(enabled=self.cache_pre_warming)
        )
