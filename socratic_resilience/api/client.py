"""Main client interface for the resilient tutoring agent core."""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..cache import SimilarityCache
from ..config import ResilienceSettings
from ..models.context import AgentContext
from ..models.response import AgentResponse
from ..observability.monitor import AlertReceiver
from ..reliability.pipeline import ResilientExecutor


class ResponseSource(str, Enum):
    CACHE = "cache"
    FRESH = "fresh"
    FALLBACK = "fallback"


@dataclass
class InvocationResult:
    """Agent response plus where it came from."""
    response: Any
    source: ResponseSource
    similarity: Optional[float] = None
    needs_adjustment: bool = False
    adjustment_suggestions: List[str] = field(default_factory=list)
    attempts: int = 0


class ResilientTutorClient:
    """High-level client combining the similarity cache with the execution pipeline."""

    def __init__(
        self,
        executor: Optional[ResilientExecutor] = None,
        cache: Optional[SimilarityCache] = None,
        enable_cache: bool = True
    ):
        """
        Initialize the client.

        Args:
            executor: Pipeline used for fresh calls
            cache: Response cache consulted before calling the provider
            enable_cache: Set False to bypass the cache entirely
        """
        self.executor = executor or ResilientExecutor()
        self.cache = cache or SimilarityCache()
        self.enable_cache = enable_cache

    @classmethod
    def from_settings(
        cls,
        settings: Optional[ResilienceSettings] = None,
        alert_receiver: Optional[AlertReceiver] = None
    ) -> "ResilientTutorClient":
        """Build the full stack from (environment) settings."""
        settings = settings or ResilienceSettings.from_env()
        executor = ResilientExecutor(
            retry_config=settings.retry_config(),
            circuit_breaker_config=settings.circuit_breaker_config(),
            fallback_config=settings.fallback_config(),
            monitoring_config=settings.monitoring_config(alert_receiver),
            operation_timeout=settings.operation_timeout
        )
        cache = SimilarityCache(settings.cache_config())
        return cls(executor=executor, cache=cache, enable_cache=settings.cache_enabled)

    async def invoke(
        self,
        query: str,
        operation: Callable[[], Awaitable[Any]],
        context: AgentContext,
        operation_id: str = "default",
        agent_id: str = "agent"
    ) -> InvocationResult:
        """
        Answer ``query``, from cache when possible, otherwise through the pipeline.

        Only fresh ``AgentResponse`` results are cached; fallback responses
        never are.

        Raises:
            AgentError: If the pipeline fails and no fallback applies
        """
        if self.enable_cache:
            match = await self.cache.get(query, context)
            if match.found and match.response is not None:
                return InvocationResult(
                    response=match.response.model_copy(update={"cached": True}),
                    source=ResponseSource.CACHE,
                    similarity=match.similarity,
                    needs_adjustment=match.needs_adjustment,
                    adjustment_suggestions=list(match.adjustment_suggestions)
                )

        start_time = time.time()
        outcome = await self.executor.run(operation, context, operation_id, agent_id)

        if outcome.used_fallback:
            return InvocationResult(
                response=outcome.result,
                source=ResponseSource.FALLBACK,
                attempts=outcome.attempts
            )

        response = outcome.result
        if isinstance(response, AgentResponse):
            if response.response_time_ms is None:
                response = response.model_copy(
                    update={"response_time_ms": (time.time() - start_time) * 1000}
                )
            if self.enable_cache:
                await self.cache.set(query, response, context)

        return InvocationResult(response=response, source=ResponseSource.FRESH, attempts=outcome.attempts)

    async def provide_feedback(self, query: str, context: AgentContext, satisfaction: float) -> bool:
        return await self.cache.provide_feedback(query, context, satisfaction)

    def get_status(self) -> Dict[str, Any]:
        """Health, metrics and cache statistics in one dictionary."""
        return {
            "healthy": self.executor.is_healthy(),
            "circuit_breaker": self.executor.get_circuit_breaker_state(),
            "metrics": self.executor.get_metrics().to_dict(),
            "retries": self.executor.get_retry_stats(),
            "cache": self.cache.get_stats() if self.enable_cache else None,
        }

    async def start(self):
        await self.executor.start()

    async def close(self):
        await self.executor.stop()

    async def __aenter__(self) -> "ResilientTutorClient":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
