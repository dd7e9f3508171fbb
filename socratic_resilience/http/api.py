"""FastAPI HTTP endpoints exposing health, metrics and cache statistics.

Mount the router returned by ``create_router`` into a host FastAPI app.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException

from ..api.client import ResilientTutorClient


def create_router(client: Optional[ResilientTutorClient] = None) -> APIRouter:
    """Build a router bound to ``client`` (a default client if omitted)."""
    tutor_client = client or ResilientTutorClient()
    router = APIRouter()

    @router.get("/health")
    async def health() -> Dict[str, Any]:
        """Report ``degraded`` while the circuit breaker is open."""
        breaker = tutor_client.executor.get_circuit_breaker_state()
        return {
            "status": "ok" if tutor_client.executor.is_healthy() else "degraded",
            "circuit_breaker": breaker["state"],
        }

    @router.get("/reliability/metrics")
    async def reliability_metrics() -> Dict[str, Any]:
        return {
            "metrics": tutor_client.executor.get_metrics().to_dict(),
            "circuit_breaker": tutor_client.executor.get_circuit_breaker_state(),
            "retries": tutor_client.executor.get_retry_stats(),
        }

    @router.get("/cache/stats")
    async def cache_stats() -> Dict[str, Any]:
        if not tutor_client.enable_cache:
            raise HTTPException(status_code=404, detail="Cache is disabled")
        return tutor_client.cache.get_stats()

    @router.post("/reliability/circuit-breaker/reset")
    async def reset_circuit_breaker() -> Dict[str, Any]:
        await tutor_client.executor.reset_circuit_breaker()
        return {"circuit_breaker": tutor_client.executor.get_circuit_breaker_state()}

    return router
