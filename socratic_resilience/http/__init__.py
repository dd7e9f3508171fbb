"""HTTP endpoints for the resilience stack."""

from .api import create_router

__all__ = ["create_router"]
