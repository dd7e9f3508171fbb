"""Configuration module for the resilience stack."""

from .settings import ENV_PREFIX, ResilienceSettings

__all__ = ["ENV_PREFIX", "ResilienceSettings"]
