from .client import InvocationResult, ResilientTutorClient, ResponseSource

__all__ = ["InvocationResult", "ResilientTutorClient", "ResponseSource"]
