"""Test doubles for the similarity cache."""

from typing import Dict, Optional, Tuple

from socratic_resilience.cache import CacheError, InMemoryCacheBackend, SimilarityResult


class FixedSimilarity:
    """Similarity that returns preset scores per text pair, or a default."""

    def __init__(self, default: float = 0.0, scores: Optional[Dict[Tuple[str, str], float]] = None):
        self.default = default
        self.scores = scores or {}
        self.calls = 0

    def calculate(self, text1, text2, context=None) -> SimilarityResult:
        self.calls += 1
        score = self.scores.get((text1, text2), self.scores.get((text2, text1), self.default))
        return SimilarityResult(score=score)


class FailingBackend(InMemoryCacheBackend):
    """Backend whose reads and writes fail."""

    async def get(self, key):
        raise CacheError("backend unavailable")

    async def set(self, key, value, ttl=None):
        raise CacheError("backend unavailable")
