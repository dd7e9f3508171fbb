"""Similarity cache for agent responses."""

from .backend import CacheBackend, CacheError, InMemoryCacheBackend
from .eviction import (
    EvictionScheduler,
    EvictionStrategy,
    IntelligentEviction,
    LFUEviction,
    LRUEviction,
    TTLEviction,
    intelligent_score,
)
from .models import (
    CacheConfig,
    CacheEntry,
    CacheEntryMetadata,
    CacheMatchResult,
    CacheStats,
    EvictionPolicy,
    PerformanceConfig,
    PreWarmingConfig,
)
from .similarity import SimilarityCalculator, SimilarityResult, SimilarityWeights, TextSimilarity
from .strategy import SimilarityCache

__all__ = [
    "CacheBackend",
    "CacheError",
    "InMemoryCacheBackend",
    "EvictionScheduler",
    "EvictionStrategy",
    "IntelligentEviction",
    "LFUEviction",
    "LRUEviction",
    "TTLEviction",
    "intelligent_score",
    "CacheConfig",
    "CacheEntry",
    "CacheEntryMetadata",
    "CacheMatchResult",
    "CacheStats",
    "EvictionPolicy",
    "PerformanceConfig",
    "PreWarmingConfig",
    "SimilarityCalculator",
    "SimilarityResult",
    "SimilarityWeights",
    "TextSimilarity",
    "SimilarityCache",
]
