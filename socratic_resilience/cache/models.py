"""Configuration and entry models for the similarity cache."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..models.context import DialogueLevel
from ..models.response import AgentResponse


class EvictionPolicy(str, Enum):
    LRU = "lru"
    LFU = "lfu"
    TTL = "ttl"
    INTELLIGENT = "intelligent"


@dataclass
class PerformanceConfig:
    enable_async: bool = True
    batch_size: int = 10
    max_search_time: float = 0.5        # Seconds spent on a fuzzy scan


@dataclass
class PreWarmingConfig:
    enabled: bool = False


@dataclass
class CacheConfig:
    """Similarity cache configuration."""
    similarity_threshold: float = 0.75
    max_cache_entries: int = 1000
    default_ttl: float = 3600.0         # Seconds
    enable_context_sensitive: bool = True
    enable_level_sensitive: bool = True
    eviction_policy: EvictionPolicy = EvictionPolicy.INTELLIGENT
    performance: PerformanceConfig = field(default_factory=PerformanceConfig)
    pre_warming: PreWarmingConfig = field(default_factory=PreWarmingConfig)


DEFAULT_QUALITY_SCORE = 80.0


@dataclass
class CacheEntryMetadata:
    level: DialogueLevel
    case_type: Optional[str] = None
    created_at: float = field(default_factory=time.time)
    last_accessed_at: float = field(default_factory=time.time)
    access_count: int = 1
    quality_score: float = DEFAULT_QUALITY_SCORE
    keywords: List[str] = field(default_factory=list)
    user_satisfaction: Optional[float] = None

    def touch(self):
        """Record an access."""
        self.access_count += 1
        self.last_accessed_at = time.time()


@dataclass
class CacheEntry:
    """A cached agent response and its bookkeeping."""
    original_query: str
    response: AgentResponse
    context_hash: str
    metadata: CacheEntryMetadata
    cache_key: str
    expires_at: Optional[float] = None

    @property
    def index_key(self) -> str:
        return f"{int(self.metadata.level)}-{self.metadata.case_type or 'generic'}"

    def is_expired(self, now: Optional[float] = None) -> bool:
        if self.expires_at is None:
            return False
        return (now if now is not None else time.time()) >= self.expires_at

    def age(self, now: Optional[float] = None) -> float:
        return (now if now is not None else time.time()) - self.metadata.created_at


@dataclass
class CacheMatchResult:
    """Outcome of a cache lookup."""
    found: bool
    response: Optional[AgentResponse] = None
    similarity: Optional[float] = None
    original_query: Optional[str] = None
    needs_adjustment: bool = False
    adjustment_suggestions: List[str] = field(default_factory=list)
    exact: bool = False


@dataclass
class CacheStats:
    total_entries: int = 0
    hits: int = 0
    misses: int = 0
    intelligent_matches: int = 0
    similarity_sum: float = 0.0
    time_saved: float = 0.0
    evictions: int = 0

    @property
    def lookups(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        return self.hits / self.lookups if self.lookups else 0.0

    @property
    def intelligent_match_rate(self) -> float:
        return self.intelligent_matches / self.lookups if self.lookups else 0.0

    @property
    def average_similarity(self) -> float:
        if not self.intelligent_matches:
            return 0.0
        return self.similarity_sum / self.intelligent_matches

    @property
    def efficiency_score(self) -> float:
        return (
            self.hit_rate * 0.4
            + self.intelligent_match_rate * 0.3
            + self.average_similarity * 0.3
        ) * 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_entries": self.total_entries,
            "hits": self.hits,
            "misses": self.misses,
            "intelligent_matches": self.intelligent_matches,
            "hit_rate": self.hit_rate,
            "intelligent_match_rate": self.intelligent_match_rate,
            "average_similarity": self.average_similarity,
            "time_saved": self.time_saved,
            "efficiency_score": self.efficiency_score,
            "evictions": self.evictions,
        }
