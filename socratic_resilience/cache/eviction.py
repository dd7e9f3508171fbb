"""
Eviction strategies for the similarity cache.

Each strategy picks victims from the current entries; the scheduler runs
the configured strategy once the cache grows past its maximum size.
"""

import math
import time
from typing import Dict, List, Optional, Protocol

from .models import CacheConfig, CacheEntry, EvictionPolicy

EVICTION_FRACTION = 0.1

FRESHNESS_HORIZON = 7 * 24 * 3600.0
RECENT_ACCESS_HORIZON = 24 * 3600.0


class EvictionStrategy(Protocol):
    def select(self, entries: List[CacheEntry], config: CacheConfig, now: float) -> List[CacheEntry]:
        """Return the entries to evict."""
        ...


def eviction_quota(config: CacheConfig) -> int:
    return math.ceil(config.max_cache_entries * EVICTION_FRACTION)


def intelligent_score(entry: CacheEntry, now: float) -> float:
    """Retention score; entries with the lowest score are evicted first."""
    metadata = entry.metadata
    age = now - metadata.created_at
    idle = now - metadata.last_accessed_at

    frequency_score = metadata.access_count / 10
    quality_score = metadata.quality_score / 100
    freshness_score = max(0.0, 1 - age / FRESHNESS_HORIZON)
    recent_access_score = max(0.0, 1 - idle / RECENT_ACCESS_HORIZON)

    return (
        frequency_score * 0.3
        + quality_score * 0.3
        + freshness_score * 0.2
        + recent_access_score * 0.2
    )


class LRUEviction:
    def select(self, entries, config, now):
        ranked = sorted(entries, key=lambda e: e.metadata.last_accessed_at)
        return ranked[:eviction_quota(config)]


class LFUEviction:
    def select(self, entries, config, now):
        ranked = sorted(entries, key=lambda e: e.metadata.access_count)
        return ranked[:eviction_quota(config)]


class TTLEviction:
    """Evicts every entry older than the default TTL, regardless of quota."""

    def select(self, entries, config, now):
        return [e for e in entries if e.age(now) > config.default_ttl]


class IntelligentEviction:
    def select(self, entries, config, now):
        ranked = sorted(entries, key=lambda e: intelligent_score(e, now))
        return ranked[:eviction_quota(config)]


class EvictionScheduler:
    """Chooses eviction victims according to the configured policy."""

    def __init__(self, strategies: Optional[Dict[EvictionPolicy, EvictionStrategy]] = None):
        self.strategies: Dict[EvictionPolicy, EvictionStrategy] = {
            EvictionPolicy.LRU: LRUEviction(),
            EvictionPolicy.LFU: LFUEviction(),
            EvictionPolicy.TTL: TTLEviction(),
            EvictionPolicy.INTELLIGENT: IntelligentEviction(),
        }
        if strategies:
            self.strategies.update(strategies)

    def register(self, policy: EvictionPolicy, strategy: EvictionStrategy):
        self.strategies[policy] = strategy

    def needs_eviction(self, total_entries: int, config: CacheConfig) -> bool:
        return total_entries > config.max_cache_entries

    def select_victims(
        self,
        entries: List[CacheEntry],
        config: CacheConfig,
        now: Optional[float] = None
    ) -> List[CacheEntry]:
        strategy = self.strategies[config.eviction_policy]
        return strategy.select(entries, config, now if now is not None else time.time())
