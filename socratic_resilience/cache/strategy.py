"""
Similarity cache for agent responses.

Lookups first try exact keys derived from the query and its dialogue
context, then fall back to a time-boxed fuzzy scan of an in-memory index
grouped by ``(level, case type)``. Entries live in a pluggable backend.
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import time
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..models.context import AgentContext
from ..models.response import AgentResponse
from ..observability.logging import ResilienceLogger
from .backend import CacheBackend, CacheError, InMemoryCacheBackend
from .eviction import EvictionScheduler
from .models import (
    CacheConfig,
    CacheEntry,
    CacheEntryMetadata,
    CacheMatchResult,
    CacheStats,
)
from .similarity import SimilarityCalculator, TextSimilarity

KEY_PREFIX = "socratic-cache"

CANDIDATE_RATIO = 0.8
ADJUSTMENT_RANGE = (0.75, 0.9)
LOW_CONFIDENCE_SCORE = 0.85

LEVEL_MATCH_BONUS = 0.1
CASE_TYPE_MATCH_BONUS = 0.05

HIGH_UNDERSTANDING = 80
MANY_CONCEPTS = 5


def hash_components(*components: Any) -> str:
    combined = "|".join(str(c) for c in components)
    return f"{KEY_PREFIX}-{hashlib.sha256(combined.encode('utf-8')).hexdigest()}"


class SimilarityCache:
    """
    Response cache with exact and similarity-based lookup.

    Entries are stored under their base key only. Exact lookups also try the
    level and case-type keys of the query, which other writers sharing the
    backend may populate.
    """

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        backend: Optional[CacheBackend] = None,
        similarity: Optional[TextSimilarity] = None,
        eviction: Optional[EvictionScheduler] = None
    ):
        self.config = config or CacheConfig()
        self.backend = backend or InMemoryCacheBackend()
        self.similarity = similarity or SimilarityCalculator()
        self.eviction = eviction or EvictionScheduler()
        self.stats = CacheStats()
        self._index: Dict[str, List[CacheEntry]] = {}
        self._log = ResilienceLogger("cache")

    # Keys

    def generate_cache_key(self, query: str, context: AgentContext) -> str:
        components = [query, int(context.level), context.case_type or 'generic']
        if self.config.enable_context_sensitive and context.case_id:
            components.append(context.case_id)
        return hash_components(*components)

    def generate_alias_keys(self, query: str, context: AgentContext) -> List[str]:
        keys = []
        if self.config.enable_level_sensitive:
            keys.append(hash_components('level', int(context.level), query))
        if context.case_type:
            keys.append(hash_components('case-type', context.case_type, query))
        return keys

    def generate_search_keys(self, query: str, context: AgentContext) -> List[str]:
        return [self.generate_cache_key(query, context), *self.generate_alias_keys(query, context)]

    def _context_hash(self, context: AgentContext) -> str:
        context_data = {
            "level": int(context.level),
            "case_type": context.case_type,
            "case_id": context.case_id if self.config.enable_context_sensitive else None,
        }
        return hash_components(json.dumps(context_data, sort_keys=True))

    # Lookup

    async def get(self, query: str, context: AgentContext) -> CacheMatchResult:
        """Look up a response for ``query`` in ``context``."""
        try:
            match = await self._exact_match(query, context)
            if not match.found:
                match = await self._intelligent_match(query, context)
        except CacheError as e:
            self._log.error("Cache lookup failed", error=e)
            match = CacheMatchResult(found=False)

        self._update_stats(match)
        return match

    async def _exact_match(self, query: str, context: AgentContext) -> CacheMatchResult:
        for key in self.generate_search_keys(query, context):
            entry = await self.backend.get(key)
            if entry is None:
                continue
            if entry.is_expired():
                await self._remove_entry(entry)
                continue
            if self.config.enable_level_sensitive and entry.metadata.level != context.level:
                continue

            entry.metadata.touch()
            return CacheMatchResult(
                found=True,
                response=entry.response,
                similarity=1.0,
                original_query=entry.original_query,
                exact=True
            )

        return CacheMatchResult(found=False)

    async def _intelligent_match(self, query: str, context: AgentContext) -> CacheMatchResult:
        candidates, expired = self._find_candidates(query, context)
        for entry in expired:
            await self._remove_entry(entry)

        if not candidates:
            return CacheMatchResult(found=False)

        score, entry = candidates[0]
        if score < self.config.similarity_threshold:
            return CacheMatchResult(found=False)

        entry.metadata.touch()
        needs_adjustment = ADJUSTMENT_RANGE[0] <= score < ADJUSTMENT_RANGE[1]
        return CacheMatchResult(
            found=True,
            response=entry.response,
            similarity=score,
            original_query=entry.original_query,
            needs_adjustment=needs_adjustment,
            adjustment_suggestions=(
                self._adjustment_suggestions(score, entry, context) if needs_adjustment else []
            )
        )

    def _find_candidates(
        self,
        query: str,
        context: AgentContext
    ) -> Tuple[List[Tuple[float, CacheEntry]], List[CacheEntry]]:
        """Scan the index within the search time budget, best candidates first."""
        start_time = time.time()
        deadline = start_time + self.config.performance.max_search_time
        min_score = self.config.similarity_threshold * CANDIDATE_RATIO

        candidates: List[Tuple[float, CacheEntry]] = []
        expired: List[CacheEntry] = []

        for bucket in list(self._index.values()):
            if time.time() > deadline:
                self._log.debug("Fuzzy search time budget exhausted", scanned=len(candidates))
                break

            entries = bucket
            if self.config.enable_level_sensitive:
                entries = [e for e in bucket if e.metadata.level == context.level]

            for entry in entries:
                if entry.is_expired(start_time):
                    expired.append(entry)
                    continue
                score = self._score(query, entry, context)
                if score >= min_score:
                    candidates.append((score, entry))

        candidates.sort(key=lambda item: item[0], reverse=True)
        return candidates, expired

    def _score(self, query: str, entry: CacheEntry, context: AgentContext) -> float:
        score = self.similarity.calculate(query, entry.original_query, context).score

        if self.config.enable_context_sensitive:
            weight = 1.0
            if entry.metadata.level == context.level:
                weight += LEVEL_MATCH_BONUS
            if entry.metadata.case_type == context.case_type:
                weight += CASE_TYPE_MATCH_BONUS
            score = min(score * weight, 1.0)

        return score * (0.8 + 0.2 * entry.metadata.quality_score / 100)

    def _adjustment_suggestions(self, score: float, entry: CacheEntry, context: AgentContext) -> List[str]:
        suggestions = []
        if score < LOW_CONFIDENCE_SCORE:
            suggestions.append("Rephrase the cached answer to fit the student's exact question")
        if entry.metadata.level != context.level:
            suggestions.append("Adjust the content to the current dialogue level")
        if entry.metadata.case_type != context.case_type:
            suggestions.append("Adjust case references to the current case type")
        return suggestions

    # Storage

    def calculate_ttl(self, response: AgentResponse) -> float:
        """Keep well-understood and concept-rich responses longer, up to 2x the default."""
        base = self.config.default_ttl
        ttl = base
        if response.evaluation is not None and response.evaluation.understanding > HIGH_UNDERSTANDING:
            ttl *= 1.5
        if len(response.concepts) > MANY_CONCEPTS:
            ttl *= 1.2
        return min(ttl, base * 2)

    async def set(self, query: str, response: AgentResponse, context: AgentContext) -> Optional[CacheEntry]:
        """Cache ``response`` for ``query`` in ``context``; returns the stored entry."""
        ttl = self.calculate_ttl(response)
        now = time.time()
        entry = CacheEntry(
            original_query=query,
            response=response,
            context_hash=self._context_hash(context),
            metadata=CacheEntryMetadata(
                level=context.level,
                case_type=context.case_type,
                created_at=now,
                last_accessed_at=now,
                keywords=list(response.concepts)
            ),
            cache_key=self.generate_cache_key(query, context),
            expires_at=now + ttl
        )

        try:
            await self.backend.set(entry.cache_key, entry, ttl)
        except CacheError as e:
            self._log.error("Cache write failed", error=e)
            return None

        self._add_to_index(entry)
        await self._perform_maintenance()
        return entry

    async def pre_warm(self, items: Sequence[Tuple[str, AgentResponse, AgentContext]]) -> int:
        """Store ``(query, response, context)`` items in batches; returns the count stored."""
        if not self.config.pre_warming.enabled:
            return 0

        batch_size = max(1, self.config.performance.batch_size)
        stored = 0
        for i in range(0, len(items), batch_size):
            batch = items[i:i + batch_size]
            if self.config.performance.enable_async:
                results = await asyncio.gather(
                    *(self.set(query, response, context) for query, response, context in batch)
                )
            else:
                results = [await self.set(query, response, context) for query, response, context in batch]
            stored += sum(1 for entry in results if entry is not None)

        self._log.info("Cache pre-warmed", entries=stored)
        return stored

    async def provide_feedback(self, query: str, context: AgentContext, satisfaction: float) -> bool:
        """
        Fold a 1-5 satisfaction rating into the entry's quality score.

        Returns:
            True if a matching entry was updated
        """
        key = self.generate_cache_key(query, context)
        try:
            entry = await self.backend.get(key)
        except CacheError as e:
            self._log.error("Cache feedback lookup failed", error=e)
            return False
        if entry is None:
            return False

        entry.metadata.user_satisfaction = satisfaction
        entry.metadata.quality_score = (entry.metadata.quality_score + satisfaction * 20) / 2

        # Persistent backends hold copies, so write the entry back
        ttl = entry.expires_at - time.time() if entry.expires_at is not None else None
        if ttl is not None and ttl <= 0:
            return False
        try:
            await self.backend.set(key, entry, ttl)
        except CacheError as e:
            self._log.error("Cache feedback write failed", error=e)
            return False
        return True

    async def clear(self):
        """Remove every entry and reset statistics."""
        try:
            await self.backend.clear()
        except CacheError as e:
            self._log.error("Cache clear failed", error=e)
        self._index.clear()
        self.stats = CacheStats()

    # Maintenance

    async def _perform_maintenance(self):
        if not self.eviction.needs_eviction(self.stats.total_entries, self.config):
            return

        victims = self.eviction.select_victims(self.entries(), self.config)
        for entry in victims:
            await self._remove_entry(entry)
        self.stats.evictions += len(victims)
        self._log.info(
            "Evicted cache entries",
            policy=self.config.eviction_policy.value,
            evicted=len(victims),
            remaining=self.stats.total_entries
        )

    def entries(self) -> List[CacheEntry]:
        return [entry for bucket in self._index.values() for entry in bucket]

    def _add_to_index(self, entry: CacheEntry):
        bucket = self._index.setdefault(entry.index_key, [])
        for existing in bucket:
            if existing.cache_key == entry.cache_key:
                bucket.remove(existing)
                self.stats.total_entries -= 1
                break
        bucket.append(entry)
        self.stats.total_entries += 1

    def _remove_from_index(self, entry: CacheEntry) -> bool:
        bucket = self._index.get(entry.index_key)
        if not bucket or entry not in bucket:
            return False
        bucket.remove(entry)
        if not bucket:
            del self._index[entry.index_key]
        self.stats.total_entries -= 1
        return True

    async def _remove_entry(self, entry: CacheEntry):
        self._remove_from_index(entry)
        try:
            await self.backend.delete(entry.cache_key)
        except CacheError as e:
            self._log.warning("Failed to delete cache entry", key=entry.cache_key, error_msg=str(e))

    # Stats and config

    def _update_stats(self, match: CacheMatchResult):
        if not match.found:
            self.stats.misses += 1
            return

        self.stats.hits += 1
        if match.response is not None and match.response.response_time_ms:
            self.stats.time_saved += match.response.response_time_ms / 1000
        if not match.exact:
            self.stats.intelligent_matches += 1
            self.stats.similarity_sum += match.similarity or 0.0

    def get_stats(self) -> Dict[str, Any]:
        return self.stats.to_dict()

    def get_config(self) -> CacheConfig:
        return self.config

    def update_config(self, **changes: Any) -> CacheConfig:
        """Replace configuration fields, e.g. ``update_config(similarity_threshold=0.8)``."""
        self.config = replace(self.config, **changes)
        return self.config
