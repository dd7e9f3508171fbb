"""
Text similarity for fuzzy cache lookups.

The score is a weighted blend of three signals:

- text similarity: cosine similarity of term-frequency vectors
- semantic similarity: keyword overlap, legal-term balance and complexity
- context similarity: how the two texts relate to the current case and level

All scores are in [0, 1].
"""

import math
import re
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Protocol, Tuple

from ..models.context import AgentContext, CaseInfo


LEGAL_TERMS: FrozenSet[str] = frozenset({
    # Contract
    'contract', 'agreement', 'breach', 'performance', 'offer', 'acceptance',
    'consideration', 'rescission', 'termination', 'deposit', 'penalty', 'warranty',
    # Liability and remedies
    'liability', 'obligation', 'duty', 'rights', 'damages', 'compensation',
    'remedy', 'injunction', 'restitution', 'tort', 'negligence', 'fault',
    'causation', 'indemnity',
    # Procedure
    'litigation', 'arbitration', 'mediation', 'judgment', 'ruling', 'appeal',
    'enforcement', 'plaintiff', 'defendant', 'evidence', 'burden', 'testimony',
    'statute', 'court', 'jurisdiction',
    # Criminal and administrative
    'crime', 'intent', 'attempt', 'accomplice', 'sentence',
    'administrative', 'permit', 'review',
    '合同', '协议', '违约', '履行', '责任', '义务', '权利', '损害', '赔偿',
    '诉讼', '仲裁', '调解', '判决', '裁定', '执行', '上诉', '侵权', '过错',
    '犯罪', '故意', '过失', '行政', '处罚', '起诉', '举证',
})

STOP_WORDS: FrozenSet[str] = frozenset({
    'the', 'a', 'an', 'and', 'or', 'but', 'in', 'on', 'at', 'to', 'for', 'of',
    'with', 'by', 'is', 'are', 'was', 'were', 'be', 'been', 'have', 'has',
    'had', 'do', 'does', 'did', 'will', 'would', 'should', 'could', 'can',
    'may', 'might', 'what', 'which', 'this', 'that', 'these', 'those', 'why',
    'how', 'who', 'whom', 'its', 'it', 'they', 'them', 'their', 'there',
    '的', '了', '在', '是', '我', '你', '他', '她', '它', '们', '这', '那',
    '和', '或', '但', '而', '及', '以', '对', '为', '从', '到', '被', '把',
})

_NON_WORD = re.compile(r'[^一-龥a-z0-9\s]')
_WHITESPACE = re.compile(r'\s+')
_SENTENCE_END = re.compile(r'[。！？.!?]')
_CASE_FACT_SPLIT = re.compile(r'[，。；,.;]')


@dataclass
class TextFeatures:
    term_freq: Counter
    keywords: List[str]
    length: int
    legal_term_count: int
    sentence_count: int
    complexity: float


@dataclass
class SimilarityResult:
    """Overall score plus its breakdown."""
    score: float
    text_similarity: float = 0.0
    semantic_similarity: float = 0.0
    context_similarity: float = 0.0
    matched_keywords: List[str] = field(default_factory=list)
    compute_time: float = 0.0
    cached: bool = False


class TextSimilarity(Protocol):
    """Pluggable similarity used by the cache."""

    def calculate(self, text1: str, text2: str, context: Optional[AgentContext] = None) -> SimilarityResult:
        ...


@dataclass
class SimilarityWeights:
    text: float = 0.4
    semantic: float = 0.4
    context: float = 0.2


class SimilarityCalculator:
    """Keyword and term-frequency based text similarity."""

    def __init__(
        self,
        weights: Optional[SimilarityWeights] = None,
        enable_cache: bool = True,
        max_cache_size: int = 10000,
        legal_terms: FrozenSet[str] = LEGAL_TERMS,
        stop_words: FrozenSet[str] = STOP_WORDS
    ):
        self.weights = weights or SimilarityWeights()
        self.enable_cache = enable_cache
        self.max_cache_size = max_cache_size
        self.legal_terms = legal_terms
        self.stop_words = stop_words
        self._cache: Dict[Tuple[str, str], SimilarityResult] = {}

    def calculate(self, text1: str, text2: str, context: Optional[AgentContext] = None) -> SimilarityResult:
        """
        Compute the weighted similarity of two texts.

        Args:
            text1: First text
            text2: Second text
            context: Optional agent context for the context component

        Returns:
            SimilarityResult with a score clamped to [0, 1]
        """
        start_time = time.time()
        cache_key = self._cache_key(text1, text2, context)
        if self.enable_cache and cache_key in self._cache:
            cached = self._cache[cache_key]
            return SimilarityResult(
                score=cached.score,
                text_similarity=cached.text_similarity,
                semantic_similarity=cached.semantic_similarity,
                context_similarity=cached.context_similarity,
                matched_keywords=list(cached.matched_keywords),
                compute_time=time.time() - start_time,
                cached=True
            )

        features1 = self.extract_features(text1)
        features2 = self.extract_features(text2)

        text_similarity = self._cosine_similarity(features1, features2)
        semantic_similarity = self._semantic_similarity(features1, features2)
        context_similarity = (
            self._context_similarity(context, features1, features2) if context is not None else 0.0
        )

        score = (
            text_similarity * self.weights.text
            + semantic_similarity * self.weights.semantic
            + context_similarity * self.weights.context
        )

        result = SimilarityResult(
            score=max(0.0, min(1.0, score)),
            text_similarity=text_similarity,
            semantic_similarity=semantic_similarity,
            context_similarity=context_similarity,
            matched_keywords=sorted(set(features1.keywords) & set(features2.keywords)),
            compute_time=time.time() - start_time
        )

        if self.enable_cache:
            if len(self._cache) >= self.max_cache_size:
                self._cache.clear()
            self._cache[cache_key] = result

        return result

    def find_most_similar(
        self,
        target: str,
        candidates: List[str],
        threshold: float = 0.1
    ) -> List[Tuple[str, SimilarityResult]]:
        """Candidates scoring at least ``threshold``, best first."""
        results = []
        for candidate in candidates:
            similarity = self.calculate(target, candidate)
            if similarity.score >= threshold:
                results.append((candidate, similarity))
        return sorted(results, key=lambda item: item[1].score, reverse=True)

    def clear_cache(self):
        self._cache.clear()

    # Features

    def preprocess(self, text: str) -> str:
        text = _NON_WORD.sub(' ', text.lower())
        return _WHITESPACE.sub(' ', text).strip()

    def extract_features(self, text: str) -> TextFeatures:
        clean_text = self.preprocess(text)
        words = [word for word in clean_text.split(' ') if word]

        keywords = [w for w in words if w not in self.stop_words and len(w) > 2]

        return TextFeatures(
            term_freq=Counter(words),
            keywords=list(dict.fromkeys(keywords)),
            length=len(text),
            legal_term_count=sum(1 for w in words if w in self.legal_terms),
            sentence_count=len(_SENTENCE_END.split(text)),
            complexity=self._complexity(words)
        )

    @staticmethod
    def _complexity(words: List[str]) -> float:
        if not words:
            return 0.0
        avg_word_length = sum(len(w) for w in words) / len(words)
        lexical_diversity = len(set(words)) / len(words)
        return (avg_word_length / 10 + lexical_diversity) / 2

    # Components

    @staticmethod
    def _cosine_similarity(features1: TextFeatures, features2: TextFeatures) -> float:
        tf1, tf2 = features1.term_freq, features2.term_freq
        dot_product = sum(freq * tf2.get(term, 0) for term, freq in tf1.items())
        magnitude = (
            math.sqrt(sum(f * f for f in tf1.values()))
            * math.sqrt(sum(f * f for f in tf2.values()))
        )
        return 0.0 if magnitude == 0 else dot_product / magnitude

    @staticmethod
    def _jaccard(set1: set, set2: set) -> float:
        union = set1 | set2
        return 0.0 if not union else len(set1 & set2) / len(union)

    def _semantic_similarity(self, features1: TextFeatures, features2: TextFeatures) -> float:
        keyword_similarity = self._jaccard(set(features1.keywords), set(features2.keywords))

        count1, count2 = features1.legal_term_count, features2.legal_term_count
        max_terms = max(count1, count2)
        legal_term_similarity = 1.0 if max_terms == 0 else 1 - abs(count1 - count2) / max_terms

        complexity_similarity = 1 - min(abs(features1.complexity - features2.complexity), 1.0)

        return keyword_similarity * 0.5 + legal_term_similarity * 0.3 + complexity_similarity * 0.2

    def _context_similarity(
        self,
        context: AgentContext,
        features1: TextFeatures,
        features2: TextFeatures
    ) -> float:
        score = 0.0

        if context.case is not None:
            case_keywords = self._case_keywords(context.case)
            relevance1 = self._relevance_to_case(features1, case_keywords)
            relevance2 = self._relevance_to_case(features2, case_keywords)
            if abs(relevance1 - relevance2) <= 0.5:
                score += 0.8

        if context.dialogue.level:
            score += 0.2

        return min(score, 1.0)

    @staticmethod
    def _case_keywords(case: CaseInfo) -> List[str]:
        keywords: List[str] = []
        for fact in case.facts:
            keywords.extend(
                part.strip().lower() for part in _CASE_FACT_SPLIT.split(fact) if len(part.strip()) > 2
            )
        keywords.extend(d.lower() for d in case.disputes)
        keywords.extend(law.lower() for law in case.laws)
        return list(dict.fromkeys(keywords))

    @staticmethod
    def _relevance_to_case(features: TextFeatures, case_keywords: List[str]) -> float:
        if not features.keywords:
            return 0.0
        matched = sum(
            1 for keyword in features.keywords
            if any(keyword in case_kw or case_kw in keyword for case_kw in case_keywords)
        )
        return matched / len(features.keywords)

    @staticmethod
    def _cache_key(text1: str, text2: str, context: Optional[AgentContext]) -> Tuple[str, str]:
        first, second = sorted((text1, text2))
        if context is not None:
            second = f"{second}|{context.case_id}|{int(context.level)}"
        return first, second
