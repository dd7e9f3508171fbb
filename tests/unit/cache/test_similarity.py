"""Unit tests for text similarity."""

import pytest

from socratic_resilience.cache import SimilarityCalculator, SimilarityWeights


class TestPreprocessing:
    """Test text normalisation and feature extraction."""

    @pytest.fixture
    def calculator(self):
        return SimilarityCalculator()

    def test_preprocess(self, calculator):
        assert calculator.preprocess("  What's the BREACH?!  ") == "what s the breach"

    def test_preprocess_keeps_chinese(self, calculator):
        assert calculator.preprocess("违约责任？") == "违约责任"

    def test_keywords_skip_stop_words_and_short_words(self, calculator):
        features = calculator.extract_features("Why is the seller liable for the late delivery of goods?")
        assert features.keywords == ["seller", "liable", "late", "delivery", "goods"]

    def test_keywords_are_unique(self, calculator):
        features = calculator.extract_features("breach breach breach")
        assert features.keywords == ["breach"]
        assert features.term_freq["breach"] == 3

    def test_legal_term_count(self, calculator):
        features = calculator.extract_features("Breach of contract gives a right to damages")
        assert features.legal_term_count == 3

    def test_empty_text(self, calculator):
        features = calculator.extract_features("")
        assert features.keywords == []
        assert features.complexity == 0.0


class TestCalculate:
    """Test the weighted similarity score."""

    @pytest.fixture
    def calculator(self):
        return SimilarityCalculator()

    def test_identical_texts_without_context(self, calculator):
        result = calculator.calculate("Is the seller liable for breach?", "Is the seller liable for breach?")
        assert result.text_similarity == pytest.approx(1.0)
        assert result.semantic_similarity == pytest.approx(1.0)
        assert result.context_similarity == 0.0
        assert result.score == pytest.approx(0.8)

    def test_identical_texts_with_context(self, calculator, sample_context):
        result = calculator.calculate("Is the seller liable?", "Is the seller liable?", sample_context)
        assert result.context_similarity == pytest.approx(1.0)
        assert result.score == pytest.approx(1.0)

    def test_context_without_case_only_counts_level(self, calculator, generic_context):
        result = calculator.calculate("seller delivered late", "seller delivered late", generic_context)
        assert result.context_similarity == pytest.approx(0.2)

    def test_unrelated_texts_score_low(self, calculator):
        result = calculator.calculate("seller delivered goods late", "weather forecast tomorrow morning")
        assert result.text_similarity == 0.0
        assert result.matched_keywords == []
        assert result.score < 0.5

    def test_related_texts_rank_above_unrelated(self, calculator):
        related = calculator.calculate("Was the seller in breach?", "Is the seller liable for breach?")
        unrelated = calculator.calculate("Was the seller in breach?", "Explain the weather tomorrow")
        assert related.score > unrelated.score
        assert related.matched_keywords == ["breach", "seller"]

    def test_score_is_bounded(self, calculator, sample_context):
        weights = SimilarityWeights(text=1.0, semantic=1.0, context=1.0)
        result = SimilarityCalculator(weights=weights).calculate("breach", "breach", sample_context)
        assert result.score == 1.0

    def test_symmetric_and_memoised(self, calculator):
        first = calculator.calculate("seller breach", "buyer damages")
        second = calculator.calculate("buyer damages", "seller breach")

        assert not first.cached
        assert second.cached
        assert second.score == first.score

    def test_memo_cleared_when_full(self):
        calculator = SimilarityCalculator(max_cache_size=2)
        calculator.calculate("a1", "b1")
        calculator.calculate("a2", "b2")
        calculator.calculate("a3", "b3")
        assert len(calculator._cache) == 1

    def test_memo_disabled(self):
        calculator = SimilarityCalculator(enable_cache=False)
        calculator.calculate("seller", "buyer")
        assert not calculator.calculate("seller", "buyer").cached

    def test_find_most_similar(self, calculator):
        results = calculator.find_most_similar(
            "Is the seller liable for breach?",
            ["Weather tomorrow", "Is the seller liable for breach?", "Was the seller in breach?"],
            threshold=0.3
        )
        candidates = [candidate for candidate, _ in results]
        assert candidates[0] == "Is the seller liable for breach?"
        assert "Was the seller in breach?" in candidates
