"""
End-to-end tests for FusionService.
"""
import asyncio

import pytest

from screenfuse.cache.score_cache import ScoreCache
from screenfuse.core.config import Settings
from screenfuse.fusion.similarity import SimilarityComponents
from screenfuse.learning.feedback import CategoryFeedback
from screenfuse.ranking.models import ScoredItem
from screenfuse.service import FusionService
from screenfuse.signals.collector import FunctionCollector
from screenfuse.signals.models import SignalKind, SignalResult


class CountingAnalyzer:
    """Sync analyzer returning a fixed opinion and counting calls."""
    
    def __init__(self, kind, label, confidence):
        self.kind = kind
        self.label = label
        self.confidence = confidence
        self.calls = 0
    
    def __call__(self, item):
        self.calls += 1
        return SignalResult(signal=self.kind, label=self.label, confidence=self.confidence)



class FlakyAnalyzer:
    """Fails on its first call, then delegates."""
    
    def __init__(self, delegate):
        self.delegate = delegate
        self.calls = 0
    
    def __call__(self, item):
        self.calls += 1
        if self.calls == 1:
            raise RuntimeError("vision model warming up")
        return self.delegate(item)

@pytest.fixture
def analyzers():
    return [
        CountingAnalyzer(SignalKind.VISUAL, "receipt", 0.9),
        CountingAnalyzer(SignalKind.TEXTUAL, "receipt", 0.8),
        CountingAnalyzer(SignalKind.METADATA, "uncategorized", 0.1),
    ]


@pytest.fixture
def collectors(analyzers):
    return [FunctionCollector(a.kind, a) for a in analyzers]


class TestCategorize:
    """Tests for collection + fusion + caching."""
    
    def test_fuse_receipt(self, service, receipt_signals):
        decision = service.fuse(receipt_signals)
        assert decision.label == "receipt"
        assert decision.score == pytest.approx(0.555)
    
    def test_fuse_empty_is_fallback(self, service):
        decision = service.fuse([])
        assert decision.is_fallback
        assert decision.label == "uncategorized"
    
    def test_categorize(self, service, collectors):
        decision = asyncio.run(service.categorize("screenshot-1", collectors))
        
        assert decision.label == "receipt"
        assert decision.score == pytest.approx(0.555)
        assert decision.contributing_signals == [SignalKind.VISUAL, SignalKind.TEXTUAL, SignalKind.METADATA]
        assert service.metrics().total_categorizations == 1
    
    def test_repeat_is_cache_hit(self, service, collectors, analyzers):
        first = asyncio.run(service.categorize("screenshot-1", collectors))
        second = asyncio.run(service.categorize("screenshot-1", collectors))
        
        assert second == first
        assert analyzers[0].calls == 1
        stats = service.cache_stats()
        assert stats.requests == 2
        assert stats.hits == 1
    
    def test_cache_bypass(self, service, collectors, analyzers):
        asyncio.run(service.categorize("screenshot-1", collectors, use_cache=False))
        asyncio.run(service.categorize("screenshot-1", collectors, use_cache=False))
        assert analyzers[0].calls == 2
    
    def test_learning_invalidates_cached_decisions(self, service, collectors, analyzers):
        asyncio.run(service.categorize("screenshot-1", collectors))
        service.learn_from_feedback(1.0, {SignalKind.VISUAL: "high"})
        decision = asyncio.run(service.categorize("screenshot-1", collectors))
        
        assert analyzers[0].calls == 2
        assert decision.score == pytest.approx(0.9 * 0.35 * 1.1 + 0.8 * 0.30)
    
    def test_failing_collector_degrades(self, service, analyzers):
        def broken(item):
            raise RuntimeError("vision model unavailable")
        
        collectors = [
            FunctionCollector(SignalKind.VISUAL, broken),
            FunctionCollector(SignalKind.TEXTUAL, analyzers[1]),
        ]
        decision = asyncio.run(service.categorize("screenshot-2", collectors))
        
        assert decision.label == "receipt"
        assert decision.score == pytest.approx(0.24)
        assert SignalKind.VISUAL in decision.contributing_signals
        assert decision.label_scores["uncategorized"] == pytest.approx(0.1 * 0.35)
    
    def test_degraded_decision_is_not_cached(self, service, analyzers):
        flaky = FlakyAnalyzer(analyzers[0])
        collectors = [
            FunctionCollector(SignalKind.VISUAL, flaky),
            FunctionCollector(SignalKind.TEXTUAL, analyzers[1]),
        ]
        
        first = asyncio.run(service.categorize("screenshot-4", collectors))
        assert SignalKind.VISUAL in first.contributing_signals
        assert first.score == pytest.approx(0.24)
        assert len(service.cache) == 0
        
        second = asyncio.run(service.categorize("screenshot-4", collectors))
        assert flaky.calls == 2
        assert second.score == pytest.approx(0.555)
        assert len(service.cache) == 1
    
    def test_collector_set_is_part_of_cache_key(self, service, collectors, analyzers):
        metadata_only = asyncio.run(service.categorize("screenshot-1", collectors[2:]))
        full = asyncio.run(service.categorize("screenshot-1", collectors))
        
        assert metadata_only.contributing_signals == [SignalKind.METADATA]
        assert full.contributing_signals == [SignalKind.VISUAL, SignalKind.TEXTUAL, SignalKind.METADATA]
        assert full.label == "receipt"
        assert analyzers[2].calls == 2
    
    def test_cached_decision_is_isolated_from_callers(self, service, collectors):
        first = asyncio.run(service.categorize("screenshot-1", collectors))
        first.label_scores["tampered"] = 9.0
        first.alternatives.clear()
        first.contributing_signals.clear()
        
        second = asyncio.run(service.categorize("screenshot-1", collectors))
        assert "tampered" not in second.label_scores
        assert len(second.alternatives) == 1
        assert len(second.contributing_signals) == 3


class TestLearning:
    """Tests for feedback-driven learning through the service."""
    
    def test_learn_from_feedback(self, service):
        adjustments = service.learn_from_feedback(0.9, ["exact_match"])
        
        assert adjustments == {"exact_match": pytest.approx(1.08)}
        assert service.weights.get_weight("exact_match") == pytest.approx(1.08)
        assert service.weights.get_personalized_weight("exact_match") == pytest.approx(1.1)
    
    @pytest.mark.parametrize("feedback", [None, float("nan")])
    def test_missing_feedback_is_neutral(self, service, feedback):
        adjustments = service.learn_from_feedback(feedback, ["exact_match"])
        
        assert adjustments == {"exact_match": pytest.approx(1.0)}
        assert service.weights.history[-1].feedback == 0.5
        assert not service.weights.has_personalized_weight("exact_match")
    
    def test_learning_changes_ranking(self, service):
        candidate = ScoredItem(item_id="a", factor_scores={"exact_match": 1.0})
        before = service.rank([candidate])[0].score
        service.learn_from_feedback(0.9, ["exact_match"])
        after = service.rank([candidate])[0].score
        
        assert before == pytest.approx(1.5)
        # 1.5 * 1.08 plus the personalized adjustment (1.1 - 1) * 1.0 * 0.1
        assert after == pytest.approx(1.62 + 0.01)
    
    def test_category_feedback_flips_winner(self, service):
        results = [
            SignalResult(signal=SignalKind.VISUAL, label="invoice", confidence=0.8),
            SignalResult(signal=SignalKind.TEXTUAL, label="receipt", confidence=0.95),
        ]
        assert service.fuse(results).label == "receipt"
        
        service.submit_category_feedback(CategoryFeedback(
            item_id="screenshot-3",
            original_label="receipt",
            corrected_label="invoice",
            is_correct=False,
        ))
        assert service.fuse(results).label == "invoice"
    
    def test_reset_personalization(self, service):
        service.learn_from_feedback(0.9, ["exact_match"])
        service.submit_category_feedback(CategoryFeedback(
            item_id="x", original_label="receipt", corrected_label="invoice", is_correct=False
        ))
        service.reset_personalization()
        
        assert service.weights.get_weight("exact_match") == 1.0
        assert service.label_learner.label_weights() == {}
    
    def test_save_without_store(self, service):
        assert service.save() is False


class TestPersistence:
    """Learned weights survive a restart when a state path is configured."""
    
    def test_weights_reload_in_new_service(self, tmp_path):
        settings = Settings(weight_state_path=str(tmp_path / "weights.json"))
        
        first = FusionService(settings=settings)
        first.learn_from_feedback(0.9, ["exact_match"])
        
        second = FusionService(settings=settings)
        assert second.weights.get_weight("exact_match") == pytest.approx(1.08)
        assert second.weights.adaptation_count == 1
    
    def test_corrupt_state_uses_defaults(self, tmp_path):
        path = tmp_path / "weights.json"
        path.write_text("not json at all")
        
        service = FusionService(settings=Settings(weight_state_path=str(path)))
        assert service.weights.get_weight("exact_match") == 1.0


class TestRankingAndSimilarity:
    
    def test_rank_and_explain(self, service):
        candidates = [
            ScoredItem(item_id="a", factor_scores={"text_relevance": 0.4}),
            ScoredItem(item_id="b", factor_scores={"exact_match": 1.0}),
        ]
        ranked = service.rank(candidates)
        
        assert [r.item_id for r in ranked] == ["b", "a"]
        assert service.last_ranking_metrics.ranked_results == 2
        assert service.explain(candidates[1]) == ["Exact match (score: 1.50)"]
    
    def test_similarity_shares_cache(self, service):
        calls = []
        
        def compute(a, b):
            calls.append((a, b))
            return SimilarityComponents(text=1.0, visual=1.0, thematic=1.0, semantic=1.0)
        
        service.similarity("a", "b", compute)
        service.similarity("b", "a", compute)
        
        assert len(calls) == 1
        assert len(service.cache) == 1
        assert service.find_similar("a", ["b"], compute)[0].overall == pytest.approx(0.75)


class TestMaintenance:
    
    def test_clear_expired_and_metrics(self, clock, collectors):
        service = FusionService(settings=Settings(), cache=ScoreCache(ttl=60, clock=clock))
        asyncio.run(service.categorize("screenshot-1", collectors))
        clock.advance(61)
        
        assert service.clear_expired() == 1
        assert service.cache_stats().size == 0
        
        metrics = service.metrics().to_dict()
        assert metrics["categorizations"] == 1
        assert metrics["average_confidence"] == pytest.approx(0.555)
