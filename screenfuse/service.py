"""
FusionService - the caller-facing entry point.

Wires the fusion engine, score cache, adaptive weights, category feedback,
similarity and ranking together. Every collaborator is injected through
the constructor.
"""
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from screenfuse.cache.keys import fingerprint, prefixed_key
from screenfuse.cache.score_cache import CacheStats, ScoreCache
from screenfuse.core.config import Settings
from screenfuse.core.logging import get_logger
from screenfuse.fusion.config import FusionConfig
from screenfuse.fusion.engine import FusionDecision, FusionEngine
from screenfuse.fusion.similarity import ComponentFn, SimilarityEngine, SimilarityResult
from screenfuse.learning.factors import FactorKey, ImpactTier, default_impact, factor_name
from screenfuse.learning.feedback import CategoryFeedback, CategoryFeedbackLearner
from screenfuse.learning.persistence import WeightStateStore
from screenfuse.learning.weights import AdaptiveWeightStore, clamp_feedback
from screenfuse.ranking.diversity import DiversityFilter
from screenfuse.ranking.models import RankedItem, RankingContext, RankingMetrics, ScoredItem
from screenfuse.ranking.orchestrator import RankingOrchestrator
from screenfuse.signals.collector import SignalCollector, SignalGatherer
from screenfuse.signals.models import SignalResult

logger = get_logger("service")


@dataclass
class CategorizationMetrics:
    """Rolling categorization statistics."""
    total_categorizations: int = 0
    total_processing_time: float = 0.0
    recent_confidences: Deque[float] = field(default_factory=lambda: deque(maxlen=100))

    def record(self, duration: float, decision: FusionDecision) -> None:
        self.total_categorizations += 1
        self.total_processing_time += duration
        # Winner score stands in for confidence
        self.recent_confidences.append(decision.score)

    @property
    def average_processing_time(self) -> float:
        if self.total_categorizations == 0:
            return 0.0
        return self.total_processing_time / self.total_categorizations

    @property
    def average_confidence(self) -> float:
        if not self.recent_confidences:
            return 0.0
        return sum(self.recent_confidences) / len(self.recent_confidences)

    def to_dict(self) -> Dict[str, float]:
        return {
            "categorizations": self.total_categorizations,
            "average_processing_time": round(self.average_processing_time, 4),
            "average_confidence": round(self.average_confidence, 4),
        }


class FusionService:
    """
    Fusion, similarity, ranking, and learning behind one object.

    Args:
        settings: Library settings; defaults are used when omitted
        fusion_config: Signal weights / top-K / fallback label
        weights: Adaptive weight store shared by fusion and ranking
        cache: Cache for categorizations and pairwise similarity
        state_store: Optional persistence for the weight store; when
            omitted and settings.weight_state_path is set, one is created
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        fusion_config: Optional[FusionConfig] = None,
        weights: Optional[AdaptiveWeightStore] = None,
        cache: Optional[ScoreCache] = None,
        state_store: Optional[WeightStateStore] = None,
        label_learner: Optional[CategoryFeedbackLearner] = None
    ):
        self.settings = settings or Settings()
        s = self.settings

        if fusion_config is None:
            fusion_config = FusionConfig(top_k=s.fusion_top_k, fallback_label=s.fallback_label)
        self.engine = FusionEngine(fusion_config)

        self.weights = weights or AdaptiveWeightStore(
            min_weight=s.weight_min,
            max_weight=s.weight_max,
            history_cap=s.history_cap,
            convergence_window=s.convergence_window,
        )
        self.label_learner = label_learner or CategoryFeedbackLearner()
        self.cache = cache if cache is not None else ScoreCache(
            ttl=s.cache_ttl_seconds,
            capacity=s.cache_capacity,
        )

        self.gatherer = SignalGatherer(
            timeout=s.signal_timeout_seconds,
            fallback_label=fusion_config.fallback_label,
            placeholder_confidence=s.placeholder_confidence,
        )
        self.similarity_engine = SimilarityEngine(
            cache=self.cache,
            weights=fusion_config.similarity_weights,
            threshold=s.similarity_threshold,
        )
        self.ranker = RankingOrchestrator(
            weights=self.weights,
            diversity=DiversityFilter(
                diversity_weight=s.diversity_weight,
                app_cap=s.diversity_app_cap,
                content_type_cap=s.diversity_content_type_cap,
            ),
            max_results=s.max_results_to_rank,
            contextual_boost_factor=s.contextual_boost_factor,
            contextual_boost_max=s.contextual_boost_max,
            personalization_bound=s.personalization_bound,
        )

        self.state_store = state_store
        if self.state_store is None and s.weight_state_path:
            self.state_store = WeightStateStore(s.weight_state_path)
        if self.state_store is not None:
            self.state_store.load_into(self.weights)

        self._metrics = CategorizationMetrics()
        # Bumped on every learning change so cached categorizations go stale
        self._weights_version = 0

        logger.info(
            f"FusionService initialized (cache capacity {s.cache_capacity}, "
            f"ttl {s.cache_ttl_seconds:.0f}s, top-k {fusion_config.top_k})"
        )

    # ===== FUSION =====

    def fuse(self, results: Sequence[SignalResult]) -> FusionDecision:
        """Fuse already-collected signals with the current learned weights."""
        return self.engine.fuse(results, self.weights, label_bias=self.label_learner.label_bias)

    async def categorize(
        self,
        item: Any,
        collectors: Sequence[SignalCollector],
        use_cache: bool = True
    ) -> FusionDecision:
        """
        Collect every signal for an item concurrently and fuse them.

        Failed or timed-out collectors are replaced by low-confidence
        placeholders. With use_cache, the decision is cached under the
        item's content fingerprint and the ordered collector kinds until the
        learned weights change. Decisions fused from degraded signals are
        never cached. Every call returns its own copy.
        """
        key = None
        if use_cache:
            key = prefixed_key(
                f"categorize:v{self._weights_version}",
                {"item": fingerprint(item), "signals": [c.kind.value for c in collectors]},
            )
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug(f"Categorization cache hit: {key}")
                return cached.copy()

        start = time.perf_counter()
        results = await self.gatherer.gather(item, collectors)
        decision = self.fuse(results)
        elapsed = time.perf_counter() - start
        self._metrics.record(elapsed, decision)

        degraded = [r.signal.value for r in results if r.degraded]
        if key is not None:
            if degraded:
                logger.debug(f"Not caching decision fused from degraded signals: {degraded}")
            else:
                self.cache.put(key, decision.copy())

        logger.info(
            f"Categorized as '{decision.label}' (score {decision.score:.3f}, "
            f"margin {decision.uncertainty.margin:.3f}) in {elapsed:.2f}s"
        )
        return decision

    # ===== SIMILARITY =====

    def similarity(self, source_id: str, target_id: str, compute: ComponentFn) -> SimilarityResult:
        return self.similarity_engine.similarity(source_id, target_id, compute)

    def find_similar(
        self,
        reference_id: str,
        candidate_ids: Sequence[str],
        compute: ComponentFn,
        limit: int = 10
    ) -> List[SimilarityResult]:
        return self.similarity_engine.find_similar(reference_id, candidate_ids, compute, limit)

    # ===== RANKING =====

    def rank(
        self,
        candidates: Sequence[ScoredItem],
        context: Optional[RankingContext] = None
    ) -> List[RankedItem]:
        return self.ranker.rank(candidates, context)

    def explain(self, item: ScoredItem, context: Optional[RankingContext] = None) -> List[str]:
        return self.ranker.explain(item, context)

    @property
    def last_ranking_metrics(self) -> Optional[RankingMetrics]:
        return self.ranker.last_metrics

    # ===== LEARNING =====

    def learn_from_feedback(
        self,
        feedback: float,
        involved_factors: Union[Mapping[FactorKey, ImpactTier], Iterable[FactorKey]],
        query: str = ""
    ) -> Dict[str, float]:
        """
        Fold user satisfaction into the involved factors' weights.

        Returns the post-update adaptive weights of those factors.
        """
        feedback = clamp_feedback(feedback)
        if isinstance(involved_factors, Mapping):
            tiers = {factor_name(f): ImpactTier(t) for f, t in involved_factors.items()}
        else:
            tiers = {factor_name(f): default_impact(f) for f in involved_factors}

        lr = self.settings.learning_rate
        adjustments = self.weights.adapt(feedback, tiers, learning_rate=lr, query=query)
        self.weights.personalize(
            feedback,
            [name for name, tier in tiers.items() if tier == ImpactTier.HIGH],
            learning_rate=lr,
        )
        self._weights_changed()

        logger.info(
            f"Ranking weights updated from feedback {feedback:.2f} "
            f"({len(adjustments)} factors, convergence {self.weights.convergence_score:.3f})"
        )
        return adjustments

    def submit_category_feedback(self, feedback: CategoryFeedback) -> None:
        self.label_learner.submit(feedback)
        self._weights_changed()

    def reset_personalization(self) -> None:
        """Forget everything learned from feedback."""
        self.weights.reset()
        self.label_learner.reset()
        self._weights_changed()
        logger.info("Personalization reset")

    def save(self) -> bool:
        """Persist the weight store; False when unconfigured or on failure."""
        if self.state_store is None:
            return False
        return self.state_store.save_from(self.weights)

    # ===== MAINTENANCE =====

    def cache_stats(self) -> CacheStats:
        return self.cache.stats()

    def clear_expired(self) -> int:
        return self.cache.clear_expired()

    def metrics(self) -> CategorizationMetrics:
        return self._metrics

    def _weights_changed(self) -> None:
        self._weights_version += 1
        if self.state_store is not None:
            self.state_store.save_from(self.weights)
