"""
Search result ranking.

The RankingOrchestrator:
1. Scores each candidate as a weighted sum of its ranking factors
2. Adds bounded personalization and contextual adjustments
3. Applies the diversity pass
4. Sorts deterministically (score, then input order)
"""
import time
from typing import Dict, List, Optional, Sequence

import numpy as np

from screenfuse.core.logging import get_logger
from screenfuse.learning.factors import (
    ImpactTier,
    RankingFactorKind,
    default_impact,
    resolve_factor,
    static_weight,
)
from screenfuse.learning.weights import AdaptiveWeightStore
from screenfuse.ranking.diversity import DiversityFilter
from screenfuse.ranking.models import (
    FactorContribution,
    RankedItem,
    RankingContext,
    RankingMetrics,
    ScoredItem,
)

logger = get_logger("ranking.orchestrator")

EXPLANATION_LIMIT = 5
EXPLANATION_MIN_CONTRIBUTION = 0.1


class RankingOrchestrator:
    """
    Multi-factor ranking with adaptive weights and diversity.
    
    Given identical candidates and unchanged weight state, rank() always
    returns the same order.
    """
    
    def __init__(
        self,
        weights: Optional[AdaptiveWeightStore] = None,
        diversity: Optional[DiversityFilter] = None,
        max_results: int = 100,
        contextual_boost_factor: float = 1.5,
        contextual_boost_max: float = 0.3,
        personalization_bound: float = 0.5
    ):
        self.weights = weights or AdaptiveWeightStore()
        self.diversity = diversity or DiversityFilter()
        self.max_results = max_results
        self.contextual_boost_factor = contextual_boost_factor
        self.contextual_boost_max = contextual_boost_max
        self.personalization_bound = personalization_bound
        self.last_metrics: Optional[RankingMetrics] = None
    
    def rank(
        self,
        candidates: Sequence[ScoredItem],
        context: Optional[RankingContext] = None
    ) -> List[RankedItem]:
        """
        Rank candidates best-first.
        
        Args:
            candidates: Items with per-factor scores; only the first
                max_results are ranked
            context: Request-scoped personalization/context inputs
            
        Returns:
            RankedItems sorted by final score, ties in input order
        """
        if not candidates:
            return []
        
        context = context or RankingContext()
        start = time.perf_counter()
        limited = list(candidates)[:self.max_results]
        
        ranked = [self.score_item(item, context, index) for index, item in enumerate(limited)]
        base_scores = [r.score for r in ranked]
        
        ranked = self.diversity.apply(ranked)
        
        self.last_metrics = self._build_metrics(
            context, len(candidates), ranked, base_scores, time.perf_counter() - start
        )
        logger.info(
            f"Ranked {len(ranked)} results for query '{context.query}': "
            f"avg score {self.last_metrics.average_score:.3f} "
            f"in {self.last_metrics.processing_time * 1000:.1f}ms"
        )
        return ranked
    
    def score_item(self, item: ScoredItem, context: RankingContext, index: int = 0) -> RankedItem:
        """Compute one candidate's final score and scoring detail."""
        contributions = self._contributions(item)
        
        weighted = sum(c.contribution for c in contributions)
        personalized = self._personalized_adjustment(item, contributions, context)
        boost = self._contextual_boost(item, context)
        
        return RankedItem(
            item=item,
            score=max(0.0, weighted + personalized + boost),
            input_index=index,
            contributions=contributions,
            personalized_adjustment=personalized,
            contextual_boost=boost,
            confidence=self._confidence(contributions),
            explanations=self._summaries(contributions),
        )
    
    def explain(self, item: ScoredItem, context: Optional[RankingContext] = None) -> List[str]:
        """
        Human-readable top contributing factors for one candidate.
        
        Factors are ordered by contribution magnitude; at most five are
        returned and contributions of 0.1 or less are left out.
        """
        ranked = self.score_item(item, context or RankingContext())
        ordered = sorted(ranked.contributions, key=lambda c: -abs(c.contribution))
        
        explanations = []
        for c in ordered[:EXPLANATION_LIMIT]:
            if abs(c.contribution) > EXPLANATION_MIN_CONTRIBUTION:
                explanations.append(f"{c.description} (score: {c.contribution:.2f})")
        return explanations
    
    # ===== SCORING COMPONENTS =====
    
    def _contributions(self, item: ScoredItem) -> List[FactorContribution]:
        contributions = []
        for name, score in item.factor_scores.items():
            factor = resolve_factor(name)
            weight = static_weight(factor) * self.weights.get_weight(factor)
            impact = item.impacts.get(name, default_impact(factor))
            if name in item.descriptions:
                description = item.descriptions[name]
            elif isinstance(factor, RankingFactorKind):
                description = factor.description
            else:
                description = name.replace("_", " ").capitalize()
            contributions.append(FactorContribution(
                name=name,
                score=score,
                weight=weight,
                impact=impact,
                description=description,
            ))
        return contributions
    
    def _personalized_adjustment(
        self,
        item: ScoredItem,
        contributions: List[FactorContribution],
        context: RankingContext
    ) -> float:
        if not context.enable_personalization:
            return 0.0
        
        adjustment = 0.0
        for c in contributions:
            if self.weights.has_personalized_weight(c.name):
                adjustment += (self.weights.get_personalized_weight(c.name) - 1.0) * c.score * 0.1
        
        if item.content_type and item.content_type in context.preferred_content_types:
            adjustment += 0.1
        
        if context.satisfaction_history:
            if float(np.mean(context.satisfaction_history)) > 0.7:
                adjustment += 0.05
        
        bound = self.personalization_bound
        return max(-bound, min(bound, adjustment))
    
    def _contextual_boost(self, item: ScoredItem, context: RankingContext) -> float:
        if not context.enable_contextual:
            return 0.0
        return max(0.0, min(self.contextual_boost_max, item.contextual_boost * self.contextual_boost_factor))
    
    @staticmethod
    def _confidence(contributions: List[FactorContribution]) -> float:
        total = sum(c.impact.multiplier for c in contributions)
        high = sum(c.impact.multiplier for c in contributions if c.impact == ImpactTier.HIGH)
        return high / total if total > 0 else 0.5
    
    @staticmethod
    def _summaries(contributions: List[FactorContribution]) -> List[str]:
        top = sorted(contributions, key=lambda c: -c.contribution)[:3]
        return [
            f"{c.description}: {c.score * 100:.1f}%"
            for c in top
            if c.contribution > EXPLANATION_MIN_CONTRIBUTION
        ]
    
    # ===== METRICS =====
    
    def _build_metrics(
        self,
        context: RankingContext,
        total: int,
        ranked: List[RankedItem],
        base_scores: List[float],
        elapsed: float
    ) -> RankingMetrics:
        factor_totals: Dict[str, float] = {}
        for r in ranked:
            for c in r.contributions:
                factor_totals[c.name] = factor_totals.get(c.name, 0.0) + c.contribution
        
        return RankingMetrics(
            query=context.query,
            total_results=total,
            ranked_results=len(ranked),
            average_score=float(np.mean(base_scores)) if base_scores else 0.0,
            score_distribution=score_distribution(base_scores),
            factor_contributions=factor_totals,
            personalization_impact=float(np.mean([r.personalized_adjustment for r in ranked])),
            contextual_impact=float(np.mean([r.contextual_boost for r in ranked])),
            processing_time=elapsed,
        )


def score_distribution(scores: Sequence[float]) -> List[float]:
    """Min, Q1, median, Q3, max by index into the sorted scores."""
    if not scores:
        return []
    ordered = sorted(scores)
    n = len(ordered)
    return [ordered[0], ordered[n // 4], ordered[n // 2], ordered[3 * n // 4], ordered[n - 1]]
