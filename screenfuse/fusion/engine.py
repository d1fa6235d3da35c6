"""
Fusion engine - combines weighted signal results into one decision.

The FusionEngine:
1. Weights each signal's confidence by its base weight and adaptive multiplier
2. Accumulates contributions per label
3. Picks the winning label and the top-K alternatives
4. Estimates uncertainty over the resulting score distribution

Scores are raw additive sums, not probabilities. They are only meaningful
relative to each other; use FusionDecision.relative_score when a [0, 1]
share is needed.
"""
from typing import Callable, Dict, List, Any, Mapping, Optional, Sequence, Tuple, Union
from dataclasses import dataclass, field, replace

from screenfuse.core.logging import get_logger
from screenfuse.fusion.config import FusionConfig
from screenfuse.fusion.uncertainty import Uncertainty, UncertaintyEstimator
from screenfuse.learning.weights import AdaptiveWeightStore
from screenfuse.signals.models import SignalKind, SignalResult

logger = get_logger("fusion.engine")

AdaptiveWeights = Union[AdaptiveWeightStore, Mapping[Any, float]]


@dataclass
class FusionDecision:
    """Complete result from the fusion engine."""
    label: str
    score: float
    
    # Runner-up labels, descending by score, winner excluded
    alternatives: List[Tuple[str, float]] = field(default_factory=list)
    uncertainty: Uncertainty = field(default_factory=Uncertainty.maximal)
    
    # Every attempted signal, in input order, degraded ones included
    contributing_signals: List[SignalKind] = field(default_factory=list)
    
    # Full per-label score map in first-contribution order
    label_scores: Dict[str, float] = field(default_factory=dict)
    is_fallback: bool = False
    
    @property
    def relative_score(self) -> float:
        """Winner's share of the total fused mass (0-1)."""
        total = sum(self.label_scores.values())
        return self.score / total if total > 0 else 0.0
    
    def copy(self) -> "FusionDecision":
        """Copy with fresh containers, safe to hand to another caller."""
        return replace(
            self,
            alternatives=list(self.alternatives),
            contributing_signals=list(self.contributing_signals),
            label_scores=dict(self.label_scores),
        )
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "score": round(self.score, 4),
            "alternatives": [
                {"label": label, "score": round(score, 4)}
                for label, score in self.alternatives
            ],
            "uncertainty": self.uncertainty.to_dict(),
            "contributing_signals": [s.value for s in self.contributing_signals],
            "is_fallback": self.is_fallback,
        }


class FusionEngine:
    """
    Engine for fusing signal results into a labelled decision.
    """
    
    def __init__(
        self,
        config: Optional[FusionConfig] = None,
        estimator: Optional[UncertaintyEstimator] = None
    ):
        self.config = config or FusionConfig()
        self.estimator = estimator or UncertaintyEstimator()
    
    def fuse(
        self,
        results: Sequence[SignalResult],
        weights: Optional[AdaptiveWeights] = None,
        label_bias: Optional[Callable[[str], float]] = None
    ) -> FusionDecision:
        """
        Fuse signal results into one decision.
        
        Args:
            results: One SignalResult per attempted signal
            weights: Adaptive multipliers per signal kind (store or mapping);
                missing kinds count as 1.0
            label_bias: Optional learned per-label multiplier applied to the
                accumulated scores before the winner is picked
            
        Returns:
            FusionDecision; the fallback decision when nothing was fused
        """
        contributing = [r.signal for r in results]
        
        # Accumulate per label; dict order records first contribution
        label_scores: Dict[str, float] = {}
        for result in results:
            contribution = (
                result.confidence
                * self.config.signal_weights.for_kind(result.signal)
                * self._adaptive_weight(weights, result.signal)
            )
            label_scores[result.label] = label_scores.get(result.label, 0.0) + contribution
        
        if label_bias is not None:
            label_scores = {label: score * label_bias(label) for label, score in label_scores.items()}
        
        if not label_scores:
            logger.debug("No signals to fuse, returning fallback decision")
            return self.fallback_decision(contributing)
        
        # Strict comparison: on exact ties the first label processed wins
        winner, winner_score = None, 0.0
        for label, score in label_scores.items():
            if winner is None or score > winner_score:
                winner, winner_score = label, score
        
        # sorted() is stable, so tied alternatives keep first-seen order
        alternatives = sorted(
            ((label, score) for label, score in label_scores.items() if label != winner),
            key=lambda entry: -entry[1]
        )[:self.config.top_k]
        
        decision = FusionDecision(
            label=winner,
            score=winner_score,
            alternatives=alternatives,
            uncertainty=self.estimator.estimate(label_scores),
            contributing_signals=contributing,
            label_scores=label_scores,
        )
        
        logger.debug(
            f"Fused {len(results)} signals -> '{winner}' ({winner_score:.3f}), "
            f"margin {decision.uncertainty.margin:.3f}"
        )
        return decision
    
    def fallback_decision(self, contributing: Optional[List[SignalKind]] = None) -> FusionDecision:
        """Decision returned when no signal produced a label."""
        return FusionDecision(
            label=self.config.fallback_label,
            score=0.0,
            alternatives=[],
            uncertainty=Uncertainty.maximal(),
            contributing_signals=list(contributing or []),
            label_scores={},
            is_fallback=True,
        )
    
    @staticmethod
    def _adaptive_weight(weights: Optional[AdaptiveWeights], kind: SignalKind) -> float:
        if weights is None:
            return 1.0
        if isinstance(weights, AdaptiveWeightStore):
            return weights.get_weight(kind)
        if kind in weights:
            return float(weights[kind])
        return float(weights.get(kind.value, 1.0))
