"""
Adaptive factor weights learned from user feedback.

Each adaptable factor (ranking factor or signal kind) carries a multiplier,
1.0 by default and always clamped to [0.1, 3.0]. Feedback above 0.5 pushes
the involved factors up, feedback below 0.5 pushes them down, scaled by the
factor's impact tier.

A bounded history of learning events backs a convergence score: how stable
recent feedback has been.
"""
import math
import threading
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Union

import numpy as np
from pydantic import BaseModel, Field

from screenfuse.core.logging import get_logger
from screenfuse.learning.factors import (
    FactorKey,
    ImpactTier,
    default_impact,
    factor_name,
)

logger = get_logger("learning.weights")

DEFAULT_WEIGHT = 1.0
WEIGHT_MIN = 0.1
WEIGHT_MAX = 3.0
HISTORY_CAP = 100
CONVERGENCE_WINDOW = 10


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LearningEvent(BaseModel):
    """One feedback application and the post-update weights it produced."""
    feedback: float = Field(..., ge=0.0, le=1.0)
    adjustments: Dict[str, float] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=_utcnow)
    query: str = ""


class WeightState(BaseModel):
    """Flat persisted record of the weight store."""
    weights: Dict[str, float] = Field(default_factory=dict)
    personalized_weights: Dict[str, float] = Field(default_factory=dict)
    history: List[LearningEvent] = Field(default_factory=list)
    last_updated: datetime = Field(default_factory=_utcnow)
    adaptation_count: int = Field(default=0, ge=0)
    convergence_score: float = Field(default=0.0, ge=0.0, le=1.0)


FactorSpec = Union[Mapping[FactorKey, ImpactTier], Iterable[FactorKey]]


def clamp_feedback(feedback: float) -> float:
    """Clamp feedback into [0, 1]; NaN is treated as neutral."""
    if feedback is None or math.isnan(feedback):
        logger.warning("Feedback is NaN/None, treating as neutral 0.5")
        return 0.5
    if feedback < 0.0 or feedback > 1.0:
        clamped = min(1.0, max(0.0, feedback))
        logger.warning(f"Feedback {feedback} outside [0, 1], clamped to {clamped}")
        return clamped
    return float(feedback)


class AdaptiveWeightStore:
    """
    Thread-safe store of adaptive factor multipliers.
    
    Every public method runs under one lock, so a concurrent reader sees
    either the old or the new weights of an update, never a mix.
    
    Args:
        normalize: Weight family flag. When set, normalized_weights() scales
            the positive weights to sum to 1.0. Ranking factors are a
            multiplicative family and leave this off.
    """
    
    def __init__(
        self,
        min_weight: float = WEIGHT_MIN,
        max_weight: float = WEIGHT_MAX,
        history_cap: int = HISTORY_CAP,
        convergence_window: int = CONVERGENCE_WINDOW,
        normalize: bool = False,
        clock: Callable[[], datetime] = _utcnow
    ):
        self.min_weight = min_weight
        self.max_weight = max_weight
        self.history_cap = history_cap
        self.convergence_window = convergence_window
        self.normalize = normalize
        self._clock = clock
        self._lock = threading.Lock()
        self._state = WeightState(last_updated=clock())
    
    # ===== READS =====
    
    def get_weight(self, factor: FactorKey) -> float:
        """Adaptive multiplier for a factor (1.0 if never adjusted)."""
        key = factor_name(factor)
        with self._lock:
            return self._state.weights.get(key, DEFAULT_WEIGHT)
    
    def get_personalized_weight(self, factor: FactorKey) -> float:
        key = factor_name(factor)
        with self._lock:
            return self._state.personalized_weights.get(key, DEFAULT_WEIGHT)
    
    def has_personalized_weight(self, factor: FactorKey) -> bool:
        key = factor_name(factor)
        with self._lock:
            return key in self._state.personalized_weights
    
    def weights(self) -> Dict[str, float]:
        with self._lock:
            return dict(self._state.weights)
    
    def normalized_weights(self) -> Dict[str, float]:
        """Positive weights scaled to sum to 1.0 (normalized families only)."""
        with self._lock:
            weights = dict(self._state.weights)
        if not self.normalize:
            return weights
        positive = {k: v for k, v in weights.items() if v > 0}
        total = sum(positive.values())
        if total <= 0:
            return {}
        return {k: v / total for k, v in positive.items()}
    
    @property
    def convergence_score(self) -> float:
        with self._lock:
            return self._state.convergence_score
    
    @property
    def adaptation_count(self) -> int:
        with self._lock:
            return self._state.adaptation_count
    
    @property
    def history(self) -> List[LearningEvent]:
        with self._lock:
            return list(self._state.history)
    
    # ===== UPDATES =====
    
    def adapt(
        self,
        feedback: float,
        factors: FactorSpec,
        learning_rate: float = 0.1,
        query: str = ""
    ) -> Dict[str, float]:
        """
        Fold one piece of feedback into the involved factors' weights.
        
        Args:
            feedback: Satisfaction in [0, 1]; out-of-range values are clamped.
            factors: Factor -> impact tier mapping, or plain factors using
                their declared default tier.
            learning_rate: Step size.
            query: Optional context recorded on the learning event.
        
        Returns:
            Post-update weights of the involved factors.
        """
        feedback = clamp_feedback(feedback)
        tiers = self._resolve_tiers(factors)
        
        with self._lock:
            state = self._state
            state.adaptation_count += 1
            
            adjustments: Dict[str, float] = {}
            for key, tier in tiers.items():
                current = state.weights.get(key, DEFAULT_WEIGHT)
                delta = (feedback - 0.5) * learning_rate * tier.multiplier
                updated = self._clamp(current + delta)
                state.weights[key] = updated
                adjustments[key] = updated
            
            state.history.append(LearningEvent(
                feedback=feedback,
                adjustments=adjustments,
                timestamp=self._clock(),
                query=query
            ))
            # Drop the oldest half at once to amortize truncation
            if len(state.history) > self.history_cap:
                del state.history[:self.history_cap // 2]
            
            state.last_updated = self._clock()
            state.convergence_score = self._compute_convergence(state.history)
        
        logger.debug(
            f"Adapted {len(adjustments)} factors from feedback {feedback:.2f} "
            f"(convergence {self.convergence_score:.3f})"
        )
        return adjustments
    
    def personalize(
        self,
        feedback: float,
        factors: Iterable[FactorKey],
        learning_rate: float = 0.1,
        boost_above: float = 0.7,
        reduce_below: float = 0.3
    ) -> None:
        """
        Multiplicative personal preference update.
        
        Strong satisfaction grows the given factors by (1 + lr), strong
        dissatisfaction shrinks them by (1 - lr); anything in between is
        ignored.
        """
        feedback = clamp_feedback(feedback)
        if feedback > boost_above:
            scale = 1.0 + learning_rate
        elif feedback < reduce_below:
            scale = 1.0 - learning_rate
        else:
            return
        
        keys = [factor_name(f) for f in factors]
        with self._lock:
            personalized = self._state.personalized_weights
            for key in keys:
                personalized[key] = self._clamp(personalized.get(key, DEFAULT_WEIGHT) * scale)
            self._state.last_updated = self._clock()
    
    def reset(self) -> None:
        """Forget all learned weights and history."""
        with self._lock:
            self._state = WeightState(last_updated=self._clock())
        logger.info("Adaptive weights reset to defaults")
    
    # ===== PERSISTENCE SUPPORT =====
    
    def snapshot(self) -> WeightState:
        """Deep copy of the current state."""
        with self._lock:
            return self._state.model_copy(deep=True)
    
    def restore(self, state: WeightState) -> None:
        """Replace the current state, re-clamping every weight."""
        restored = state.model_copy(deep=True)
        restored.weights = {k: self._clamp(v) for k, v in restored.weights.items()}
        restored.personalized_weights = {
            k: self._clamp(v) for k, v in restored.personalized_weights.items()
        }
        if len(restored.history) > self.history_cap:
            restored.history = restored.history[-self.history_cap:]
        with self._lock:
            self._state = restored
    
    # ===== HELPERS =====
    
    def _clamp(self, value: float) -> float:
        return max(self.min_weight, min(self.max_weight, value))
    
    def _compute_convergence(self, history: List[LearningEvent]) -> float:
        if len(history) < self.convergence_window:
            return self._state.convergence_score
        recent = np.array([e.feedback for e in history[-self.convergence_window:]])
        # Sample variance over the recent window
        variance = float(np.var(recent, ddof=1)) if len(recent) > 1 else 0.0
        return max(0.0, 1.0 - variance)
    
    @staticmethod
    def _resolve_tiers(factors: FactorSpec) -> Dict[str, ImpactTier]:
        if isinstance(factors, Mapping):
            return {factor_name(f): ImpactTier(t) for f, t in factors.items()}
        if isinstance(factors, str):
            factors = [factors]
        return {factor_name(f): default_impact(f) for f in factors}
