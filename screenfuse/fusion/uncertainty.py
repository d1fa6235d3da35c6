"""
Uncertainty estimation over a fused score distribution.

Entropy, margin, and variance are descriptive numbers for downstream
consumers ("ask the user to confirm" heuristics and the like). No
pass/fail threshold is defined here; thresholds are caller policy.
"""
import math
from typing import Mapping

import numpy as np
from pydantic import BaseModel, ConfigDict

# Floor for the probability normalizer
PROBABILITY_EPSILON = 1e-3


class Uncertainty(BaseModel):
    """Entropy / margin / variance of a label score distribution."""
    model_config = ConfigDict(frozen=True)
    
    entropy: float
    margin: float
    variance: float
    
    @classmethod
    def maximal(cls) -> "Uncertainty":
        """Uncertainty reported when nothing could be decided."""
        return cls(entropy=1.0, margin=0.0, variance=1.0)
    
    def is_ambiguous(self, margin_below: float) -> bool:
        """Caller-supplied policy: is the winner too close to the runner-up?"""
        return self.margin < margin_below
    
    def to_dict(self):
        return {
            "entropy": round(self.entropy, 4),
            "margin": round(self.margin, 4),
            "variance": round(self.variance, 4),
        }


class UncertaintyEstimator:
    """Computes Uncertainty from raw (unnormalized) label scores."""
    
    def __init__(self, epsilon: float = PROBABILITY_EPSILON):
        self.epsilon = epsilon
    
    def estimate(self, scores: Mapping[str, float]) -> Uncertainty:
        if not scores:
            return Uncertainty(entropy=0.0, margin=0.0, variance=0.0)
        
        values = np.fromiter(scores.values(), dtype=float, count=len(scores))
        
        total = max(float(values.sum()), self.epsilon)
        entropy = 0.0
        for p in values / total:
            if p > 0:
                entropy -= p * math.log2(p)
        
        ordered = np.sort(values)[::-1]
        margin = float(ordered[0] - ordered[1]) if len(ordered) > 1 else float(ordered[0])
        
        # Population variance (ddof=0)
        variance = float(np.var(values))
        
        return Uncertainty(entropy=float(entropy), margin=margin, variance=variance)
