"""
Multi-signal fusion for categorization and content similarity.

The fusion module provides:
- Weighted per-label accumulation of signal results
- Uncertainty estimation (entropy, margin, variance)
- Cached pairwise similarity fusion
"""
from screenfuse.fusion.config import FusionConfig, SignalWeights, SimilarityWeights
from screenfuse.fusion.uncertainty import Uncertainty, UncertaintyEstimator
from screenfuse.fusion.engine import FusionEngine, FusionDecision
from screenfuse.fusion.similarity import (
    SimilarityEngine,
    SimilarityComponents,
    SimilarityResult,
    SimilarityLevel,
)

__all__ = [
    "FusionConfig",
    "SignalWeights",
    "SimilarityWeights",
    "Uncertainty",
    "UncertaintyEstimator",
    "FusionEngine",
    "FusionDecision",
    "SimilarityEngine",
    "SimilarityComponents",
    "SimilarityResult",
    "SimilarityLevel",
]
