"""
Feedback-driven weight learning and its persistence.
"""
from screenfuse.learning.factors import (
    ImpactTier,
    RankingFactorKind,
    FactorKey,
    resolve_factor,
    factor_name,
    default_impact,
    static_weight,
)
from screenfuse.learning.weights import (
    AdaptiveWeightStore,
    LearningEvent,
    WeightState,
    clamp_feedback,
)
from screenfuse.learning.feedback import CategoryFeedback, CategoryFeedbackLearner
from screenfuse.learning.persistence import WeightStateStore

__all__ = [
    "ImpactTier",
    "RankingFactorKind",
    "FactorKey",
    "resolve_factor",
    "factor_name",
    "default_impact",
    "static_weight",
    "AdaptiveWeightStore",
    "LearningEvent",
    "WeightState",
    "clamp_feedback",
    "CategoryFeedback",
    "CategoryFeedbackLearner",
    "WeightStateStore",
]
