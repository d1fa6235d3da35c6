"""
Closed vocabulary of adaptable factors.

Ranking factors and signal kinds both carry adaptive multipliers. Keys are
enums; a plain string that names neither is still accepted and treated as
an unknown factor with weight 1.0 and LOW impact.
"""
from typing import Dict, Union
from enum import Enum

from screenfuse.signals.models import SignalKind


class ImpactTier(str, Enum):
    """How strongly feedback moves a factor's weight."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NEGLIGIBLE = "negligible"
    
    @property
    def multiplier(self) -> float:
        return IMPACT_MULTIPLIERS[self]


IMPACT_MULTIPLIERS: Dict[ImpactTier, float] = {
    ImpactTier.HIGH: 2.0,
    ImpactTier.MEDIUM: 1.5,
    ImpactTier.LOW: 1.0,
    ImpactTier.NEGLIGIBLE: 0.5,
}


class RankingFactorKind(str, Enum):
    """Named ranking factors, each scored in [0, 1] per candidate."""
    TEXT_RELEVANCE = "text_relevance"
    EXACT_MATCH = "exact_match"
    PARTIAL_MATCH = "partial_match"
    TAG_RELEVANCE = "tag_relevance"
    SEMANTIC_RELEVANCE = "semantic_relevance"
    TEMPORAL_RELEVANCE = "temporal_relevance"
    RECENT_ACTIVITY = "recent_activity"
    VISUAL_QUALITY = "visual_quality"
    USER_ENGAGEMENT = "user_engagement"
    FAVORITE_BOOST = "favorite_boost"
    CONTENT_TYPE_MATCH = "content_type_match"
    APP_PREFERENCE = "app_preference"
    QUALITY_SCORE = "quality_score"
    
    @property
    def default_weight(self) -> float:
        return RANKING_DEFAULT_WEIGHTS.get(self, 1.0)
    
    @property
    def default_impact(self) -> ImpactTier:
        return RANKING_DEFAULT_IMPACTS[self]
    
    @property
    def description(self) -> str:
        return self.value.replace("_", " ").capitalize()


# Static per-factor weights; adaptive multipliers are applied on top
RANKING_DEFAULT_WEIGHTS: Dict[RankingFactorKind, float] = {
    RankingFactorKind.TEXT_RELEVANCE: 1.0,
    RankingFactorKind.EXACT_MATCH: 1.5,
    RankingFactorKind.PARTIAL_MATCH: 0.8,
    RankingFactorKind.TAG_RELEVANCE: 0.9,
    RankingFactorKind.SEMANTIC_RELEVANCE: 0.9,
    RankingFactorKind.TEMPORAL_RELEVANCE: 0.7,
    RankingFactorKind.RECENT_ACTIVITY: 0.6,
    RankingFactorKind.VISUAL_QUALITY: 0.6,
    RankingFactorKind.USER_ENGAGEMENT: 0.8,
    RankingFactorKind.FAVORITE_BOOST: 1.2,
    RankingFactorKind.CONTENT_TYPE_MATCH: 0.7,
    RankingFactorKind.APP_PREFERENCE: 0.5,
    RankingFactorKind.QUALITY_SCORE: 0.8,
}

RANKING_DEFAULT_IMPACTS: Dict[RankingFactorKind, ImpactTier] = {
    RankingFactorKind.TEXT_RELEVANCE: ImpactTier.HIGH,
    RankingFactorKind.EXACT_MATCH: ImpactTier.HIGH,
    RankingFactorKind.PARTIAL_MATCH: ImpactTier.MEDIUM,
    RankingFactorKind.TAG_RELEVANCE: ImpactTier.MEDIUM,
    RankingFactorKind.SEMANTIC_RELEVANCE: ImpactTier.HIGH,
    RankingFactorKind.TEMPORAL_RELEVANCE: ImpactTier.MEDIUM,
    RankingFactorKind.RECENT_ACTIVITY: ImpactTier.LOW,
    RankingFactorKind.VISUAL_QUALITY: ImpactTier.MEDIUM,
    RankingFactorKind.USER_ENGAGEMENT: ImpactTier.HIGH,
    RankingFactorKind.FAVORITE_BOOST: ImpactTier.HIGH,
    RankingFactorKind.CONTENT_TYPE_MATCH: ImpactTier.MEDIUM,
    RankingFactorKind.APP_PREFERENCE: ImpactTier.LOW,
    RankingFactorKind.QUALITY_SCORE: ImpactTier.LOW,
}

FactorKey = Union[RankingFactorKind, SignalKind, str]


def resolve_factor(factor: FactorKey) -> FactorKey:
    """Map a raw string onto its enum member when one exists."""
    if isinstance(factor, (RankingFactorKind, SignalKind)):
        return factor
    for enum_cls in (RankingFactorKind, SignalKind):
        try:
            return enum_cls(factor)
        except ValueError:
            continue
    return factor


def factor_name(factor: FactorKey) -> str:
    """Storage key for a factor."""
    if isinstance(factor, Enum):
        return factor.value
    if not isinstance(factor, str) or not factor:
        raise ValueError(f"Invalid factor: {factor!r}")
    return factor


def default_impact(factor: FactorKey) -> ImpactTier:
    """Declared impact tier; signals are MEDIUM, unknown factors LOW."""
    resolved = resolve_factor(factor)
    if isinstance(resolved, RankingFactorKind):
        return resolved.default_impact
    if isinstance(resolved, SignalKind):
        return ImpactTier.MEDIUM
    return ImpactTier.LOW


def static_weight(factor: FactorKey) -> float:
    """A-priori weight for a factor (1.0 when none is declared)."""
    resolved = resolve_factor(factor)
    if isinstance(resolved, RankingFactorKind):
        return resolved.default_weight
    if isinstance(resolved, SignalKind):
        return resolved.base_weight
    return 1.0
