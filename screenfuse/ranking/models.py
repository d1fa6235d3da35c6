"""
Ranking data models.
"""
from typing import Dict, List, Any, Optional
from dataclasses import dataclass, field
from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator

from screenfuse.learning.factors import ImpactTier


class ScoredItem(BaseModel):
    """
    A search candidate with its per-factor scores.
    
    Factor scores are keyed by factor name (RankingFactorKind values or any
    custom name) and must lie in [0, 1].
    """
    item_id: str = Field(..., min_length=1)
    factor_scores: Dict[str, float] = Field(default_factory=dict)
    
    # Diversity discriminators
    source_app: Optional[str] = None
    content_type: Optional[str] = None
    
    # Request-scoped contextual boost computed by the caller (pre-bounding)
    contextual_boost: float = Field(default=0.0, ge=0.0)
    
    # Optional per-factor overrides
    impacts: Dict[str, ImpactTier] = Field(default_factory=dict)
    descriptions: Dict[str, str] = Field(default_factory=dict)
    
    @field_validator("factor_scores")
    @classmethod
    def validate_scores(cls, v: Dict[str, float]) -> Dict[str, float]:
        for name, score in v.items():
            if not 0.0 <= score <= 1.0:
                raise ValueError(f"Factor '{name}' score {score} outside [0, 1]")
        return v


class RankingContext(BaseModel):
    """Request-scoped inputs to ranking."""
    query: str = ""
    preferred_content_types: List[str] = Field(default_factory=list)
    satisfaction_history: List[float] = Field(default_factory=list)
    enable_personalization: bool = True
    enable_contextual: bool = True


@dataclass
class FactorContribution:
    """One factor's share of a candidate's final score."""
    name: str
    score: float
    weight: float
    impact: ImpactTier
    description: str
    
    @property
    def contribution(self) -> float:
        return self.weight * self.score


@dataclass
class RankedItem:
    """A candidate with its final score and scoring detail."""
    item: ScoredItem
    score: float
    input_index: int
    contributions: List[FactorContribution] = field(default_factory=list)
    personalized_adjustment: float = 0.0
    contextual_boost: float = 0.0
    confidence: float = 0.5
    explanations: List[str] = field(default_factory=list)
    diversity_penalized: bool = False
    
    @property
    def item_id(self) -> str:
        return self.item.item_id
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "item_id": self.item_id,
            "score": round(self.score, 4),
            "confidence": round(self.confidence, 3),
            "personalized_adjustment": round(self.personalized_adjustment, 4),
            "contextual_boost": round(self.contextual_boost, 4),
            "diversity_penalized": self.diversity_penalized,
            "explanations": self.explanations,
        }


@dataclass
class RankingMetrics:
    """Aggregate statistics for one rank() call."""
    query: str
    total_results: int
    ranked_results: int
    average_score: float
    score_distribution: List[float]
    factor_contributions: Dict[str, float]
    personalization_impact: float
    contextual_impact: float
    processing_time: float
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
