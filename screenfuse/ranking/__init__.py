"""
Search result ranking with adaptive weights and diversity.
"""
from screenfuse.ranking.models import (
    ScoredItem,
    RankingContext,
    RankedItem,
    FactorContribution,
    RankingMetrics,
)
from screenfuse.ranking.diversity import DiversityFilter
from screenfuse.ranking.orchestrator import RankingOrchestrator

__all__ = [
    "ScoredItem",
    "RankingContext",
    "RankedItem",
    "FactorContribution",
    "RankingMetrics",
    "DiversityFilter",
    "RankingOrchestrator",
]
