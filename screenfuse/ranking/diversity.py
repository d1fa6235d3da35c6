"""
Diversity re-ranking.

Walks candidates best-first and counts how often each discriminator
(source app, content type) has been seen. Once a discriminator exceeds
its cap, later candidates sharing it are penalized multiplicatively.
"""
from collections import Counter
from typing import List

from screenfuse.core.logging import get_logger
from screenfuse.ranking.models import RankedItem

logger = get_logger("ranking.diversity")

DIVERSITY_PENALTY_NOTE = "Diversity penalty applied"


def ranking_order(items: List[RankedItem]) -> List[RankedItem]:
    """Descending score; ties keep input order."""
    return sorted(items, key=lambda r: (-r.score, r.input_index))


class DiversityFilter:
    """
    Args:
        diversity_weight: Penalty fraction; a penalized score becomes
            score * (1 - diversity_weight).
        app_cap: Candidates per source app before penalties start.
        content_type_cap: Candidates per content type before penalties start.
    """
    
    def __init__(self, diversity_weight: float = 0.2, app_cap: int = 3, content_type_cap: int = 2):
        if not 0.0 <= diversity_weight <= 1.0:
            raise ValueError("diversity_weight must be within [0, 1]")
        self.diversity_weight = diversity_weight
        self.app_cap = app_cap
        self.content_type_cap = content_type_cap
    
    def apply(self, items: List[RankedItem]) -> List[RankedItem]:
        """Penalize over-represented candidates and return them re-sorted."""
        if self.diversity_weight <= 0 or not items:
            return ranking_order(items)
        
        app_counts: Counter = Counter()
        type_counts: Counter = Counter()
        penalized = 0
        
        for ranked in ranking_order(items):
            over_cap = False
            
            app = ranked.item.source_app
            if app:
                app_counts[app] += 1
                if app_counts[app] > self.app_cap:
                    over_cap = True
            
            content_type = ranked.item.content_type
            if content_type:
                type_counts[content_type] += 1
                if type_counts[content_type] > self.content_type_cap:
                    over_cap = True
            
            if over_cap:
                ranked.score *= (1.0 - self.diversity_weight)
                ranked.diversity_penalized = True
                ranked.explanations.append(DIVERSITY_PENALTY_NOTE)
                penalized += 1
        
        if penalized:
            logger.debug(f"Diversity penalty applied to {penalized}/{len(items)} candidates")
        return ranking_order(items)
