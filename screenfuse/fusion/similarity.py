"""
Pairwise content similarity with result caching.

Component similarities (text, visual, thematic, temporal, semantic) are
computed by external analyzers and combined here with fixed weights.
Results are cached under an order-independent pair key, so asking for
(b, a) after (a, b) is always a cache hit.
"""
import time
from typing import Any, Callable, Dict, List, Optional, Sequence
from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from screenfuse.cache.keys import pair_key
from screenfuse.cache.score_cache import ScoreCache
from screenfuse.core.logging import get_logger
from screenfuse.fusion.config import SimilarityWeights

logger = get_logger("fusion.similarity")

SIMILARITY_THRESHOLD = 0.7


class SimilarityLevel(str, Enum):
    VERY_HIGH = "very_high"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    VERY_LOW = "very_low"


class SimilarityComponents(BaseModel):
    """Per-modality similarity scores (0-1) for one pair of items."""
    model_config = ConfigDict(frozen=True)
    
    text: float = Field(default=0.0, ge=0.0, le=1.0)
    visual: float = Field(default=0.0, ge=0.0, le=1.0)
    thematic: float = Field(default=0.0, ge=0.0, le=1.0)
    temporal: float = Field(default=0.0, ge=0.0, le=1.0)
    semantic: float = Field(default=0.0, ge=0.0, le=1.0)


@dataclass(frozen=True)
class SimilarityResult:
    """Fused similarity between two items."""
    source_id: str
    target_id: str
    overall: float
    components: SimilarityComponents
    threshold: float = SIMILARITY_THRESHOLD
    
    @property
    def level(self) -> SimilarityLevel:
        if self.overall >= 0.85:
            return SimilarityLevel.VERY_HIGH
        if self.overall >= 0.7:
            return SimilarityLevel.HIGH
        if self.overall >= 0.5:
            return SimilarityLevel.MEDIUM
        if self.overall >= 0.3:
            return SimilarityLevel.LOW
        return SimilarityLevel.VERY_LOW
    
    @property
    def is_similar(self) -> bool:
        return self.overall >= self.threshold
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_id": self.source_id,
            "target_id": self.target_id,
            "overall": round(self.overall, 4),
            "level": self.level.value,
            "components": self.components.model_dump(),
        }


ComponentFn = Callable[[str, str], SimilarityComponents]


def combine_components(components: SimilarityComponents, weights: SimilarityWeights) -> float:
    """Weighted sum of component similarities."""
    return (
        components.text * weights.text
        + components.visual * weights.visual
        + components.thematic * weights.thematic
        + components.temporal * weights.temporal
        + components.semantic * weights.semantic
    )


class SimilarityEngine:
    """Computes and caches fused pairwise similarity."""
    
    def __init__(
        self,
        cache: Optional[ScoreCache[SimilarityResult]] = None,
        weights: Optional[SimilarityWeights] = None,
        threshold: float = SIMILARITY_THRESHOLD
    ):
        self.cache = cache if cache is not None else ScoreCache()
        self.weights = weights or SimilarityWeights()
        self.threshold = threshold
    
    def similarity(self, source_id: str, target_id: str, compute: ComponentFn) -> SimilarityResult:
        """
        Fused similarity for a pair, computed at most once per TTL.
        
        Args:
            source_id: First item id
            target_id: Second item id
            compute: Collaborator returning component similarities for the pair
        """
        key = pair_key(source_id, target_id)
        
        def _compute() -> SimilarityResult:
            start = time.perf_counter()
            components = compute(source_id, target_id)
            result = SimilarityResult(
                source_id=source_id,
                target_id=target_id,
                overall=combine_components(components, self.weights),
                components=components,
                threshold=self.threshold,
            )
            logger.debug(
                f"Similarity {key}: {result.overall:.3f} "
                f"in {(time.perf_counter() - start) * 1000:.1f}ms"
            )
            return result
        
        return self.cache.get_or_compute(key, _compute)
    
    def batch_similarity(
        self,
        reference_id: str,
        candidate_ids: Sequence[str],
        compute: ComponentFn
    ) -> List[SimilarityResult]:
        """Similarity of every candidate to a reference, highest first."""
        results = [
            self.similarity(reference_id, candidate_id, compute)
            for candidate_id in candidate_ids
            if candidate_id != reference_id
        ]
        return sorted(results, key=lambda r: -r.overall)
    
    def find_similar(
        self,
        reference_id: str,
        candidate_ids: Sequence[str],
        compute: ComponentFn,
        limit: int = 10
    ) -> List[SimilarityResult]:
        """Candidates at or above the similarity threshold, capped at limit."""
        scored = self.batch_similarity(reference_id, candidate_ids, compute)
        return [r for r in scored if r.is_similar][:limit]
