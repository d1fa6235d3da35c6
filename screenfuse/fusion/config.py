"""
Fusion Configuration - Centralizes signal weights and fusion limits.

Override via environment variables or by constructing FusionConfig
directly and injecting it into the engine.
"""
from typing import Dict
from dataclasses import dataclass, field
import os

from screenfuse.signals.models import SignalKind, SIGNAL_BASE_WEIGHTS, DEFAULT_FALLBACK_LABEL


@dataclass
class SignalWeights:
    """A-priori trust per signal kind (0-1)."""
    visual: float = SIGNAL_BASE_WEIGHTS[SignalKind.VISUAL]
    textual: float = SIGNAL_BASE_WEIGHTS[SignalKind.TEXTUAL]
    metadata: float = SIGNAL_BASE_WEIGHTS[SignalKind.METADATA]
    behavioral: float = SIGNAL_BASE_WEIGHTS[SignalKind.BEHAVIORAL]
    contextual: float = SIGNAL_BASE_WEIGHTS[SignalKind.CONTEXTUAL]
    temporal: float = SIGNAL_BASE_WEIGHTS[SignalKind.TEMPORAL]
    user_feedback: float = SIGNAL_BASE_WEIGHTS[SignalKind.USER_FEEDBACK]
    
    def for_kind(self, kind: SignalKind) -> float:
        return getattr(self, kind.value)
    
    def as_dict(self) -> Dict[SignalKind, float]:
        return {kind: self.for_kind(kind) for kind in SignalKind}


@dataclass
class SimilarityWeights:
    """Weights for pairwise similarity components."""
    text: float = 0.25
    visual: float = 0.20
    thematic: float = 0.15
    temporal: float = 0.10
    semantic: float = 0.15


@dataclass
class FusionConfig:
    """
    Main configuration container for the fusion engine.
    
    Can be overridden via environment variables:
      - FUSION_VISUAL_WEIGHT=0.4
      - FUSION_TOP_K=5
      - FUSION_FALLBACK_LABEL=unknown
      etc.
    """
    signal_weights: SignalWeights = field(default_factory=SignalWeights)
    similarity_weights: SimilarityWeights = field(default_factory=SimilarityWeights)
    top_k: int = 3
    fallback_label: str = DEFAULT_FALLBACK_LABEL
    
    @classmethod
    def from_env(cls) -> "FusionConfig":
        """Create config with environment variable overrides."""
        config = cls()
        
        # Signal weight overrides
        for kind in SignalKind:
            if val := os.getenv(f"FUSION_{kind.value.upper()}_WEIGHT"):
                setattr(config.signal_weights, kind.value, float(val))
        
        # Similarity weight overrides
        for name in ("text", "visual", "thematic", "temporal", "semantic"):
            if val := os.getenv(f"FUSION_SIMILARITY_{name.upper()}_WEIGHT"):
                setattr(config.similarity_weights, name, float(val))
        
        if val := os.getenv("FUSION_TOP_K"):
            config.top_k = int(val)
        if val := os.getenv("FUSION_FALLBACK_LABEL"):
            config.fallback_label = val
        
        return config
