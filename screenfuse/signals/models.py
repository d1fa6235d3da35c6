"""
Signal value objects.

A SignalResult is produced once per signal kind per invocation by an
external analyzer (vision, text, metadata, behavioral). Results are
immutable and owned by the caller of the fusion engine.
"""
from typing import Dict
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field


DEFAULT_FALLBACK_LABEL = "uncategorized"
PLACEHOLDER_CONFIDENCE = 0.1


class SignalKind(str, Enum):
    """Independent sources of evidence about an item."""
    VISUAL = "visual"
    TEXTUAL = "textual"
    METADATA = "metadata"
    BEHAVIORAL = "behavioral"
    CONTEXTUAL = "contextual"
    TEMPORAL = "temporal"
    USER_FEEDBACK = "user_feedback"
    
    @property
    def base_weight(self) -> float:
        """A-priori trust in this source (0-1)."""
        return SIGNAL_BASE_WEIGHTS[self]


SIGNAL_BASE_WEIGHTS: Dict[SignalKind, float] = {
    SignalKind.VISUAL: 0.35,
    SignalKind.TEXTUAL: 0.30,
    SignalKind.METADATA: 0.15,
    SignalKind.BEHAVIORAL: 0.20,
    SignalKind.CONTEXTUAL: 0.20,
    SignalKind.TEMPORAL: 0.10,
    SignalKind.USER_FEEDBACK: 0.50,  # User corrections are the strongest source
}


class SignalResult(BaseModel):
    """One analyzer's opinion about an item's label."""
    model_config = ConfigDict(frozen=True)
    
    signal: SignalKind
    label: str = Field(..., min_length=1, description="Category id proposed by this signal")
    score: float = Field(default=0.0, description="Raw analyzer score (scale is analyzer-specific)")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Analyzer confidence (0-1)")
    evidence: Dict[str, str] = Field(default_factory=dict)
    
    @property
    def degraded(self) -> bool:
        return "degraded" in self.evidence
    
    @classmethod
    def placeholder(
        cls,
        kind: SignalKind,
        reason: str,
        label: str = DEFAULT_FALLBACK_LABEL,
        confidence: float = PLACEHOLDER_CONFIDENCE
    ) -> "SignalResult":
        """Low-confidence stand-in for a signal that failed or timed out."""
        return cls(
            signal=kind,
            label=label,
            score=0.0,
            confidence=confidence,
            evidence={"degraded": reason}
        )
