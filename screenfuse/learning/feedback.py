"""
Category feedback learning.

User corrections of a categorization adjust per-label bias weights. Label
weights form a normalized family: after every update the learned weights
sum to 1.0. The bias applied to fused scores is the normalized weight
scaled by the number of learned labels, so a label with average standing
gets 1.0 and unseen labels are left untouched.
"""
import threading
from collections import deque
from datetime import datetime, timezone
from typing import Deque, Dict, List, Mapping, Optional

from pydantic import BaseModel, Field

from screenfuse.core.logging import get_logger

logger = get_logger("learning.feedback")

FEEDBACK_HISTORY_CAP = 1000
CORRECT_BOOST = 1.1
WRONG_PENALTY = 0.9
CORRECTION_BOOST = 1.2


class CategoryFeedback(BaseModel):
    """A user's verdict on one categorization."""
    item_id: str = Field(..., min_length=1)
    original_label: str = Field(..., min_length=1)
    corrected_label: Optional[str] = None
    is_correct: bool
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class CategoryFeedbackLearner:
    """Stores category feedback and maintains normalized label weights."""
    
    def __init__(self, history_cap: int = FEEDBACK_HISTORY_CAP):
        self._history: Deque[CategoryFeedback] = deque(maxlen=history_cap)
        self._label_weights: Dict[str, float] = {}
        self._lock = threading.Lock()
    
    def submit(self, feedback: CategoryFeedback) -> None:
        with self._lock:
            self._history.append(feedback)
            weights = self._label_weights
            if feedback.is_correct:
                weights[feedback.original_label] = weights.get(feedback.original_label, 1.0) * CORRECT_BOOST
            else:
                weights[feedback.original_label] = weights.get(feedback.original_label, 1.0) * WRONG_PENALTY
                if feedback.corrected_label:
                    weights[feedback.corrected_label] = (
                        weights.get(feedback.corrected_label, 1.0) * CORRECTION_BOOST
                    )
            
            total = sum(weights.values())
            if total > 0:
                for label in weights:
                    weights[label] = weights[label] / total
        
        logger.info(
            f"Category feedback for {feedback.item_id}: "
            f"{'correct' if feedback.is_correct else 'corrected'} "
            f"({feedback.original_label} -> {feedback.corrected_label or feedback.original_label})"
        )
    
    def label_weights(self) -> Dict[str, float]:
        with self._lock:
            return dict(self._label_weights)
    
    def label_bias(self, label: str) -> float:
        """Multiplier for a label's fused score (1.0 when unlearned)."""
        with self._lock:
            weight = self._label_weights.get(label)
            if weight is None:
                return 1.0
            return weight * len(self._label_weights)
    
    def apply(self, scores: Mapping[str, float]) -> Dict[str, float]:
        """Scale every learned label's score by its bias."""
        return {label: score * self.label_bias(label) for label, score in scores.items()}
    
    @property
    def history(self) -> List[CategoryFeedback]:
        with self._lock:
            return list(self._history)
    
    @property
    def accuracy_rate(self) -> float:
        with self._lock:
            if not self._history:
                return 0.0
            correct = sum(1 for f in self._history if f.is_correct)
            return correct / len(self._history)
    
    def reset(self) -> None:
        with self._lock:
            self._history.clear()
            self._label_weights.clear()
