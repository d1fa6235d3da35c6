"""
screenfuse - Multi-signal fusion, caching, and adaptive weighting.

Turns independently computed, differently scaled signals about an item
into one ranked/classified decision with an uncertainty estimate, and
improves that decision from sparse user feedback.

Modules:
    fusion      Weighted signal fusion, uncertainty, pairwise similarity
    cache       TTL + capacity bounded score cache, key construction
    learning    Adaptive factor weights, category feedback, persistence
    ranking     Multi-factor ranking with diversity penalties
    signals     Signal models and concurrent collection
    service     FusionService facade
"""
from screenfuse.service import FusionService, CategorizationMetrics

__version__ = "1.0.0"

__all__ = ["FusionService", "CategorizationMetrics", "__version__"]
