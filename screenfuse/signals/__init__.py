"""
Signal models and concurrent signal collection.
"""
from screenfuse.signals.models import SignalKind, SignalResult, SIGNAL_BASE_WEIGHTS
from screenfuse.signals.collector import SignalCollector, FunctionCollector, SignalGatherer

__all__ = [
    "SignalKind",
    "SignalResult",
    "SIGNAL_BASE_WEIGHTS",
    "SignalCollector",
    "FunctionCollector",
    "SignalGatherer",
]
