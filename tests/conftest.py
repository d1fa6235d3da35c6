"""Shared test fixtures for screenfuse tests."""

import pytest

from screenfuse.core.config import Settings
from screenfuse.service import FusionService
from screenfuse.signals.models import SignalKind, SignalResult


class FakeClock:
    """Manually advanced monotonic clock."""
    
    def __init__(self, start: float = 1000.0):
        self.now = start
    
    def __call__(self) -> float:
        return self.now
    
    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    """Default settings without persistence."""
    return Settings(weight_state_path=None)


@pytest.fixture
def service(settings):
    return FusionService(settings=settings)


@pytest.fixture
def receipt_signals():
    """Two strong 'receipt' signals and one weak metadata fallback."""
    return [
        SignalResult(signal=SignalKind.VISUAL, label="receipt", confidence=0.9),
        SignalResult(signal=SignalKind.TEXTUAL, label="receipt", confidence=0.8),
        SignalResult(signal=SignalKind.METADATA, label="uncategorized", confidence=0.1),
    ]
