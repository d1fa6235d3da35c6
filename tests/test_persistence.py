"""
Tests for weight state persistence.
"""
import json

import pytest

from screenfuse.learning.factors import ImpactTier
from screenfuse.learning.persistence import WeightStateStore
from screenfuse.learning.weights import AdaptiveWeightStore, WeightState


@pytest.fixture
def trained_store():
    store = AdaptiveWeightStore()
    for i in range(12):
        store.adapt(0.9 if i % 3 else 0.2, {"exact_match": ImpactTier.HIGH, "visual": ImpactTier.MEDIUM}, query=f"q{i}")
    store.personalize(0.95, ["exact_match"])
    return store


class TestRoundTrip:
    """load -> save -> load must be lossless."""
    
    def test_save_then_load_restores_weights(self, tmp_path, trained_store):
        path = tmp_path / "weights.json"
        persistence = WeightStateStore(str(path))
        
        assert persistence.save_from(trained_store)
        
        restored = AdaptiveWeightStore()
        assert persistence.load_into(restored)
        
        assert restored.weights() == trained_store.weights()
        assert restored.get_personalized_weight("exact_match") == pytest.approx(
            trained_store.get_personalized_weight("exact_match")
        )
        assert restored.adaptation_count == 12
        assert restored.convergence_score == pytest.approx(trained_store.convergence_score)
        assert [e.query for e in restored.history] == [e.query for e in trained_store.history]
    
    def test_load_save_load_is_identical(self, tmp_path, trained_store):
        path = tmp_path / "weights.json"
        persistence = WeightStateStore(str(path))
        persistence.save_from(trained_store)
        
        first = persistence.load_state()
        persistence.save_state(first)
        second = persistence.load_state()
        
        assert first.model_dump() == second.model_dump()
    
    def test_file_layout(self, tmp_path, trained_store):
        path = tmp_path / "nested" / "weights.json"
        WeightStateStore(str(path)).save_from(trained_store)
        
        with open(path) as f:
            data = json.load(f)
        
        assert data["version"] == "1.0"
        assert data["state"]["weights"]["exact_match"] == pytest.approx(trained_store.get_weight("exact_match"))
        assert not list(path.parent.glob("*.tmp"))


class TestFailures:
    """Persistence failures are reported, never raised."""
    
    def test_missing_file_returns_none(self, tmp_path):
        persistence = WeightStateStore(str(tmp_path / "missing.json"))
        assert persistence.load_state() is None
        assert persistence.load_into(AdaptiveWeightStore()) is False
    
    @pytest.mark.parametrize("content", [
        "{not json",
        "[1, 2, 3]",
        json.dumps({"version": "1.0", "state": {"adaptation_count": -4}}),
    ])
    def test_corrupt_file_falls_back_to_defaults(self, tmp_path, content):
        path = tmp_path / "weights.json"
        path.write_text(content)
        
        store = AdaptiveWeightStore()
        store.adapt(1.0, {"a": ImpactTier.HIGH})
        
        assert WeightStateStore(str(path)).load_into(store) is False
        # Existing weights untouched
        assert store.get_weight("a") == pytest.approx(1.1)
    
    def test_unwritable_path_returns_false(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        
        persistence = WeightStateStore(str(blocker / "weights.json"))
        assert persistence.save_state(WeightState()) is False
    
    def test_restore_clamps_out_of_range_weights(self):
        store = AdaptiveWeightStore()
        store.restore(WeightState(weights={"a": 10.0, "b": -1.0}))
        assert store.get_weight("a") == 3.0
        assert store.get_weight("b") == 0.1
    
    def test_clear(self, tmp_path, trained_store):
        path = tmp_path / "weights.json"
        persistence = WeightStateStore(str(path))
        persistence.save_from(trained_store)
        
        assert persistence.clear()
        assert not path.exists()
        assert persistence.load_state() is None
