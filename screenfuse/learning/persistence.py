"""
Weight state persistence for screenfuse.

The adaptive weight store is the only persisted state. It is written as
one JSON document; load -> save -> load reproduces identical weights.
Failures never propagate: load falls back to defaults and save reports
False, both after logging.
"""
import json
import os
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from screenfuse.core.errors import PersistenceFailure
from screenfuse.core.logging import get_logger
from screenfuse.learning.weights import AdaptiveWeightStore, WeightState

logger = get_logger("learning.persistence")

STATE_VERSION = "1.0"


class WeightStateStore:
    """Manages persistent storage of adaptive weight state."""
    
    def __init__(self, path: str):
        self.path = Path(path)
    
    def save_state(self, state: WeightState) -> bool:
        """Save weight state to the JSON file."""
        try:
            self._write(state)
            logger.info(
                f"Saved weight state ({len(state.weights)} weights, "
                f"{len(state.history)} events) to {self.path}"
            )
            return True
        
        except PersistenceFailure as e:
            logger.error(f"Failed to save weight state: {e}")
            return False
    
    def load_state(self) -> Optional[WeightState]:
        """Load weight state; None when missing or unreadable."""
        try:
            state = self._read()
            if state is None:
                logger.info("No saved weight state found")
                return None
            logger.info(f"Loaded {len(state.weights)} weights from {self.path}")
            return state
        
        except PersistenceFailure as e:
            logger.error(f"Failed to load weight state, using defaults: {e}")
            return None
    
    def load_into(self, store: AdaptiveWeightStore) -> bool:
        """Restore a weight store from disk; leaves defaults on failure."""
        state = self.load_state()
        if state is None:
            return False
        store.restore(state)
        return True
    
    def save_from(self, store: AdaptiveWeightStore) -> bool:
        return self.save_state(store.snapshot())
    
    def clear(self) -> bool:
        """Delete the saved state file."""
        try:
            if self.path.exists():
                self.path.unlink()
                logger.info("Cleared saved weight state")
            return True
        
        except OSError as e:
            logger.error(f"Failed to clear weight state: {e}")
            return False
    
    def _write(self, state: WeightState) -> None:
        data = {
            "version": STATE_VERSION,
            "state": state.model_dump(mode="json"),
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            # Write-then-rename so a crash never leaves a truncated file
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
            try:
                with os.fdopen(fd, "w") as f:
                    json.dump(data, f, indent=2)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceFailure(f"Could not write weight state: {e}", str(self.path)) from e
    
    def _read(self) -> Optional[WeightState]:
        if not self.path.exists():
            return None
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
            return WeightState.model_validate(data.get("state", {}))
        except (OSError, json.JSONDecodeError, ValidationError, AttributeError) as e:
            raise PersistenceFailure(f"Could not read weight state: {e}", str(self.path)) from e
