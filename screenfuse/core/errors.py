"""
Error taxonomy for screenfuse.

Only InvalidCacheKey is ever surfaced to callers. Everything else has a
defined fallback value and is handled where it is raised.
"""
from typing import Optional


class ScreenfuseError(Exception):
    """Base class for screenfuse errors."""
    pass


class SignalUnavailable(ScreenfuseError):
    """A signal collaborator failed, timed out, or was cancelled."""
    
    def __init__(self, kind: str, reason: str):
        self.kind = kind
        self.reason = reason
        super().__init__(f"Signal '{kind}' unavailable: {reason}")


class InvalidCacheKey(ScreenfuseError, ValueError):
    """Raised when a cache key would be built from empty identifiers."""
    pass


class PersistenceFailure(ScreenfuseError):
    """Weight state could not be loaded or saved."""
    
    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message if path is None else f"{message} ({path})")
