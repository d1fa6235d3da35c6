"""
Cache key construction.

Pairwise keys are order-independent so that similarity(a, b) and
similarity(b, a) share one entry. Single-item keys are content
fingerprints.
"""
import hashlib
import json
from typing import Any

from screenfuse.core.errors import InvalidCacheKey

PAIR_SEPARATOR = "_"


def _require_id(value: Any, position: str) -> str:
    text = str(value) if value is not None else ""
    if not text.strip():
        raise InvalidCacheKey(f"Empty item identifier for {position} of pair key")
    return text


def pair_key(a: Any, b: Any) -> str:
    """
    Build a canonical key for an unordered pair of item ids.
    
    The first id is length-prefixed so ids containing the separator cannot
    collide with another pair: ("a_b", "c") -> "3:a_b_c", ("a", "b_c") -> "1:a_b_c".
    """
    first, second = sorted((_require_id(a, "first"), _require_id(b, "second")))
    return f"{len(first)}:{first}{PAIR_SEPARATOR}{second}"


def fingerprint(payload: Any) -> str:
    """
    Stable sha256 fingerprint of item content.
    
    Strings and bytes are hashed directly; anything else is dumped as
    canonical JSON (sorted keys) first. Pydantic models are dumped via
    model_dump.
    """
    if isinstance(payload, bytes):
        data = payload
    elif isinstance(payload, str):
        data = payload.encode("utf-8")
    else:
        if hasattr(payload, "model_dump"):
            payload = payload.model_dump(mode="json")
        data = json.dumps(payload, sort_keys=True, default=str, separators=(",", ":")).encode("utf-8")
    
    if not data:
        raise InvalidCacheKey("Cannot fingerprint empty content")
    return hashlib.sha256(data).hexdigest()


def prefixed_key(prefix: str, payload: Any) -> str:
    """Fingerprint namespaced by computation type (e.g. 'categorize')."""
    return f"{prefix}:{fingerprint(payload)}"
