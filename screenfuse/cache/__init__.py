"""
Result caching for pairwise and fingerprinted computations.
"""
from screenfuse.cache.keys import pair_key, fingerprint, prefixed_key
from screenfuse.cache.score_cache import ScoreCache, CacheEntry, CacheStats

__all__ = [
    "pair_key",
    "fingerprint",
    "prefixed_key",
    "ScoreCache",
    "CacheEntry",
    "CacheStats",
]
