"""
Tests for the score cache and cache key construction.

Verifies that:
- Pair keys are order-independent
- Entries expire exactly at the TTL boundary
- The cache never exceeds its capacity and evicts the oldest entry
- Hit rate accounting is correct
"""
import threading

import pytest

from screenfuse.cache.keys import pair_key, fingerprint, prefixed_key
from screenfuse.cache.score_cache import ScoreCache
from screenfuse.core.errors import InvalidCacheKey


class TestCacheKeys:
    """Tests for key construction."""
    
    @pytest.mark.parametrize("a,b", [
        ("a", "b"),
        ("item-42", "item-7"),
        ("3f2a-uuid", "0b1c-uuid"),
        ("same", "same"),
    ])
    def test_pair_key_is_order_independent(self, a, b):
        assert pair_key(a, b) == pair_key(b, a)
    
    def test_pair_key_is_lexicographic(self):
        assert pair_key("zeta", "alpha") == "5:alpha_zeta"
    
    @pytest.mark.parametrize("first,second", [
        (("a_b", "c"), ("a", "b_c")),
        (("x_", "y"), ("x", "_y")),
        (("1:a", "b"), ("1", "a_b")),
    ])
    def test_ids_containing_separator_do_not_collide(self, first, second):
        assert pair_key(*first) != pair_key(*second)
    
    @pytest.mark.parametrize("a,b", [("", "b"), ("a", ""), ("  ", "b"), (None, "b")])
    def test_empty_ids_are_rejected(self, a, b):
        with pytest.raises(InvalidCacheKey):
            pair_key(a, b)
    
    def test_fingerprint_ignores_dict_order(self):
        first = fingerprint({"text": "total $12.00", "app": "camera"})
        second = fingerprint({"app": "camera", "text": "total $12.00"})
        assert first == second
    
    def test_fingerprint_differs_by_content(self):
        assert fingerprint("receipt") != fingerprint("invoice")
    
    def test_fingerprint_rejects_empty_content(self):
        with pytest.raises(InvalidCacheKey):
            fingerprint("")
    
    def test_prefixed_key(self):
        assert prefixed_key("categorize", "abc").startswith("categorize:")


class TestScoreCacheExpiry:
    """Tests for TTL behavior."""
    
    def test_hit_just_before_ttl(self, clock):
        cache = ScoreCache(ttl=100.0, clock=clock)
        cache.put("k", 0.9)
        clock.advance(100.0 - 1e-6)
        assert cache.get("k") == 0.9
    
    def test_miss_just_after_ttl(self, clock):
        cache = ScoreCache(ttl=100.0, clock=clock)
        cache.put("k", 0.9)
        clock.advance(100.0 + 1e-6)
        assert cache.get("k") is None
    
    def test_miss_exactly_at_ttl(self, clock):
        cache = ScoreCache(ttl=100.0, clock=clock)
        cache.put("k", 0.9)
        clock.advance(100.0)
        assert cache.get("k") is None
        assert "k" not in cache
    
    def test_clear_expired(self, clock):
        cache = ScoreCache(ttl=10.0, clock=clock)
        cache.put("old", 1)
        clock.advance(6.0)
        cache.put("new", 2)
        clock.advance(5.0)
        
        removed = cache.clear_expired()
        assert removed == 1
        assert len(cache) == 1
        assert cache.get("new") == 2
    
    def test_default_ttl_is_a_day(self):
        assert ScoreCache().ttl == 24 * 60 * 60


class TestScoreCacheEviction:
    """Tests for the capacity bound."""
    
    def test_oldest_entry_evicted(self, clock):
        cache = ScoreCache(capacity=1000, clock=clock)
        for i in range(1001):
            cache.put(f"item-{i}", i)
            clock.advance(1.0)
        
        assert len(cache) == 1000
        assert cache.get("item-0") is None
        for i in range(1, 1001):
            assert cache.get(f"item-{i}") == i
    
    @pytest.mark.parametrize("extra", [1, 5, 50])
    def test_size_never_exceeds_capacity(self, clock, extra):
        cache = ScoreCache(capacity=20, clock=clock)
        for i in range(20 + extra):
            cache.put(f"k{i}", i)
            clock.advance(0.5)
            assert len(cache) <= 20
    
    def test_eviction_ignores_access_recency(self, clock):
        cache = ScoreCache(capacity=2, clock=clock)
        cache.put("a", 1)
        clock.advance(1.0)
        cache.put("b", 2)
        clock.advance(1.0)
        cache.get("a")  # Reading does not refresh
        cache.put("c", 3)
        
        assert "a" not in cache
        assert "b" in cache
    
    def test_overwrite_does_not_evict(self, clock):
        cache = ScoreCache(capacity=2, clock=clock)
        cache.put("a", 1)
        cache.put("b", 2)
        cache.put("a", 10)
        
        assert len(cache) == 2
        assert cache.get("a") == 10
        assert cache.get("b") == 2
    
    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            ScoreCache(capacity=0)


class TestScoreCacheStats:
    """Tests for hit-rate accounting."""
    
    def test_hit_rate(self):
        cache = ScoreCache()
        cache.put("a", 1)
        cache.get("a")
        cache.get("a")
        cache.get("missing")
        
        stats = cache.stats()
        assert stats.size == 1
        assert stats.hits == 2
        assert stats.requests == 3
        assert stats.hit_rate == pytest.approx(2 / 3)
    
    def test_hit_rate_without_requests(self):
        assert ScoreCache().hit_rate == 0.0
    
    def test_clear_resets_everything(self):
        cache = ScoreCache()
        cache.put("a", 1)
        cache.get("a")
        cache.clear()
        
        assert len(cache) == 0
        assert cache.stats().requests == 0
    
    def test_empty_key_rejected(self):
        with pytest.raises(InvalidCacheKey):
            ScoreCache().put("", 1)
    
    def test_get_or_compute_computes_once(self):
        cache = ScoreCache()
        calls = []
        
        def compute():
            calls.append(1)
            return 0.42
        
        assert cache.get_or_compute("k", compute) == 0.42
        assert cache.get_or_compute("k", compute) == 0.42
        assert len(calls) == 1
    
    def test_concurrent_get_or_compute(self):
        cache = ScoreCache()
        calls = []
        
        def compute():
            calls.append(1)
            return "value"
        
        threads = [
            threading.Thread(target=cache.get_or_compute, args=("shared", compute))
            for _ in range(16)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        
        assert len(calls) == 1
        assert cache.get("shared") == "value"
