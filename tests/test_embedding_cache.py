"""
Tests for the content-addressed embedding cache.
"""

import hashlib

import pytest

from email_collation.embedding.cache import EmbeddingCache, content_key


class TestContentKey:
    """Tests for content_key function."""

    def test_sha1_hex_digest(self):
        """Key is the SHA-1 hex digest of the UTF-8 text."""
        text = "Hello, world"
        assert content_key(text) == hashlib.sha1(text.encode("utf-8")).hexdigest()

    def test_identical_text_same_key(self):
        assert content_key("same body") == content_key("same body")

    def test_whitespace_matters(self):
        """Exact-match semantics: no normalization."""
        assert content_key("body") != content_key("body ")

    def test_unicode_text(self):
        assert len(content_key("안녕하세요 ✉️")) == 40


class TestEmbeddingCache:
    """Tests for EmbeddingCache class."""

    def test_get_after_put(self):
        """get() returns the stored vector."""
        cache = EmbeddingCache(max_entries=10)
        cache.put("hello", [0.1, 0.2, 0.3])

        assert cache.get("hello") == [0.1, 0.2, 0.3]

    def test_miss_returns_none(self):
        cache = EmbeddingCache(max_entries=10)
        assert cache.get("never stored") is None

    def test_get_returns_copy(self):
        """Mutating a returned vector does not change the cached entry."""
        cache = EmbeddingCache(max_entries=10)
        cache.put("hello", [1.0, 2.0])

        vector = cache.get("hello")
        vector[0] = 99.0

        assert cache.get("hello") == [1.0, 2.0]

    def test_put_stores_copy(self):
        cache = EmbeddingCache(max_entries=10)
        original = [1.0, 2.0]
        cache.put("hello", original)
        original.append(3.0)

        assert cache.get("hello") == [1.0, 2.0]

    def test_contains_and_len(self):
        cache = EmbeddingCache(max_entries=10)
        cache.put("a", [1.0])
        cache.put("b", [2.0])

        assert "a" in cache
        assert "c" not in cache
        assert len(cache) == 2
        assert cache.size == 2

    def test_default_capacity(self):
        assert EmbeddingCache().max_entries == 1000

    def test_full_cache_evicts_exactly_oldest(self):
        """A put beyond capacity evicts only the oldest-inserted entry."""
        cache = EmbeddingCache(max_entries=1000)
        for i in range(1000):
            cache.put(f"text-{i}", [float(i)])
        assert cache.size == 1000

        cache.put("newcomer", [1234.0])

        assert cache.size == 1000
        assert cache.get("text-0") is None
        assert cache.get("text-1") == [1.0]
        assert cache.get("text-999") == [999.0]
        assert cache.get("newcomer") == [1234.0]
        assert cache.stats()["evictions"] == 1

    def test_eviction_is_fifo_not_lru(self):
        """Reading an entry does not protect it from eviction."""
        cache = EmbeddingCache(max_entries=2)
        cache.put("a", [1.0])
        cache.put("b", [2.0])

        assert cache.get("a") == [1.0]
        cache.put("c", [3.0])

        assert cache.get("a") is None
        assert cache.get("b") == [2.0]
        assert cache.get("c") == [3.0]

    def test_eviction_order_follows_insertion(self):
        cache = EmbeddingCache(max_entries=3)
        for name in ["a", "b", "c", "d", "e"]:
            cache.put(name, [0.0])

        assert "a" not in cache
        assert "b" not in cache
        assert all(name in cache for name in ["c", "d", "e"])

    def test_reput_existing_key_does_not_evict(self):
        """Storing the same text again replaces the vector in place."""
        cache = EmbeddingCache(max_entries=2)
        cache.put("a", [1.0])
        cache.put("b", [2.0])
        cache.put("a", [1.5])

        assert cache.size == 2
        assert cache.get("a") == [1.5]
        assert cache.get("b") == [2.0]
        assert cache.stats()["evictions"] == 0

    def test_reput_keeps_insertion_position(self):
        cache = EmbeddingCache(max_entries=2)
        cache.put("a", [1.0])
        cache.put("b", [2.0])
        cache.put("a", [1.5])
        cache.put("c", [3.0])

        assert "a" not in cache
        assert "b" in cache

    def test_size_never_exceeds_bound(self):
        cache = EmbeddingCache(max_entries=7)
        for i in range(100):
            cache.put(f"t{i % 13}-{i}", [float(i)])
            assert cache.size <= 7

    def test_stats_counts_hits_and_misses(self):
        cache = EmbeddingCache(max_entries=5)
        cache.put("a", [1.0])
        cache.get("a")
        cache.get("a")
        cache.get("missing")

        stats = cache.stats()
        assert stats["hits"] == 2
        assert stats["misses"] == 1
        assert stats["size"] == 1
        assert stats["max_entries"] == 5

    def test_clear(self):
        cache = EmbeddingCache(max_entries=5)
        cache.put("a", [1.0])
        cache.get("a")
        cache.clear()

        assert cache.size == 0
        assert cache.stats()["hits"] == 0

    @pytest.mark.parametrize("bad_size", [0, -1])
    def test_invalid_capacity(self, bad_size):
        with pytest.raises(ValueError):
            EmbeddingCache(max_entries=bad_size)
