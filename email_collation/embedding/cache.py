"""
Content-addressed embedding cache.

Maps the SHA-1 of a text to its embedding vector. Bounded, with
insertion-order (FIFO) eviction: reads do not refresh an entry.
Lives for one collation run only; nothing is written to disk.
"""

import hashlib
import logging
import threading
from collections import OrderedDict
from typing import Any, Dict, List, Optional

from ..config import DEFAULT_CACHE_MAX_ENTRIES

logger = logging.getLogger("email_collation")


def content_key(text: str) -> str:
    """Return the SHA-1 hex digest of the UTF-8 encoded text."""
    return hashlib.sha1(text.encode("utf-8")).hexdigest()


class EmbeddingCache:
    """
    In-memory FIFO cache for embeddings, keyed by content hash.

    Identical text always maps to the same entry regardless of which
    document it came from.
    """

    def __init__(self, max_entries: int = DEFAULT_CACHE_MAX_ENTRIES):
        """
        Initialize the cache.

        Args:
            max_entries: Maximum number of stored vectors
        """
        if max_entries <= 0:
            raise ValueError(f"max_entries must be positive, got {max_entries}")
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, List[float]]" = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def get(self, text: str) -> Optional[List[float]]:
        """
        Look up the embedding for text.

        Args:
            text: Exact input text

        Returns:
            Copy of the cached vector, or None on miss
        """
        key = content_key(text)
        with self._lock:
            vector = self._entries.get(key)
            if vector is None:
                self._misses += 1
                return None
            self._hits += 1
            return list(vector)

    def put(self, text: str, vector: List[float]) -> None:
        """
        Store the embedding for text.

        When the cache is full, the oldest-inserted entry is evicted first.
        Re-storing an existing key replaces its vector in place and keeps
        its insertion position.

        Args:
            text: Exact input text
            vector: Embedding vector
        """
        key = content_key(text)
        with self._lock:
            if key in self._entries:
                self._entries[key] = list(vector)
                return

            if len(self._entries) >= self.max_entries:
                evicted_key, _ = self._entries.popitem(last=False)
                self._evictions += 1
                logger.debug(f"[EmbeddingCache] Evicted oldest entry {evicted_key[:12]}")

            self._entries[key] = list(vector)

    def __contains__(self, text: str) -> bool:
        with self._lock:
            return content_key(text) in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def size(self) -> int:
        """Current number of entries."""
        return len(self)

    def clear(self) -> None:
        """Remove all entries and reset statistics."""
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0
            self._evictions = 0

    def stats(self) -> Dict[str, Any]:
        """Return hit/miss/eviction counters and occupancy."""
        with self._lock:
            return {
                "size": len(self._entries),
                "max_entries": self.max_entries,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
            }
