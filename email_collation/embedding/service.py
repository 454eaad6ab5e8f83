"""
Embedding service: cache lookup, throttling and provider calls.

One service is built per collation run. It owns its cache and rate
limiter; nothing else should mutate them.
"""

import logging
import threading
from typing import Callable, List, Optional, Sequence

import httpx

from ..config import CollationSettings
from ..errors import BatchCancelledError, CollationError
from ..models import Document
from .cache import EmbeddingCache
from .providers import EmbeddingProvider, create_provider
from .throttle import RateLimiter

logger = logging.getLogger("email_collation")

ProgressCallback = Callable[[int, int], None]


def _no_progress(current: int, total: int) -> None:
    pass


class EmbeddingService:
    """
    Produces embeddings for documents.

    Cache hits are served without throttling or network calls. Misses
    wait for a rate limiter admission, call the provider and store the
    result.
    """

    def __init__(
        self,
        settings: Optional[CollationSettings] = None,
        provider: Optional[EmbeddingProvider] = None,
        cache: Optional[EmbeddingCache] = None,
        rate_limiter: Optional[RateLimiter] = None,
        client: Optional[httpx.Client] = None
    ):
        """
        Initialize the service.

        Args:
            settings: Collation settings (defaults if omitted)
            provider: Provider to use instead of the one named in settings
            cache: Embedding cache (fresh one sized from settings if omitted)
            rate_limiter: Rate limiter (fresh one from settings if omitted)
            client: HTTP client passed to the provider built from settings

        Raises:
            UnsupportedProviderError: If settings name an unknown provider
        """
        self.settings = settings or CollationSettings()
        self.provider = provider or create_provider(self.settings, client=client)
        self.cache = cache or EmbeddingCache(self.settings.cache_max_entries)
        self.rate_limiter = rate_limiter or RateLimiter(
            max_requests=self.settings.throttle_max_requests,
            window_ms=self.settings.throttle_window_ms,
        )
        # Serializes cache/throttle/provider access across concurrent batches
        self._lock = threading.RLock()

    def get_embedding(
        self,
        text: str,
        cancel_event: Optional[threading.Event] = None
    ) -> List[float]:
        """
        Get the embedding for text, using the cache when possible.

        Args:
            text: Text to embed
            cancel_event: Checked before waiting on the rate limiter

        Returns:
            Embedding vector (a copy owned by the caller)

        Raises:
            ProviderError: If the provider call fails
            ConfigurationError: If the provider is misconfigured
            BatchCancelledError: If cancel_event is set before the call
        """
        with self._lock:
            cached = self.cache.get(text)
            if cached is not None:
                logger.debug("[EmbeddingService] Cache hit")
                return cached

            if cancel_event is not None and cancel_event.is_set():
                raise BatchCancelledError(0, 1)

            self.rate_limiter.acquire()
            vector = self.provider.embed(text)
            self.cache.put(text, vector)
            return list(vector)

    def embed_documents(
        self,
        documents: Sequence[Document],
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None
    ) -> List[Document]:
        """
        Attach embeddings to a batch of documents.

        A failure on one document never aborts the batch: that document
        comes back with embedding=None and processing continues.
        on_progress(current, total) is called once per document, in input
        order, whether or not it succeeded.

        Args:
            documents: Documents to embed
            on_progress: Progress callback
            cancel_event: When set, the batch stops before the next provider call

        Returns:
            New Document records in input order, each carrying its embedding
            or None

        Raises:
            BatchCancelledError: If cancel_event is set mid-batch
        """
        on_progress = on_progress or _no_progress
        total = len(documents)
        results: List[Document] = []
        failed = 0

        logger.info(
            f"[EmbeddingService] Embedding {total} documents "
            f"via {self.provider.provider_name}"
        )

        for index, document in enumerate(documents):
            try:
                embedding = self.get_embedding(document.body, cancel_event=cancel_event)
            except BatchCancelledError:
                logger.warning(f"[EmbeddingService] Batch cancelled at document {index + 1}/{total}")
                raise BatchCancelledError(index, total)
            except CollationError as e:
                logger.warning(
                    f"[EmbeddingService] Could not generate embedding for message ID "
                    f"{document.id}: {e}"
                )
                embedding = None
                failed += 1

            results.append(document.with_embedding(embedding))
            on_progress(index + 1, total)

        stats = self.cache.stats()
        logger.info(
            f"[EmbeddingService] Embedded {total - failed}/{total} documents "
            f"(cache hits={stats['hits']}, misses={stats['misses']})"
        )
        return results

    def close(self) -> None:
        """Release the provider's HTTP resources."""
        self.provider.close()

    def __enter__(self) -> "EmbeddingService":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
