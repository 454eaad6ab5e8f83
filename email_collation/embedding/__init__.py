"""
Embedding module - provider calls with caching and rate limiting.
"""

from .cache import EmbeddingCache, content_key
from .throttle import RateLimiter
from .providers import (
    EmbeddingProvider,
    OllamaEmbeddingProvider,
    GeminiEmbeddingProvider,
    PROVIDERS,
    create_provider,
)
from .service import EmbeddingService

__all__ = [
    "EmbeddingCache",
    "content_key",
    "RateLimiter",
    "EmbeddingProvider",
    "OllamaEmbeddingProvider",
    "GeminiEmbeddingProvider",
    "PROVIDERS",
    "create_provider",
    "EmbeddingService",
]
