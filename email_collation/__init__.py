"""
Email collation - embedding-based near-duplicate removal for email corpora.

Usage:
    collator = EmailCollator(CollationSettings(provider="ollama"))
    result = collator.collate(documents)
"""

from .config import CollationSettings
from .errors import (
    CollationError,
    ConfigurationError,
    ProviderError,
    UnsupportedProviderError,
    BatchCancelledError,
    InvalidInputError,
)
from .models import Document
from .embedding import EmbeddingCache, RateLimiter, EmbeddingService, create_provider
from .dedup import Deduplicator, cosine_similarity
from .collator import EmailCollator, CollationResult

__version__ = "1.0.0"

__all__ = [
    "CollationSettings",
    "CollationError",
    "ConfigurationError",
    "ProviderError",
    "UnsupportedProviderError",
    "BatchCancelledError",
    "InvalidInputError",
    "Document",
    "EmbeddingCache",
    "RateLimiter",
    "EmbeddingService",
    "create_provider",
    "Deduplicator",
    "cosine_similarity",
    "EmailCollator",
    "CollationResult",
]
