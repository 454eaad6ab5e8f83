"""
Email collation exceptions.

Per-document errors (ConfigurationError, ProviderError) are absorbed by the
embedding service and degrade to "no embedding". UnsupportedProviderError
is raised at construction time and stops the pipeline.
"""

from typing import Optional


class CollationError(Exception):
    """Base exception for all collation errors."""
    pass


class ConfigurationError(CollationError):
    """
    Raised when settings are missing or out of range.

    Examples:
    - Gemini provider selected without an API key
    - Similarity threshold outside (0, 1]
    """
    pass


class UnsupportedProviderError(CollationError):
    """Raised when the configured embedding provider is unknown."""

    def __init__(self, provider: str):
        self.provider = provider
        super().__init__(f"Unsupported embedding provider: {provider}")


class ProviderError(CollationError):
    """
    Raised when an embedding provider call fails.

    Covers transport failures, non-2xx responses and malformed payloads.
    """

    def __init__(
        self,
        provider: str,
        message: str,
        status_code: Optional[int] = None
    ):
        self.provider = provider
        self.status_code = status_code
        if status_code is not None:
            super().__init__(f"{provider} API error ({status_code}): {message}")
        else:
            super().__init__(f"{provider} API error: {message}")


class BatchCancelledError(CollationError):
    """Raised when an embedding batch is cancelled by the caller."""

    def __init__(self, processed: int, total: int):
        self.processed = processed
        self.total = total
        super().__init__(f"Embedding batch cancelled after {processed} of {total} documents")


class InvalidInputError(CollationError):
    """Raised when an input document file cannot be read as messages."""
    pass
