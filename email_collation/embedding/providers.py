"""
Embedding provider abstraction.

Supports two backends:
- Ollama (local server) - default
- Gemini (Google AI REST API)

Usage:
    provider = create_provider(settings)
    vector = provider.embed("Some text")

A provider is selected once when the embedding service is built.
Every failure of a single embed() call surfaces as ProviderError, or
ConfigurationError when required settings are missing.
"""

import logging
import math
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Type

import httpx

from ..config import (
    CollationSettings,
    DEFAULT_GEMINI_MODEL,
    DEFAULT_OLLAMA_MODEL,
    DEFAULT_REQUEST_TIMEOUT,
    GEMINI_EMBED_URL,
    OLLAMA_BASE_URL,
    OLLAMA_EMBEDDINGS_ENDPOINT,
    PROVIDER_GEMINI,
    PROVIDER_OLLAMA,
    normalize_provider,
)
from ..errors import ConfigurationError, ProviderError, UnsupportedProviderError

logger = logging.getLogger("email_collation")


def to_vector(provider: str, value: Any) -> List[float]:
    """
    Validate a decoded embedding field and convert it to a list of floats.

    Raises:
        ProviderError: If the value is missing, empty, not numeric or not finite
    """
    if not isinstance(value, list) or not value:
        raise ProviderError(provider, "response contained no embedding vector")
    vector = []
    for item in value:
        if isinstance(item, bool) or not isinstance(item, (int, float)):
            raise ProviderError(provider, f"embedding contains non-numeric value: {item!r}")
        try:
            number = float(item)
        except (OverflowError, ValueError, TypeError):
            raise ProviderError(provider, f"embedding contains non-numeric value: {item!r}")
        if not math.isfinite(number):
            raise ProviderError(provider, f"embedding contains non-finite value: {item!r}")
        vector.append(number)
    return vector


class EmbeddingProvider(ABC):
    """Abstract base class for embedding providers."""

    def __init__(
        self,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        client: Optional[httpx.Client] = None
    ):
        """
        Args:
            timeout: Request timeout in seconds
            client: HTTP client to use; one is created lazily if omitted
        """
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return provider name for logs and errors."""
        pass

    @property
    @abstractmethod
    def model(self) -> str:
        """Return the embedding model name."""
        pass

    @abstractmethod
    def embed(self, text: str) -> List[float]:
        """
        Turn text into an embedding vector.

        Args:
            text: Text to embed

        Returns:
            Embedding vector

        Raises:
            ProviderError: On transport failure, non-2xx status or malformed payload
            ConfigurationError: If required settings are missing
        """
        pass

    @classmethod
    @abstractmethod
    def from_settings(
        cls,
        settings: CollationSettings,
        client: Optional[httpx.Client] = None
    ) -> "EmbeddingProvider":
        """Build the provider from collation settings."""
        pass

    def _http(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=self.timeout)
        return self._client

    def _post(self, url: str, **kwargs: Any) -> httpx.Response:
        """POST and convert transport errors to ProviderError."""
        try:
            return self._http().post(url, **kwargs)
        except httpx.TimeoutException:
            raise ProviderError(self.provider_name, f"request timed out after {self.timeout}s")
        except httpx.HTTPError as e:
            raise ProviderError(self.provider_name, f"request failed: {e}")

    def _json(self, response: httpx.Response) -> Dict[str, Any]:
        """Decode a JSON object body or raise ProviderError."""
        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(self.provider_name, f"invalid JSON response: {e}")
        if not isinstance(data, dict):
            raise ProviderError(self.provider_name, "response is not a JSON object")
        return data

    def close(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    def __enter__(self) -> "EmbeddingProvider":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class OllamaEmbeddingProvider(EmbeddingProvider):
    """Local Ollama server embedding provider."""

    def __init__(
        self,
        model: str = DEFAULT_OLLAMA_MODEL,
        endpoint: str = OLLAMA_BASE_URL,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        client: Optional[httpx.Client] = None
    ):
        super().__init__(timeout=timeout, client=client)
        self._model = model or DEFAULT_OLLAMA_MODEL
        self.endpoint = (endpoint or OLLAMA_BASE_URL).rstrip("/")

    @property
    def provider_name(self) -> str:
        return PROVIDER_OLLAMA

    @property
    def model(self) -> str:
        return self._model

    @property
    def url(self) -> str:
        return f"{self.endpoint}{OLLAMA_EMBEDDINGS_ENDPOINT}"

    def embed(self, text: str) -> List[float]:
        """Embed via POST {endpoint}/api/embeddings."""
        response = self._post(
            self.url,
            json={"model": self._model, "prompt": text},
            headers={"Content-Type": "application/json"},
        )

        if not response.is_success:
            raise ProviderError(self.provider_name, response.text, response.status_code)

        data = self._json(response)
        vector = to_vector(self.provider_name, data.get("embedding"))
        logger.debug(f"[OllamaEmbedder] Generated embedding: dim={len(vector)}")
        return vector

    @classmethod
    def from_settings(
        cls,
        settings: CollationSettings,
        client: Optional[httpx.Client] = None
    ) -> "OllamaEmbeddingProvider":
        return cls(
            model=settings.ollama_model,
            endpoint=settings.ollama_endpoint,
            timeout=settings.request_timeout,
            client=client,
        )


class GeminiEmbeddingProvider(EmbeddingProvider):
    """Google Gemini embedding provider."""

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_GEMINI_MODEL,
        url: str = GEMINI_EMBED_URL,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        client: Optional[httpx.Client] = None
    ):
        super().__init__(timeout=timeout, client=client)
        self.api_key = api_key
        self._model = model or DEFAULT_GEMINI_MODEL
        self.url = url

        if not self.api_key:
            logger.warning("[GeminiEmbedder] No API key configured - every request will fail")

    @property
    def provider_name(self) -> str:
        return PROVIDER_GEMINI

    @property
    def model(self) -> str:
        return self._model

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        """Extract error.message from the Gemini error envelope."""
        try:
            envelope = response.json()
            return envelope["error"]["message"]
        except (ValueError, KeyError, TypeError):
            return response.text or response.reason_phrase

    def embed(self, text: str) -> List[float]:
        """Embed via the Gemini embedContent endpoint."""
        if not self.api_key:
            raise ConfigurationError("Gemini API key is missing.")

        response = self._post(
            self.url,
            params={"key": self.api_key},
            json={
                "model": self._model,
                "content": {"parts": [{"text": text}]},
            },
            headers={"Content-Type": "application/json"},
        )

        if not response.is_success:
            raise ProviderError(
                self.provider_name,
                self._error_message(response),
                response.status_code
            )

        data = self._json(response)
        embedding = data.get("embedding")
        if not isinstance(embedding, dict):
            raise ProviderError(self.provider_name, "response contained no embedding object")

        # Fallback: the public API names the field 'values'
        values = embedding.get("value")
        if values is None:
            values = embedding.get("values")

        vector = to_vector(self.provider_name, values)
        logger.debug(f"[GeminiEmbedder] Generated embedding: dim={len(vector)}")
        return vector

    @classmethod
    def from_settings(
        cls,
        settings: CollationSettings,
        client: Optional[httpx.Client] = None
    ) -> "GeminiEmbeddingProvider":
        return cls(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            timeout=settings.request_timeout,
            client=client,
        )


PROVIDERS: Dict[str, Type[EmbeddingProvider]] = {
    PROVIDER_OLLAMA: OllamaEmbeddingProvider,
    PROVIDER_GEMINI: GeminiEmbeddingProvider,
}


def create_provider(
    settings: CollationSettings,
    client: Optional[httpx.Client] = None
) -> EmbeddingProvider:
    """
    Build the provider named in settings.

    Args:
        settings: Collation settings
        client: Optional HTTP client to inject

    Returns:
        EmbeddingProvider instance

    Raises:
        UnsupportedProviderError: If the provider name is unknown
    """
    name = normalize_provider(settings.provider)
    provider_cls = PROVIDERS.get(name)
    if provider_cls is None:
        raise UnsupportedProviderError(settings.provider)

    provider = provider_cls.from_settings(settings, client=client)
    logger.info(f"[EmbeddingService] Using provider {name} (model={provider.model})")
    return provider
