"""
Configuration constants and settings for email collation.
"""

import os
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Mapping, Optional

from .errors import ConfigurationError

# Providers
PROVIDER_OLLAMA = "ollama"
PROVIDER_GEMINI = "gemini"
DEFAULT_PROVIDER = PROVIDER_OLLAMA

# Generic names accepted for the two provider kinds
PROVIDER_ALIASES = {
    "local": PROVIDER_OLLAMA,
    "cloud": PROVIDER_GEMINI,
}

# Ollama settings
OLLAMA_BASE_URL = "http://localhost:11434"
OLLAMA_EMBEDDINGS_ENDPOINT = "/api/embeddings"
DEFAULT_OLLAMA_MODEL = "nomic-embed-text"

# Gemini settings
GEMINI_EMBED_URL = (
    "https://generativelanguage.googleapis.com/v1beta/models/"
    "text-embedding-004:embedContent"
)
DEFAULT_GEMINI_MODEL = "models/text-embedding-004"

# Cache
DEFAULT_CACHE_MAX_ENTRIES = 1000

# Throttle: Gemini allows 60 requests per minute by default, stay below it
DEFAULT_THROTTLE_MAX_REQUESTS = 45
DEFAULT_THROTTLE_WINDOW_MS = 60 * 1000
THROTTLE_BUFFER_MS = 100

# Dedup
DEFAULT_SIMILARITY_THRESHOLD = 0.95

# Bodies this short or shorter are not worth embedding
DEFAULT_MIN_BODY_CHARS = 50

# Timeouts (seconds)
DEFAULT_REQUEST_TIMEOUT = 60

# Exit codes
EXIT_SUCCESS = 0
EXIT_INVALID_INPUT = 1
EXIT_CONFIGURATION_ERROR = 2
EXIT_COLLATION_FAILED = 3

# Environment variable -> settings field
ENV_VARS = {
    "EMBEDDING_PROVIDER": "provider",
    "OLLAMA_ENDPOINT": "ollama_endpoint",
    "OLLAMA_EMBED_MODEL": "ollama_model",
    "GEMINI_API_KEY": "gemini_api_key",
    "GEMINI_EMBED_MODEL": "gemini_model",
    "EMBED_CACHE_MAX_ENTRIES": "cache_max_entries",
    "EMBED_THROTTLE_MAX_REQUESTS": "throttle_max_requests",
    "EMBED_THROTTLE_WINDOW_MS": "throttle_window_ms",
    "SIMILARITY_THRESHOLD": "similarity_threshold",
    "MIN_BODY_CHARS": "min_body_chars",
    "EMBED_REQUEST_TIMEOUT": "request_timeout",
}


def normalize_provider(name: Optional[str]) -> str:
    """
    Normalize a provider name.

    Lowercases and maps "local"/"cloud" to their concrete providers.
    Unknown names are returned as-is so the provider factory can reject them.
    """
    if not name:
        return DEFAULT_PROVIDER
    key = name.strip().lower()
    return PROVIDER_ALIASES.get(key, key)


@dataclass
class CollationSettings:
    """
    Settings for one collation run.

    Attributes:
        provider: Embedding provider name ("ollama" or "gemini")
        ollama_endpoint: Base URL of the local Ollama server
        ollama_model: Ollama embedding model
        gemini_api_key: Gemini API key (required for the gemini provider)
        gemini_model: Gemini embedding model
        cache_max_entries: Embedding cache capacity
        throttle_max_requests: Provider calls allowed per window
        throttle_window_ms: Throttle window length in milliseconds
        similarity_threshold: Cosine similarity above which documents are duplicates
        min_body_chars: Bodies with this many stripped characters or fewer are skipped
        request_timeout: Provider request timeout in seconds
    """
    provider: str = DEFAULT_PROVIDER
    ollama_endpoint: str = OLLAMA_BASE_URL
    ollama_model: str = DEFAULT_OLLAMA_MODEL
    gemini_api_key: str = ""
    gemini_model: str = DEFAULT_GEMINI_MODEL
    cache_max_entries: int = DEFAULT_CACHE_MAX_ENTRIES
    throttle_max_requests: int = DEFAULT_THROTTLE_MAX_REQUESTS
    throttle_window_ms: int = DEFAULT_THROTTLE_WINDOW_MS
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD
    min_body_chars: int = DEFAULT_MIN_BODY_CHARS
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    def __post_init__(self):
        self.provider = normalize_provider(self.provider)

    def validate(self) -> "CollationSettings":
        """
        Check value ranges.

        Returns:
            self, for chaining

        Raises:
            ConfigurationError: If any value is out of range
        """
        if not 0.0 < self.similarity_threshold <= 1.0:
            raise ConfigurationError(
                f"similarity_threshold must be in (0, 1], got {self.similarity_threshold}"
            )
        if self.cache_max_entries <= 0:
            raise ConfigurationError(
                f"cache_max_entries must be positive, got {self.cache_max_entries}"
            )
        if self.throttle_max_requests <= 0:
            raise ConfigurationError(
                f"throttle_max_requests must be positive, got {self.throttle_max_requests}"
            )
        if self.throttle_window_ms <= 0:
            raise ConfigurationError(
                f"throttle_window_ms must be positive, got {self.throttle_window_ms}"
            )
        if self.request_timeout <= 0:
            raise ConfigurationError(
                f"request_timeout must be positive, got {self.request_timeout}"
            )
        if self.min_body_chars < 0:
            raise ConfigurationError(
                f"min_body_chars must not be negative, got {self.min_body_chars}"
            )
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, masking the API key."""
        data = asdict(self)
        if data["gemini_api_key"]:
            data["gemini_api_key"] = "***"
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CollationSettings":
        """
        Merge a stored settings mapping over the defaults.

        Accepts flat field names as well as the nested stored shape:

            {
                "provider": "ollama",
                "ollama": {"endpoint": "...", "model": "..."},
                "gemini": {"apiKey": "..."},
                "similarityThreshold": 0.95
            }

        Raises:
            ConfigurationError: If a value cannot be converted
        """
        values: Dict[str, Any] = {}

        ollama = data.get("ollama") or {}
        if ollama.get("endpoint"):
            values["ollama_endpoint"] = ollama["endpoint"]
        if ollama.get("model"):
            values["ollama_model"] = ollama["model"]

        gemini = data.get("gemini") or {}
        if gemini.get("apiKey"):
            values["gemini_api_key"] = gemini["apiKey"]
        if gemini.get("model"):
            values["gemini_model"] = gemini["model"]

        if "similarityThreshold" in data:
            values["similarity_threshold"] = data["similarityThreshold"]

        names = {f.name for f in fields(cls)}
        for key, value in data.items():
            if key in names and value is not None:
                values[key] = value

        return cls(**_coerce(values))

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "CollationSettings":
        """
        Build settings from environment variables.

        Unset variables keep their defaults. See ENV_VARS for names.

        Raises:
            ConfigurationError: If a numeric variable cannot be parsed
        """
        if environ is None:
            environ = os.environ

        values = {
            name: environ[var]
            for var, name in ENV_VARS.items()
            if environ.get(var, "") != ""
        }
        return cls(**_coerce(values))


def _coerce(values: Dict[str, Any]) -> Dict[str, Any]:
    """Convert raw values to the declared field types."""
    types = {f.name: f.type for f in fields(CollationSettings)}
    converters = {
        "int": int, int: int,
        "float": float, float: float,
        "str": str, str: str,
    }
    result = {}
    for name, value in values.items():
        convert = converters.get(types[name], str)
        try:
            result[name] = convert(value)
        except (TypeError, ValueError):
            raise ConfigurationError(f"Invalid value for {name}: {value!r}")
    return result
