"""
Pytest configuration and shared fixtures.
"""

import logging
from typing import Dict, List, Optional

import pytest

from email_collation.embedding.providers import EmbeddingProvider
from email_collation.models import Document

FAKE_DIMENSION = 32


class FakeProvider(EmbeddingProvider):
    """
    In-process provider for tests.

    Returns preset vectors for known texts. Any other text gets a one-hot
    vector, a new dimension per distinct text, so unknown texts are never
    similar to each other.
    """

    def __init__(
        self,
        vectors: Optional[Dict[str, List[float]]] = None,
        failures: Optional[Dict[str, Exception]] = None
    ):
        super().__init__()
        self.vectors = vectors or {}
        self.failures = failures or {}
        self.calls: List[str] = []
        self._assigned: Dict[str, int] = {}

    @property
    def provider_name(self) -> str:
        return "fake"

    @property
    def model(self) -> str:
        return "fake-model"

    def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        if text in self.failures:
            raise self.failures[text]
        if text in self.vectors:
            return list(self.vectors[text])

        slot = self._assigned.setdefault(text, len(self._assigned) % FAKE_DIMENSION)
        vector = [0.0] * FAKE_DIMENSION
        vector[slot] = 1.0
        return vector

    @classmethod
    def from_settings(cls, settings, client=None) -> "FakeProvider":
        return cls()


class FakeClock:
    """Manual clock; sleeping advances time instantly."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_provider_cls():
    """The FakeProvider class, for tests that need custom vectors."""
    return FakeProvider


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def make_document():
    """Factory for Documents with a body of the requested length."""
    def _make(
        doc_id,
        body: Optional[str] = None,
        length: Optional[int] = None,
        embedding: Optional[List[float]] = None,
        date: Optional[str] = None,
    ) -> Document:
        if body is None:
            body = f"Message {doc_id} " + "x" * max((length or 80) - len(f"Message {doc_id} "), 0)
        return Document(id=doc_id, body=body, date=date, embedding=embedding)
    return _make


@pytest.fixture(autouse=True)
def reset_project_logger():
    """
    Restore the project logger after each test.

    setup_logging() disables propagation, which would hide records from caplog
    in later tests.
    """
    yield
    logger = logging.getLogger("email_collation")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
