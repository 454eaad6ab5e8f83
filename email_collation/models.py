"""
Document records flowing through the collation pipeline.
"""

import math
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional


def _stored_vector(value: Any) -> Optional[List[float]]:
    """A stored embedding as floats, or None unless it is a non-empty list of finite numbers."""
    if not isinstance(value, list) or not value:
        return None
    vector = []
    for item in value:
        if isinstance(item, bool) or not isinstance(item, (int, float)):
            return None
        try:
            number = float(item)
        except OverflowError:
            return None
        if not math.isfinite(number):
            return None
        vector.append(number)
    return vector


@dataclass(frozen=True)
class Document:
    """
    Single email message.

    Immutable once loaded. Embeddings are attached by building a new
    record with with_embedding(), never by mutating the original.

    Attributes:
        id: Message identifier from the mail store
        body: Plain text body
        date: Date header (RFC 2822 or ISO 8601), None if unknown
        subject: Subject header
        sender: From header
        metadata: Any extra fields carried through untouched
        embedding: Embedding vector, None when absent
    """
    id: Any
    body: str
    date: Optional[str] = None
    subject: str = ""
    sender: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)
    embedding: Optional[List[float]] = None

    @property
    def has_embedding(self) -> bool:
        """True if the document carries a non-empty embedding."""
        return bool(self.embedding)

    def with_embedding(self, embedding: Optional[List[float]]) -> "Document":
        """Return a copy carrying its own copy of the given vector."""
        vector = list(embedding) if embedding is not None else None
        return replace(self, embedding=vector)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Document":
        """
        Build a Document from a message mapping.

        Recognized keys: id, body, date, subject, from (or sender), embedding.
        An embedding that is not a list of finite numbers is dropped.
        Everything else lands in metadata.
        """
        known = {"id", "body", "date", "subject", "from", "sender", "embedding"}
        return cls(
            id=data.get("id"),
            body=data.get("body") or "",
            date=data.get("date"),
            subject=data.get("subject") or "",
            sender=data.get("from") or data.get("sender") or "",
            metadata={k: v for k, v in data.items() if k not in known},
            embedding=_stored_vector(data.get("embedding")),
        )

    def to_dict(self, include_embedding: bool = False) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: Dict[str, Any] = dict(self.metadata)
        result.update({
            "id": self.id,
            "subject": self.subject,
            "from": self.sender,
            "date": self.date,
            "body": self.body,
        })
        if include_embedding:
            result["embedding"] = self.embedding
        return result
