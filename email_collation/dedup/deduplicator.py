"""
Near-duplicate removal using embedding similarity.

Pairwise O(n^2) scan. When two documents are more similar than the
threshold, the shorter body is dropped: in reply chains the longer
message usually quotes the shorter one.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

from ..config import DEFAULT_SIMILARITY_THRESHOLD
from ..models import Document
from .similarity import cosine_similarity

logger = logging.getLogger("email_collation")


@dataclass
class DuplicateMatch:
    """
    One removal decision.

    Attributes:
        removed_id: ID of the document marked duplicate
        kept_id: ID of the document it was compared against
        similarity: Cosine similarity of the pair
    """
    removed_id: Any
    kept_id: Any
    similarity: float

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "removed_id": self.removed_id,
            "kept_id": self.kept_id,
            "similarity": round(self.similarity, 4),
        }


@dataclass
class DedupReport:
    """
    Outcome of a dedupe pass.

    Attributes:
        documents: Surviving documents, in input order
        matches: Removal decisions, in the order they were made
    """
    documents: List[Document]
    matches: List[DuplicateMatch] = field(default_factory=list)

    @property
    def removed_count(self) -> int:
        return len(self.matches)


class Deduplicator:
    """Removes near-duplicate documents by cosine similarity of embeddings."""

    def __init__(self, similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD):
        # High threshold: only near-identical content counts as duplicate
        self.threshold = similarity_threshold

    def analyze(self, documents: Sequence[Document]) -> DedupReport:
        """
        Decide which documents survive.

        Documents without an embedding never take part in comparisons and
        are always kept. For each similar pair (i < j), the shorter body is
        marked; on equal length the earlier document (i) is marked. Once i
        is marked it is not compared further.

        Args:
            documents: Documents, possibly carrying embeddings

        Returns:
            DedupReport with survivors and removal decisions
        """
        count = len(documents)
        is_duplicate = [False] * count
        matches: List[DuplicateMatch] = []

        for i in range(count):
            if is_duplicate[i] or not documents[i].has_embedding:
                continue

            for j in range(i + 1, count):
                if is_duplicate[j] or not documents[j].has_embedding:
                    continue

                similarity = cosine_similarity(documents[i].embedding, documents[j].embedding)
                if similarity <= self.threshold:
                    continue

                if len(documents[i].body) > len(documents[j].body):
                    is_duplicate[j] = True
                    matches.append(DuplicateMatch(documents[j].id, documents[i].id, similarity))
                else:
                    is_duplicate[i] = True
                    matches.append(DuplicateMatch(documents[i].id, documents[j].id, similarity))
                    break

        survivors = [doc for doc, dup in zip(documents, is_duplicate) if not dup]

        for match in matches:
            logger.debug(
                f"[Deduplicator] Removed {match.removed_id} "
                f"(similar to {match.kept_id}, score={match.similarity:.4f})"
            )
        logger.info(
            f"[Deduplicator] Kept {len(survivors)} of {count} documents "
            f"(threshold={self.threshold})"
        )

        return DedupReport(documents=survivors, matches=matches)

    def deduplicate(self, documents: Sequence[Document]) -> List[Document]:
        """
        Return documents with near-duplicates removed, in input order.

        Args:
            documents: Documents, possibly carrying embeddings

        Returns:
            Surviving documents
        """
        return self.analyze(documents).documents
