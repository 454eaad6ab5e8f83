"""
Deduplication module - embedding similarity and near-duplicate removal.
"""

from .similarity import cosine_similarity
from .deduplicator import Deduplicator, DedupReport, DuplicateMatch

__all__ = [
    "cosine_similarity",
    "Deduplicator",
    "DedupReport",
    "DuplicateMatch",
]
