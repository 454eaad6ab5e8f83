"""
Vector similarity helpers.
"""

from typing import Optional, Sequence

import numpy as np


def cosine_similarity(
    vec_a: Optional[Sequence[float]],
    vec_b: Optional[Sequence[float]]
) -> float:
    """
    Cosine similarity between two vectors.

    Never raises. Missing vectors, length mismatches, zero-norm vectors
    and anything that is not a flat sequence of numbers all give 0.0.

    Args:
        vec_a: First vector
        vec_b: Second vector

    Returns:
        float: Similarity between -1.0 and 1.0
    """
    if vec_a is None or vec_b is None:
        return 0.0

    try:
        a = np.asarray(vec_a, dtype=np.float64)
        b = np.asarray(vec_b, dtype=np.float64)
    except (TypeError, ValueError, OverflowError):
        return 0.0

    if a.ndim != 1 or b.ndim != 1 or a.size == 0 or a.size != b.size:
        return 0.0

    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0 or not np.isfinite(norm_a) or not np.isfinite(norm_b):
        return 0.0

    similarity = float(np.dot(a, b) / (norm_a * norm_b))
    if not np.isfinite(similarity):
        return 0.0
    return similarity
