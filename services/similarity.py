"""Cosine similarity between embedding vectors."""
from typing import Optional, Sequence

import numpy as np


def cosine_similarity(a: Optional[Sequence[float]], b: Optional[Sequence[float]]) -> float:
    """
    Cosine of the angle between two vectors, in [-1, 1].

    Returns 0.0 ("no similarity signal") when either vector is missing or
    empty, when the lengths differ, or when either vector has zero norm.
    Callers never need to special-case these inputs.
    """
    if a is None or b is None:
        return 0.0
    if len(a) == 0 or len(a) != len(b):
        return 0.0

    vec_a = np.asarray(a, dtype=np.float64)
    vec_b = np.asarray(b, dtype=np.float64)

    norm_a = float(np.linalg.norm(vec_a))
    norm_b = float(np.linalg.norm(vec_b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    score = float(np.dot(vec_a, vec_b)) / (norm_a * norm_b)
    if not np.isfinite(score):
        return 0.0
    # Rounding can push |score| slightly past 1
    return max(-1.0, min(1.0, score))
