from __future__ import annotations

import math
from typing import Optional, Sequence

import numpy as np


def cosine_similarity(vec_a: Optional[Sequence[float]], vec_b: Optional[Sequence[float]]) -> float:
    """Cosine similarity of two vectors.

    Returns 0.0 when either vector is missing or empty, when the lengths differ,
    when either magnitude is zero, or when any component is NaN or infinite.
    """
    if vec_a is None or vec_b is None:
        return 0.0
    if len(vec_a) == 0 or len(vec_a) != len(vec_b):
        return 0.0

    a = np.asarray(vec_a, dtype="float64")
    b = np.asarray(vec_b, dtype="float64")
    if not (np.isfinite(a).all() and np.isfinite(b).all()):
        return 0.0

    norm_a = float(np.linalg.norm(a))
    norm_b = float(np.linalg.norm(b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    score = float(np.dot(a, b) / (norm_a * norm_b))
    return score if math.isfinite(score) else 0.0
