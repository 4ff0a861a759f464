"""
Vector normalization and cosine scoring.

Both functions are pure; the only failures are DegenerateVector for a vector
that cannot be scaled to unit length and DimensionMismatch for vectors of
different length.
"""

from typing import Sequence, Union

import numpy as np

from ..core.errors import DegenerateVector, DimensionMismatch

VectorLike = Union[Sequence[float], np.ndarray]


def normalize(vector: VectorLike) -> np.ndarray:
    """
    Rescale a vector to Euclidean norm 1.

    Args:
        vector: Raw embedding vector

    Returns:
        New float64 array with norm 1 (within floating point tolerance)

    Raises:
        DegenerateVector: If the vector is empty, all zeros, or contains
            non-finite components
    """
    array = np.asarray(vector, dtype=np.float64)
    if array.ndim != 1 or array.size == 0:
        raise DegenerateVector(f"Expected a non-empty 1-D vector, got shape {array.shape}")

    norm = np.linalg.norm(array)
    if not np.isfinite(norm):
        raise DegenerateVector("Vector contains non-finite components")
    if norm == 0:
        raise DegenerateVector("Cannot normalize the zero vector")

    return array / norm


def score(a: VectorLike, b: VectorLike) -> float:
    """
    Dot product of two unit vectors, i.e. their cosine similarity.

    The result is not clamped; rounding can put it marginally outside [-1, 1].

    Raises:
        DimensionMismatch: If the vectors differ in length
    """
    if len(a) != len(b):
        raise DimensionMismatch(len(a), len(b))

    return float(np.dot(np.asarray(a, dtype=np.float64), np.asarray(b, dtype=np.float64)))
