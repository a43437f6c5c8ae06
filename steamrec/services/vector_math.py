"""Vector helpers shared by the preference builder, feedback learner and hybrid blend."""

from typing import Iterable, Optional, Sequence

import numpy as np


class VectorDimensionError(ValueError):
    """A vector does not have the deployment's embedding dimension."""


def as_vector(values: Iterable[float] | np.ndarray, dimension: Optional[int] = None) -> np.ndarray:
    """Convert to a float64 numpy array, optionally checking its dimension."""
    vector = np.asarray(values, dtype=np.float64)
    if vector.ndim != 1:
        raise VectorDimensionError(f"Expected a 1-D vector, got shape {vector.shape}")
    if dimension is not None and vector.shape[0] != dimension:
        raise VectorDimensionError(
            f"Expected vector of dimension {dimension}, got {vector.shape[0]}"
        )
    return vector


def l2_norm(vector: np.ndarray) -> float:
    return float(np.linalg.norm(vector))


def normalize(vector: np.ndarray) -> np.ndarray:
    """
    Scale to unit length.

    An all-zero vector is returned unchanged instead of producing NaNs.
    """
    vector = as_vector(vector)
    magnitude = l2_norm(vector)
    if magnitude == 0:
        return vector
    return vector / magnitude


def add_scaled(base: np.ndarray, other: np.ndarray, weight: float = 1.0) -> np.ndarray:
    """Element-wise `base + other * weight`."""
    base = as_vector(base)
    other = as_vector(other, base.shape[0])
    return base + other * weight


def blend(first: np.ndarray, second: np.ndarray, first_weight: float) -> np.ndarray:
    """Weighted sum `first * w + second * (1 - w)`, then unit-normalized."""
    first = as_vector(first)
    second = as_vector(second, first.shape[0])
    return normalize(first * first_weight + second * (1 - first_weight))


def weighted_average(vectors: Sequence[np.ndarray], weights: Sequence[float]) -> Optional[np.ndarray]:
    """
    Weighted mean of equal-length vectors.

    Returns None when the weights sum to zero (nothing to average).
    """
    if not vectors:
        return None
    matrix = np.vstack([as_vector(v, len(vectors[0])) for v in vectors])
    weight_array = np.asarray(weights, dtype=np.float64)
    total = float(weight_array.sum())
    if total <= 0:
        return None
    return (matrix * weight_array[:, None]).sum(axis=0) / total


def distance_to_similarity(distance: float) -> float:
    """Map pgvector cosine distance (0 = identical, 2 = opposite) onto [0, 1]."""
    return 1 - distance / 2


def vector_to_db(vector: np.ndarray) -> list[float]:
    """Serialize for a double precision[] column (exact float64 round trip)."""
    return [float(v) for v in as_vector(vector)]


def vector_from_db(values: Optional[Sequence[float]], dimension: Optional[int] = None) -> Optional[np.ndarray]:
    if values is None:
        return None
    return as_vector(values, dimension)
