"""
Vector math for embeddings.

All functions validate their input: vectors must be non-empty, of equal
dimension and contain only finite numbers. Invalid input raises ValueError.
"""

from __future__ import annotations

import logging
import math
from typing import Sequence

logger = logging.getLogger(__name__)

Vector = Sequence[float]


def _check_vector(vector: Vector, name: str = "vector") -> None:
    if len(vector) == 0:
        raise ValueError(f"{name} cannot be empty")
    for value in vector:
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            raise ValueError(f"{name} contains non-numeric or infinite values")


def _check_pair(a: Vector, b: Vector) -> None:
    _check_vector(a, "vector A")
    _check_vector(b, "vector B")
    if len(a) != len(b):
        raise ValueError(f"Vector dimensions must match: {len(a)} vs {len(b)}")


def dot_product(a: Vector, b: Vector) -> float:
    _check_pair(a, b)
    return math.fsum(x * y for x, y in zip(a, b))


def magnitude(vector: Vector) -> float:
    _check_vector(vector)
    return math.sqrt(math.fsum(x * x for x in vector))


def normalize(vector: Vector) -> list[float]:
    """Scale ``vector`` to unit length. A zero vector cannot be normalized."""
    length = magnitude(vector)
    if length == 0:
        raise ValueError("Cannot normalize a zero vector")
    return [x / length for x in vector]


def cosine_similarity(a: Vector, b: Vector) -> float:
    """
    dot(a, b) / (|a| * |b|), clamped to [-1, 1].

    Returns 0.0 with a warning when either vector has zero magnitude.
    """
    _check_pair(a, b)
    mag_a = math.sqrt(math.fsum(x * x for x in a))
    mag_b = math.sqrt(math.fsum(x * x for x in b))
    if mag_a == 0 or mag_b == 0:
        logger.warning("Zero-magnitude vector in cosine similarity, returning 0")
        return 0.0
    similarity = math.fsum(x * y for x, y in zip(a, b)) / (mag_a * mag_b)
    return max(-1.0, min(1.0, similarity))


def euclidean_distance(a: Vector, b: Vector) -> float:
    _check_pair(a, b)
    return math.sqrt(math.fsum((x - y) ** 2 for x, y in zip(a, b)))


def top_k_indices(scores: Sequence[float], k: int) -> list[int]:
    """Indices of the ``k`` highest scores, best first. Ties keep input order."""
    if k < 0:
        raise ValueError(f"k must be non-negative, got {k}")
    order = sorted(range(len(scores)), key=lambda i: scores[i], reverse=True)
    return order[:k]
